"""
Per-question countdown timer.
The timer itself only counts ticks; AsyncTicker drives it once per interval
on the event loop. Tests call tick() directly.
"""
import asyncio
import logging
import threading
from typing import Awaitable, Callable, Optional

from utils.config import config

logger = logging.getLogger(__name__)


class CountdownTimer:
    """
    Counts down whole seconds and fires on_expire once per run.

    tick, pause, reset and stop are serialized by a lock. The expiry callback
    is invoked outside the lock, but only by the tick that reached zero.
    """

    def __init__(self, limit_seconds: int, on_expire: Optional[Callable[[], None]] = None):
        self._lock = threading.RLock()
        self._initial_limit = limit_seconds
        self.limit = limit_seconds
        self.on_expire = on_expire

        self._remaining = limit_seconds
        self._running = False
        self._paused = False
        self._expired = False

    @property
    def time_remaining(self) -> int:
        return self._remaining

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def is_paused(self) -> bool:
        return self._paused

    @property
    def time_used(self) -> int:
        return self.limit - self._remaining

    @property
    def progress_percent(self) -> float:
        if self.limit <= 0:
            return 0.0
        return (self.limit - self._remaining) / self.limit * 100

    def start(self) -> bool:
        """Start or resume counting. Returns False if there is nothing left to count."""
        with self._lock:
            if self._expired or self._remaining <= 0:
                return False
            self._running = True
            self._paused = False
            return True

    def pause(self):
        with self._lock:
            if not self._running:
                return
            self._running = False
            self._paused = True

    def stop(self):
        with self._lock:
            self._running = False
            self._paused = False

    def reset(self, new_limit: Optional[int] = None):
        """Re-arm with a fresh limit. Does not start."""
        with self._lock:
            self.limit = new_limit if new_limit is not None else self._initial_limit
            self._remaining = self.limit
            self._running = False
            self._paused = False
            self._expired = False

    def tick(self) -> bool:
        """
        Count one elapsed second.

        Returns:
            True if the tick was counted
        """
        fire = False
        with self._lock:
            if not self._running or self._paused:
                return False

            self._remaining = max(0, self._remaining - 1)
            if self._remaining == 0:
                self._running = False
                if not self._expired:
                    self._expired = True
                    fire = True

        if fire and self.on_expire:
            self.on_expire()
        return True

    def to_dict(self) -> dict:
        return {
            "time_limit_seconds": self.limit,
            "time_remaining_seconds": self._remaining,
            "is_running": self._running,
            "is_paused": self._paused,
            "progress_percent": round(self.progress_percent, 1),
        }


class AsyncTicker:
    """
    Drives a CountdownTimer from the event loop.
    The sleep coroutine is injectable so tests can run without waiting.
    """

    def __init__(
        self,
        timer: CountdownTimer,
        interval: Optional[float] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.timer = timer
        self.interval = interval if interval is not None else config.interview.tick_interval_seconds
        self._sleep = sleep
        self._task: Optional[asyncio.Task] = None

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self):
        """Begin ticking. A ticker already in flight keeps its cadence."""
        if self.active:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self):
        while self.timer.is_running:
            await self._sleep(self.interval)
            self.timer.tick()

    def cancel(self):
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

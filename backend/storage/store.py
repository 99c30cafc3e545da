"""
Durable candidate store.
The whole application state is one JSON blob under one key, rewritten on
every mutation.
"""
import math
import os
import time
import logging
import tempfile
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from models.schemas import ApplicationState, CandidateRecord, CandidateStatus
from utils.config import config

logger = logging.getLogger(__name__)


class BlobStore:
    """Key-addressed blob storage.

    Replace this with another backend without changing the candidate store.
    """

    def load(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def save(self, key: str, blob: str) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError


class InMemoryBlobStore(BlobStore):
    def __init__(self) -> None:
        self.blobs: Dict[str, str] = {}

    def load(self, key: str) -> Optional[str]:
        return self.blobs.get(key)

    def save(self, key: str, blob: str) -> None:
        self.blobs[key] = blob

    def delete(self, key: str) -> None:
        self.blobs.pop(key, None)


class JsonFileBlobStore(BlobStore):
    """One <key>.json file per key, replaced atomically on save."""

    def __init__(self, directory: Optional[str] = None) -> None:
        self.directory = directory or config.storage.data_dir

    def _path(self, key: str) -> str:
        return os.path.join(self.directory, f"{key}.json")

    def load(self, key: str) -> Optional[str]:
        try:
            with open(self._path(key), "r", encoding="utf-8") as f:
                return f.read()
        except FileNotFoundError:
            return None

    def save(self, key: str, blob: str) -> None:
        os.makedirs(self.directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(blob)
            os.replace(tmp_path, self._path(key))
        except OSError:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def delete(self, key: str) -> None:
        try:
            os.unlink(self._path(key))
        except FileNotFoundError:
            pass


class CandidateStore:
    """
    Candidate records plus the active-candidate pointer.

    Every mutating call is written through to the blob store before it
    returns. If the write fails the in-memory state stays authoritative.
    """

    SORT_KEYS = {
        "score": lambda c: c.score,
        "date": lambda c: c.started_at,
        "name": lambda c: c.name.casefold(),
    }

    def __init__(self, blob_store: Optional[BlobStore] = None, key: Optional[str] = None):
        self.blob_store = blob_store or JsonFileBlobStore()
        self.key = key or config.storage.storage_key
        self.state = self._load()

    # ========================================
    # Persistence
    # ========================================

    def _load(self) -> ApplicationState:
        try:
            blob = self.blob_store.load(self.key)
        except OSError as e:
            logger.error(f"Failed to read application state: {e}")
            return ApplicationState()

        if not blob:
            return ApplicationState()

        try:
            state = ApplicationState.model_validate_json(blob)
        except (ValidationError, ValueError) as e:
            logger.warning(f"Stored application state is corrupt, starting empty: {e}")
            return ApplicationState()

        logger.info(f"Loaded {len(state.candidates)} candidates (active={state.active_candidate_id})")
        return state

    def _flush(self):
        try:
            self.blob_store.save(self.key, self.state.model_dump_json())
        except OSError as e:
            logger.error(f"Failed to save application state, continuing in memory: {e}")

    def _index_of(self, candidate_id: str) -> Optional[int]:
        for i, candidate in enumerate(self.state.candidates):
            if candidate.id == candidate_id:
                return i
        return None

    # ========================================
    # Records
    # ========================================

    def _new_id(self) -> str:
        stamp = int(time.time() * 1000)
        while self._index_of(str(stamp)) is not None:
            stamp += 1
        return str(stamp)

    def create(self, fields: Dict[str, Any]) -> str:
        """Add a new candidate record and return its id."""
        candidate_id = self._new_id()
        record = CandidateRecord(**{**fields, "id": candidate_id})
        self.state.candidates.append(record)
        self._flush()
        return candidate_id

    def update(self, candidate_id: str, patch: Dict[str, Any]):
        """Shallow-merge patch into the record. Unknown ids are ignored."""
        index = self._index_of(candidate_id)
        if index is None:
            logger.warning(f"update() for unknown candidate {candidate_id}, ignoring")
            return

        current = self.state.candidates[index]
        merged = {**current.model_dump(), **patch, "id": current.id}
        self.state.candidates[index] = CandidateRecord.model_validate(merged)
        self._flush()

    def get(self, candidate_id: str) -> Optional[CandidateRecord]:
        index = self._index_of(candidate_id)
        if index is None:
            return None
        return self.state.candidates[index].model_copy(deep=True)

    def list(self) -> List[CandidateRecord]:
        return [c.model_copy(deep=True) for c in self.state.candidates]

    def remove(self, candidate_id: str):
        self.state.candidates = [c for c in self.state.candidates if c.id != candidate_id]
        if self.state.active_candidate_id == candidate_id:
            self.state.active_candidate_id = None
        self._flush()

    def clear(self):
        """Drop every record and the active pointer."""
        self.state = ApplicationState()
        self._flush()

    # ========================================
    # Active candidate
    # ========================================

    @property
    def active_id(self) -> Optional[str]:
        return self.state.active_candidate_id

    def set_active(self, candidate_id: Optional[str]):
        self.state.active_candidate_id = candidate_id
        self._flush()

    def active(self) -> Optional[CandidateRecord]:
        if self.state.active_candidate_id is None:
            return None
        return self.get(self.state.active_candidate_id)

    # ========================================
    # Dashboard queries
    # ========================================

    def query(
        self,
        search: str = "",
        status: Optional[CandidateStatus] = None,
        sort_by: str = "score",
        descending: bool = True,
    ) -> List[CandidateRecord]:
        """
        Filter and sort candidates for the interviewer dashboard.

        Args:
            search: Case-insensitive match against name or email
            status: Only candidates with this status
            sort_by: One of "score", "date", "name"
            descending: Sort direction

        Returns:
            Matching candidate records
        """
        if sort_by not in self.SORT_KEYS:
            raise ValueError(f"Unknown sort key: {sort_by}")

        term = (search or "").casefold()
        matches = [
            c for c in self.list()
            if (not term or term in c.name.casefold() or term in c.email.casefold())
            and (status is None or c.status == status)
        ]
        return sorted(matches, key=self.SORT_KEYS[sort_by], reverse=descending)

    def stats(self) -> Dict[str, Any]:
        """Dashboard summary over every stored candidate."""
        candidates = self.state.candidates
        average = sum(c.score for c in candidates) / len(candidates) if candidates else 0
        return {
            "total": len(candidates),
            "completed": sum(1 for c in candidates if c.status == CandidateStatus.COMPLETED),
            "in_progress": sum(1 for c in candidates if c.status == CandidateStatus.IN_PROGRESS),
            "average_score": math.floor(average + 0.5),
        }

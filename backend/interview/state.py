"""
Interview session state machine.
Drives one candidate through upload, info collection, the six timed
questions and completion, and resumes an interrupted interview after a
restart.
"""
import asyncio
import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from interview.agents import EvaluationOrchestrator
from interview.questions import QuestionSequencer
from interview.timer import AsyncTicker, CountdownTimer
from interview.validation import validate_info
from models.schemas import (
    AnswerRecord,
    CandidateRecord,
    CandidateStatus,
    ExtractedInfo,
    InterviewSession,
    Question,
    WorkflowStep,
)
from storage.store import CandidateStore
from utils.config import config
from utils.errors import InfoValidationError, InvalidTransitionError

logger = logging.getLogger(__name__)


class InterviewSessionController:
    """
    Coordinates the interview workflow for the single active candidate.

    The candidate store is the only durable state. Questions are held in
    memory and regenerated from the resume text when an interview resumes.
    """

    def __init__(
        self,
        store: CandidateStore,
        orchestrator: EvaluationOrchestrator,
        ticker_factory: Optional[Callable[[CountdownTimer], Any]] = None,
        auto_start_timer: bool = True,
    ):
        """
        Args:
            store: Durable candidate store
            orchestrator: Evaluator wrapper for questions, scores and summaries
            ticker_factory: Builds the driver that ticks the timer (AsyncTicker by default)
            auto_start_timer: Start each question's countdown as soon as it is shown
        """
        self.store = store
        self.orchestrator = orchestrator
        self.auto_start_timer = auto_start_timer

        self.session = InterviewSession()
        self.sequencer: Optional[QuestionSequencer] = None

        self.timer = CountdownTimer(0, on_expire=self._on_timer_expired)
        self._ticker = (ticker_factory or AsyncTicker)(self.timer)
        self._expiry_task: Optional[asyncio.Task] = None

        self.draft = ""

        # Submission guard: index of the question being scored, the candidate
        # it belongs to, and at most one expiry waiting for it to finish
        self._in_flight: Optional[int] = None
        self._in_flight_candidate: Optional[str] = None
        self._pending_expiry: Optional[int] = None

        active = store.active()
        self.welcome_back = active is not None and active.status != CandidateStatus.COMPLETED
        if self.welcome_back:
            logger.info(f"Found interrupted interview for candidate {active.id}")

    # ========================================
    # Read-only views
    # ========================================

    @property
    def step(self) -> WorkflowStep:
        return self.session.step

    @property
    def missing_fields(self) -> List[str]:
        return list(self.session.missing_fields)

    @property
    def current_candidate(self) -> Optional[CandidateRecord]:
        if self.session.candidate_id:
            return self.store.get(self.session.candidate_id)
        if self.welcome_back:
            return self.store.active()
        return None

    @property
    def current_question(self) -> Optional[Question]:
        if self.step != WorkflowStep.INTERVIEW or self.sequencer is None:
            return None
        candidate = self.current_candidate
        if candidate is None:
            return None
        return self.sequencer.at(candidate.current_question_index)

    def snapshot(self) -> Dict[str, Any]:
        """Everything the presentation layer needs to render the current step."""
        candidate = self.current_candidate
        question = self.current_question

        return {
            "step": self.step.value,
            "welcome_back": self.welcome_back,
            "missing_fields": self.missing_fields,
            "question": question.model_dump(mode="json") if question else None,
            "question_number": candidate.current_question_index + 1 if question and candidate else None,
            "total_questions": config.interview.total_questions,
            "timer": self.timer.to_dict() if question else None,
            "submitting": self._in_flight is not None,
            "candidate": candidate.model_dump(mode="json") if candidate else None,
        }

    # ========================================
    # Guards
    # ========================================

    def _require_step(self, *steps: WorkflowStep):
        if self.welcome_back:
            raise InvalidTransitionError("An interrupted interview must be continued or restarted first")
        if self.step not in steps:
            allowed = ", ".join(s.value for s in steps)
            raise InvalidTransitionError(f"Not allowed in step '{self.step.value}' (expected {allowed})")

    def _require_candidate(self) -> CandidateRecord:
        candidate = self.current_candidate
        if candidate is None:
            raise InvalidTransitionError("No candidate in this session")
        return candidate

    def _go_to(self, step: WorkflowStep):
        if step != self.session.step:
            logger.info(f"Workflow step: {self.session.step.value} -> {step.value}")
        self.session.step = step

    # ========================================
    # Upload and info collection
    # ========================================

    async def upload_resume(self, extracted: ExtractedInfo) -> CandidateRecord:
        """
        Create a candidate from extracted resume info.

        Goes to info collection when contact fields are missing, otherwise
        straight into the interview.
        """
        self._require_step(WorkflowStep.UPLOAD)

        candidate_id = self.store.create({
            "name": extracted.name or "",
            "email": extracted.email or "",
            "phone": extracted.phone or "",
            "resume_text": extracted.text,
            "status": CandidateStatus.INCOMPLETE,
            "current_question_index": 0,
            "started_at": datetime.now(),
        })
        self.store.set_active(candidate_id)

        missing = extracted.missing_fields()
        self.session = InterviewSession(candidate_id=candidate_id, missing_fields=missing)
        logger.info(f"Created candidate {candidate_id} (missing fields: {missing or 'none'})")

        if missing:
            self._go_to(WorkflowStep.INFO_COLLECTION)
        else:
            await self._start_interview(candidate_id, extracted.text)

        return self.store.get(candidate_id)

    async def submit_info(self, name: str = "", email: str = "", phone: str = "") -> CandidateRecord:
        """
        Validate and store contact fields, then start the interview.

        Missing fields must pass validation. Fields already extracted from
        the resume are re-validated only if they were changed; blank values
        leave them as they are.

        Raises:
            InfoValidationError: with a message per failing field
        """
        self._require_step(WorkflowStep.INFO_COLLECTION)
        candidate = self._require_candidate()

        values = {"name": name.strip(), "email": email.strip(), "phone": phone.strip()}
        changed = [f for f, v in values.items() if v and v != getattr(candidate, f)]
        to_check = set(self.session.missing_fields) | set(changed)

        errors = validate_info(values, to_check)
        if errors:
            raise InfoValidationError(errors)

        self.store.update(candidate.id, {f: values[f] for f in to_check})
        self.session.missing_fields = []

        await self._start_interview(candidate.id, candidate.resume_text)
        return self.store.get(candidate.id)

    # ========================================
    # Interview
    # ========================================

    async def _start_interview(self, candidate_id: str, resume_text: str) -> bool:
        """Generate questions and enter the interview. Leaves the step unchanged on failure."""
        try:
            questions = await self.orchestrator.generate_questions(resume_text)
            sequencer = QuestionSequencer(questions)
        except Exception as e:
            logger.error(f"Failed to generate questions for candidate {candidate_id}: {e}")
            return False

        self.sequencer = sequencer
        self.store.update(candidate_id, {"status": CandidateStatus.IN_PROGRESS})
        self._go_to(WorkflowStep.INTERVIEW)
        self._arm_timer()
        return True

    def update_draft(self, text: str):
        """Remember the answer being typed. Auto-submitted on expiry."""
        self.draft = (text or "")[:config.interview.max_answer_length]

    async def submit_answer(
        self,
        text: str,
        time_used_seconds: int,
        auto: bool = False,
        question_index: Optional[int] = None,
    ) -> Optional[AnswerRecord]:
        """
        Score and record the answer to the current question.

        Only one submission runs at a time. Repeated triggers for the
        question being scored are dropped; an expiry for a later question is
        held until the running one finishes.

        Args:
            text: The answer text
            time_used_seconds: Seconds spent, clamped to the question's limit
            auto: True when triggered by timer expiry (blank answers allowed)
            question_index: Question the trigger belongs to (defaults to current)

        Returns:
            The new AnswerRecord, or None if the trigger was ignored
        """
        self._require_step(WorkflowStep.INTERVIEW)
        candidate = self._require_candidate()
        index = candidate.current_question_index if question_index is None else question_index

        if self._in_flight is not None:
            if auto and index > self._in_flight:
                logger.info(f"Expiry for question {index + 1} queued behind question {self._in_flight + 1}")
                self._pending_expiry = index
            else:
                logger.info(f"Submission for question {index + 1} ignored, one already in flight")
            return None

        if index != candidate.current_question_index:
            logger.info(f"Stale submission for question {index + 1} ignored")
            return None

        answer_text = (text or "").strip()[:config.interview.max_answer_length]
        if not answer_text and not auto:
            return None

        question = self.sequencer.at(index)
        if question is None:
            return None

        self._in_flight = index
        self._in_flight_candidate = candidate.id
        self.timer.stop()
        self._ticker.cancel()
        try:
            record = await self._record_answer(
                candidate.id, index, question,
                answer_text or config.interview.no_answer_text,
                max(0, min(int(time_used_seconds), question.time_limit_seconds)),
            )
        finally:
            # A reset while scoring hands the guard to the new session
            owned = self._in_flight_candidate == candidate.id and self._in_flight == index
            if owned:
                self._in_flight = None
                self._in_flight_candidate = None

        if owned:
            await self._run_pending_expiry()
        return record

    async def _record_answer(
        self,
        candidate_id: str,
        index: int,
        question: Question,
        answer_text: str,
        time_used: int,
    ) -> Optional[AnswerRecord]:
        result = await self.orchestrator.score_answer(question, answer_text, time_used)
        if not self._still_current(candidate_id):
            return None

        record = AnswerRecord(
            question_id=question.id,
            question_text=question.text,
            answer_text=answer_text,
            difficulty=question.difficulty,
            time_limit_seconds=question.time_limit_seconds,
            time_used_seconds=time_used,
            score=result.score,
            feedback=result.feedback,
        )

        answers = self.store.get(candidate_id).answers + [record]
        patch: Dict[str, Any] = {"answers": answers, "current_question_index": index + 1}
        logger.info(f"Candidate {candidate_id} answered question {index + 1}: score {result.score}/10")

        if self.sequencer.is_last(index):
            summary = await self.orchestrator.generate_summary(answers)
            if not self._still_current(candidate_id):
                return None
            patch.update({
                "status": CandidateStatus.COMPLETED,
                "completed_at": datetime.now(),
                "score": summary.score,
                "summary": summary.summary,
            })
            self.store.update(candidate_id, patch)
            self.store.set_active(None)
            self.draft = ""
            self._go_to(WorkflowStep.COMPLETED)
            logger.info(f"Candidate {candidate_id} completed with score {summary.score}/100")
        else:
            self.store.update(candidate_id, patch)
            self.draft = ""
            self._arm_timer()

        return record

    def _still_current(self, candidate_id: str) -> bool:
        """False once the session moved on or the record was removed while scoring."""
        if self.session.candidate_id != candidate_id or self.store.get(candidate_id) is None:
            logger.warning(f"Candidate {candidate_id} left the session while scoring, answer dropped")
            return False
        return True

    async def _run_pending_expiry(self):
        pending, self._pending_expiry = self._pending_expiry, None
        if pending is None or self.step != WorkflowStep.INTERVIEW:
            return
        candidate = self.current_candidate
        if candidate is not None and candidate.current_question_index == pending:
            await self.expire_question(pending)

    async def expire_question(self, index: int) -> Optional[AnswerRecord]:
        """Auto-submit the draft for a question whose time ran out."""
        if self.step != WorkflowStep.INTERVIEW or self.sequencer is None:
            return None
        question = self.sequencer.at(index)
        if question is None:
            return None
        logger.info(f"Time is up for question {index + 1}")
        return await self.submit_answer(self.draft, question.time_limit_seconds, auto=True, question_index=index)

    # ========================================
    # Timer
    # ========================================

    def _on_timer_expired(self):
        candidate = self.current_candidate
        if candidate is None:
            return
        index = candidate.current_question_index
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("Timer expired outside the event loop, auto-submit skipped")
            return
        self._expiry_task = loop.create_task(self.expire_question(index))
        self._expiry_task.add_done_callback(self._log_expiry_failure)

    @staticmethod
    def _log_expiry_failure(task: asyncio.Task):
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Auto-submit after timeout failed: {error!r}")

    def _arm_timer(self):
        self._ticker.cancel()
        question = self.current_question
        if question is None:
            self.timer.stop()
            return
        self.timer.reset(question.time_limit_seconds)
        if self.auto_start_timer:
            self._start_countdown()

    def start_timer(self):
        """Start, or resume after a pause, the current question's countdown."""
        self._require_step(WorkflowStep.INTERVIEW)
        if self._in_flight is not None:
            return
        self._start_countdown()

    def _start_countdown(self):
        if self.timer.start():
            try:
                self._ticker.start()
            except RuntimeError:
                logger.warning("No running event loop, timer must be ticked manually")

    def pause_timer(self):
        self._require_step(WorkflowStep.INTERVIEW)
        self.timer.pause()
        self._ticker.cancel()

    resume_timer = start_timer

    # ========================================
    # Resume, restart, new interview
    # ========================================

    async def continue_session(self) -> WorkflowStep:
        """
        Resume the interrupted interview found at startup.

        Candidates who never answered a question go back to upload.
        Questions are regenerated from the stored resume text, so they may
        differ from the ones asked before the interruption; progress is kept.
        """
        if not self.welcome_back:
            raise InvalidTransitionError("There is no interrupted interview to continue")

        candidate = self.store.active()
        self.welcome_back = False

        if candidate is None or (candidate.current_question_index == 0 and not candidate.answers):
            self.store.set_active(None)
            self._go_to(WorkflowStep.UPLOAD)
            self.session = InterviewSession()
            return self.step

        self.session = InterviewSession(candidate_id=candidate.id)
        if not await self._start_interview(candidate.id, candidate.resume_text):
            # Offer the same choice again
            self.session = InterviewSession()
            self.welcome_back = True
        else:
            logger.info(f"Resumed candidate {candidate.id} at question {candidate.current_question_index + 1}")
        return self.step

    def restart_session(self) -> WorkflowStep:
        """Discard the interrupted interview and start over at upload."""
        if not self.welcome_back:
            raise InvalidTransitionError("There is no interrupted interview to restart")
        active_id = self.store.active_id
        if active_id is not None:
            logger.info(f"Discarding interrupted interview for candidate {active_id}")
            self.store.remove(active_id)
        self.store.set_active(None)
        self.welcome_back = False
        self._reset_session()
        return self.step

    def start_new(self) -> WorkflowStep:
        """Leave the current view and go back to upload. Stored records are kept."""
        if self.welcome_back:
            raise InvalidTransitionError("An interrupted interview must be continued or restarted first")
        if self.step != WorkflowStep.COMPLETED and self.session.candidate_id:
            logger.info(f"Abandoning session for candidate {self.session.candidate_id}")
        self.store.set_active(None)
        self._reset_session()
        return self.step

    def _reset_session(self):
        self.timer.stop()
        self._ticker.cancel()
        self.sequencer = None
        self.draft = ""
        self._in_flight = None
        self._in_flight_candidate = None
        self._pending_expiry = None
        self._go_to(WorkflowStep.UPLOAD)
        self.session = InterviewSession()

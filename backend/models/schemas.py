"""
Data models for the interview assistant.
Candidate records and application state are persisted; questions and
interview sessions are transient.
"""
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class CandidateStatus(str, Enum):
    INCOMPLETE = "incomplete"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class WorkflowStep(str, Enum):
    UPLOAD = "upload"
    INFO_COLLECTION = "info_collection"
    INTERVIEW = "interview"
    COMPLETED = "completed"


class Question(BaseModel):
    """A generated interview question. Never persisted on its own."""
    id: str
    text: str
    difficulty: Difficulty
    time_limit_seconds: int


class AnswerRecord(BaseModel):
    """One answered (or timed-out) question, snapshotted at submission."""
    question_id: str
    question_text: str
    answer_text: str
    difficulty: Difficulty
    time_limit_seconds: int
    time_used_seconds: int
    score: int  # 1-10
    feedback: str

    model_config = {"frozen": True}


class CandidateRecord(BaseModel):
    """One interview attempt."""
    id: str
    name: str = ""
    email: str = ""
    phone: str = ""
    resume_text: str = ""
    status: CandidateStatus = CandidateStatus.INCOMPLETE
    current_question_index: int = 0
    started_at: datetime = Field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None
    score: int = 0  # 0-100, set by the final summary
    summary: str = ""
    answers: List[AnswerRecord] = []


class ApplicationState(BaseModel):
    """Everything that survives a restart."""
    candidates: List[CandidateRecord] = []
    active_candidate_id: Optional[str] = None


class InterviewSession(BaseModel):
    """Live working set for the current visit. Rebuilt on resume."""
    candidate_id: Optional[str] = None
    step: WorkflowStep = WorkflowStep.UPLOAD
    missing_fields: List[str] = []


class ExtractedInfo(BaseModel):
    """Contact fields found in resume text. Absent fields are None."""
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    text: str = ""

    def missing_fields(self) -> List[str]:
        return [f for f in ("name", "email", "phone") if not getattr(self, f)]


class ScoreResult(BaseModel):
    score: int
    feedback: str


class SummaryResult(BaseModel):
    score: int
    summary: str


# ================================================================
# API request models
# ================================================================

class InfoSubmission(BaseModel):
    name: str = ""
    email: str = ""
    phone: str = ""


class AnswerSubmission(BaseModel):
    answer: str = ""
    time_used_seconds: int = 0


class DraftUpdate(BaseModel):
    text: str = ""

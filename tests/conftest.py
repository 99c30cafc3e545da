"""
Shared fixtures for the interview assistant tests.
"""
import pytest
from unittest.mock import Mock

from interview.agents import EvaluationOrchestrator, fallback_questions
from interview.state import InterviewSessionController
from llm.client import LLMResponse
from models.schemas import AnswerRecord, CandidateRecord, CandidateStatus
from storage.store import CandidateStore, InMemoryBlobStore


class FakeTicker:
    """Stands in for AsyncTicker; tests tick the timer by hand."""

    def __init__(self, timer):
        self.timer = timer
        self.starts = 0
        self.cancels = 0

    def start(self):
        self.starts += 1

    def cancel(self):
        self.cancels += 1


def offline_response() -> LLMResponse:
    return LLMResponse(content="", is_valid=False, raw_response={"error": "offline"})


def make_answer(index: int, score: int = 6) -> AnswerRecord:
    question = fallback_questions()[index]
    return AnswerRecord(
        question_id=question.id,
        question_text=question.text,
        answer_text=f"Answer {index + 1}",
        difficulty=question.difficulty,
        time_limit_seconds=question.time_limit_seconds,
        time_used_seconds=10,
        score=score,
        feedback="ok",
    )


def assert_record_consistent(record: CandidateRecord):
    assert record.current_question_index == len(record.answers)
    completed = record.status == CandidateStatus.COMPLETED
    assert completed == (len(record.answers) == 6)
    assert completed == (record.completed_at is not None)


@pytest.fixture
def blob_store():
    return InMemoryBlobStore()


@pytest.fixture
def store(blob_store):
    return CandidateStore(blob_store, key="test_state")


@pytest.fixture
def offline_llm():
    llm = Mock()
    llm.generate.return_value = offline_response()
    return llm


@pytest.fixture
def orchestrator(offline_llm):
    return EvaluationOrchestrator(offline_llm)


@pytest.fixture
def make_controller(orchestrator):
    def _make(store, **kwargs):
        kwargs.setdefault("ticker_factory", FakeTicker)
        return InterviewSessionController(store, kwargs.pop("orchestrator", orchestrator), **kwargs)
    return _make

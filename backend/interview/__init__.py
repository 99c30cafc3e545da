# Interview module
from .questions import QuestionSequencer, QUESTION_ORDER
from .timer import CountdownTimer, AsyncTicker
from .scoring import AnswerScorer
from .agents import EvaluationOrchestrator
from .state import InterviewSessionController

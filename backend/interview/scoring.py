"""
Answer scoring rules.
Deterministic local scoring used whenever the evaluator is unavailable,
plus the clamping applied to evaluator scores.
"""
import math
from typing import Any, List

from models.schemas import AnswerRecord, Question, ScoreResult, SummaryResult
from llm.prompts import FALLBACK_FEEDBACK, FALLBACK_SUMMARIES


class AnswerScorer:
    """
    Scores and summarizes candidate answers without the evaluator.
    """

    # (minimum answer length, base score), checked top to bottom
    LENGTH_TIERS = [
        (101, 7),
        (51, 5),
        (21, 3),
        (1, 2),
    ]

    # (time ratio ceiling, bonus)
    TIME_BONUSES = [
        (0.5, 2),
        (0.8, 1),
    ]

    # Per-answer interpretation thresholds (1-10 scale)
    INTERPRETATIONS = {
        (0, 6): "Needs improvement",
        (6, 8): "Good",
        (8, 10.1): "Excellent",
    }

    @staticmethod
    def clamp(value: Any, min_val: int, max_val: int, default: int) -> int:
        """Coerce to int and clamp. Non-numeric values become the default."""
        try:
            return max(min_val, min(max_val, int(round(float(value)))))
        except (TypeError, ValueError, OverflowError):
            return default

    @classmethod
    def length_score(cls, answer: str) -> int:
        length = len((answer or "").strip())
        for minimum, score in cls.LENGTH_TIERS:
            if length >= minimum:
                return score
        return 0

    @classmethod
    def time_bonus(cls, time_used: int, time_limit: int) -> int:
        if time_limit <= 0:
            return 0
        ratio = time_used / time_limit
        for ceiling, bonus in cls.TIME_BONUSES:
            if ratio < ceiling:
                return bonus
        return 0

    @classmethod
    def fallback_score(cls, question: Question, answer: str, time_used: int) -> ScoreResult:
        """
        Score an answer from its length and how quickly it was given.

        Args:
            question: The question that was answered
            answer: The candidate's answer
            time_used: Seconds spent on the answer

        Returns:
            ScoreResult with a score in [1, 10]
        """
        raw = cls.length_score(answer) + cls.time_bonus(time_used, question.time_limit_seconds)
        feedback = FALLBACK_FEEDBACK[len((answer or "").strip()) % len(FALLBACK_FEEDBACK)]

        return ScoreResult(score=cls.clamp(raw, 1, 10, 1), feedback=feedback)

    @classmethod
    def summary_for(cls, total_score: int) -> str:
        for minimum, summary in FALLBACK_SUMMARIES:
            if total_score >= minimum:
                return summary
        return FALLBACK_SUMMARIES[-1][1]

    @classmethod
    def fallback_summary(cls, answers: List[AnswerRecord]) -> SummaryResult:
        """
        Overall score is the mean answer score scaled to 100.

        Args:
            answers: All answer records of the interview

        Returns:
            SummaryResult with a score in [0, 100]
        """
        if not answers:
            total = 0
        else:
            mean = sum(a.score for a in answers) / len(answers)
            total = cls.clamp(math.floor(mean * 10 + 0.5), 0, 100, 0)

        return SummaryResult(score=total, summary=cls.summary_for(total))

    @classmethod
    def get_score_interpretation(cls, score: float) -> str:
        """Get human-readable interpretation of a 1-10 answer score."""
        for (low, high), interpretation in cls.INTERPRETATIONS.items():
            if low <= score < high:
                return interpretation
        return "Score out of range"

    @classmethod
    def get_recommendation(cls, total_score: int) -> str:
        """
        Get hiring recommendation based on the 0-100 interview score.
        """
        if total_score >= 80:
            return "Strong Hire"
        elif total_score >= 60:
            return "Hire"
        elif total_score >= 40:
            return "Maybe"
        else:
            return "No Hire"

"""
Evaluation orchestration for the interview assistant.
Wraps the three evaluator calls (questions, scoring, summary), each with a
deterministic local fallback of the same shape.
"""
import asyncio
import logging
from typing import Any, List, Optional

from llm.client import LLMClient
from llm.prompts import Prompts, FALLBACK_QUESTIONS
from interview.questions import QUESTION_ORDER, time_limit_for
from interview.scoring import AnswerScorer
from models.schemas import (
    AnswerRecord,
    Difficulty,
    Question,
    ScoreResult,
    SummaryResult,
)
from utils.cleaning import ResponseCleaner

# Set up logging
logger = logging.getLogger(__name__)


def fallback_questions() -> List[Question]:
    """The built-in question bank, with configured time limits."""
    return [
        Question(
            id=q["id"],
            text=q["text"],
            difficulty=Difficulty(q["difficulty"]),
            time_limit_seconds=time_limit_for(Difficulty(q["difficulty"])),
        )
        for q in FALLBACK_QUESTIONS
    ]


class EvaluationOrchestrator:
    """
    Sequences evaluator calls against the interview.
    No method raises because of the evaluator; every failure path ends in
    the local fallback.
    """

    def __init__(self, llm: Optional[LLMClient] = None):
        self.llm = llm or LLMClient()

    async def _complete(self, prompt: str, max_tokens: int, temperature: float) -> Optional[str]:
        """Run the blocking evaluator call off the event loop."""
        try:
            response = await asyncio.to_thread(self.llm.generate, prompt, max_tokens, temperature)
        except Exception as e:
            logger.warning(f"Evaluator call raised: {e}")
            return None

        if not response.is_valid:
            logger.warning(f"Evaluator response invalid: {response.raw_response}")
            return None

        logger.info(f"Raw evaluator response: {response.content[:200]}...")
        return response.content

    # ========================================
    # Question generation
    # ========================================

    @staticmethod
    def _build_questions(raw: Any) -> Optional[List[Question]]:
        """Validate the evaluator's array. Anything short of six well-formed entries is rejected."""
        if not isinstance(raw, list) or len(raw) != len(QUESTION_ORDER):
            return None

        questions = []
        for index, (entry, difficulty) in enumerate(zip(raw, QUESTION_ORDER)):
            if not isinstance(entry, dict):
                return None

            text = entry.get("text") or entry.get("question")
            if not isinstance(text, str) or not text.strip():
                return None

            declared = entry.get("difficulty", difficulty.value)
            if str(declared).lower() != difficulty.value:
                return None

            questions.append(Question(
                id=str(entry.get("id") or f"question-{index + 1}"),
                text=text.strip(),
                difficulty=difficulty,
                time_limit_seconds=time_limit_for(difficulty),
            ))

        return questions

    async def generate_questions(self, resume_text: str) -> List[Question]:
        """
        Generate the six interview questions for a resume.

        Args:
            resume_text: Raw extracted resume text (may be empty)

        Returns:
            Exactly six questions, two per difficulty, easy first
        """
        logger.info("Generating interview questions via evaluator...")
        content = await self._complete(Prompts.generate_questions(resume_text), max_tokens=1500, temperature=0.7)

        if content is not None:
            questions = self._build_questions(ResponseCleaner.extract_json_array(content))
            if questions:
                return questions
            logger.warning("Evaluator returned no usable question set, using fallback")

        return fallback_questions()

    # ========================================
    # Answer scoring
    # ========================================

    async def score_answer(self, question: Question, answer: str, time_used: int) -> ScoreResult:
        """
        Score one answer.

        Args:
            question: The question being answered
            answer: The candidate's answer text
            time_used: Seconds spent answering

        Returns:
            ScoreResult with a score in [1, 10]
        """
        content = await self._complete(Prompts.score_answer(question, answer, time_used), max_tokens=400, temperature=0.3)

        if content is not None:
            result = ResponseCleaner.extract_json_object(content)
            if result is not None and result.get("score") is not None:
                score = AnswerScorer.clamp(result["score"], 1, 10, default=-1)
                if score != -1:
                    feedback = result.get("feedback")
                    if not isinstance(feedback, str) or not feedback.strip():
                        feedback = "Answer received and evaluated."
                    return ScoreResult(score=score, feedback=feedback.strip())
            logger.warning("Evaluator score unparseable, using fallback")

        return AnswerScorer.fallback_score(question, answer, time_used)

    # ========================================
    # Final summary
    # ========================================

    async def generate_summary(self, answers: List[AnswerRecord]) -> SummaryResult:
        """
        Produce the overall interview score and summary.

        Args:
            answers: All answer records, in question order

        Returns:
            SummaryResult with a score in [0, 100]
        """
        content = await self._complete(Prompts.generate_summary(answers), max_tokens=600, temperature=0.3)

        if content is not None:
            result = ResponseCleaner.extract_json_object(content)
            if result is not None and result.get("score") is not None:
                score = AnswerScorer.clamp(result["score"], 0, 100, default=-1)
                if score != -1:
                    summary = result.get("summary")
                    if not isinstance(summary, str) or not summary.strip():
                        summary = "Interview completed successfully."
                    return SummaryResult(score=score, summary=summary.strip())
            logger.warning("Evaluator summary unparseable, using fallback")

        return AnswerScorer.fallback_summary(answers)

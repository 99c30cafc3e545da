"""
The fixed six-question set for one interview.
"""
from typing import List, Optional

from models.schemas import Difficulty, Question
from utils.config import config


# Difficulty of each slot, easy -> hard
QUESTION_ORDER: List[Difficulty] = [
    Difficulty(d)
    for d in config.interview.difficulty_order
    for _ in range(config.interview.questions_per_difficulty)
]


def time_limit_for(difficulty: Difficulty) -> int:
    """Seconds allowed for a question of this difficulty."""
    return config.interview.time_limits[Difficulty(difficulty).value]


class QuestionSequencer:
    """
    Holds the generated questions in order. Progress lives on the
    candidate record, not here.
    """

    def __init__(self, questions: List[Question]):
        if len(questions) != len(QUESTION_ORDER):
            raise ValueError(f"Expected {len(QUESTION_ORDER)} questions, got {len(questions)}")

        for index, (question, expected) in enumerate(zip(questions, QUESTION_ORDER)):
            if question.difficulty != expected:
                raise ValueError(
                    f"Question {index + 1} should be {expected.value}, got {question.difficulty.value}"
                )

        self._questions = list(questions)

    def __len__(self) -> int:
        return len(self._questions)

    def __iter__(self):
        return iter(self._questions)

    def at(self, index: int) -> Optional[Question]:
        if 0 <= index < len(self._questions):
            return self._questions[index]
        return None

    def is_last(self, index: int) -> bool:
        return index == len(self._questions) - 1

"""
Prompt templates for the answer evaluator.
Each prompt asks for exactly one JSON value so the response can be
extracted from surrounding text.
"""
from typing import List

from models.schemas import AnswerRecord, Question


class Prompts:
    """Collection of all evaluator prompts."""

    # ============================================================
    # QUESTION GENERATION
    # ============================================================

    @staticmethod
    def generate_questions(resume_text: str) -> str:
        """Prompt for the six-question interview set."""
        return f"""You are an interviewer. Based on this resume content, generate 6 technical interview questions.

RESUME:
{resume_text or 'No resume text available.'}

RULES:
1. Create 2 easy, 2 medium, and 2 hard questions, in that order.
2. Each question should be practical and test real-world skills.
3. Focus on full-stack development (React/Node.js) unless the resume points elsewhere.
4. Do NOT include any thinking or commentary.

Respond with ONLY this JSON array:

[
    {{ "id": "easy-1", "text": "...", "difficulty": "easy", "timeLimit": 20 }},
    {{ "id": "easy-2", "text": "...", "difficulty": "easy", "timeLimit": 20 }},
    {{ "id": "medium-1", "text": "...", "difficulty": "medium", "timeLimit": 60 }},
    {{ "id": "medium-2", "text": "...", "difficulty": "medium", "timeLimit": 60 }},
    {{ "id": "hard-1", "text": "...", "difficulty": "hard", "timeLimit": 120 }},
    {{ "id": "hard-2", "text": "...", "difficulty": "hard", "timeLimit": 120 }}
]"""

    # ============================================================
    # ANSWER SCORING
    # ============================================================

    @staticmethod
    def score_answer(question: Question, answer: str, time_used: int) -> str:
        """Prompt for scoring one answer."""
        return f"""You are an expert technical interviewer. Score this candidate's answer on a scale of 1-10.

QUESTION: {question.text}
DIFFICULTY: {question.difficulty.value}
TIME LIMIT: {question.time_limit_seconds} seconds
TIME USED: {time_used} seconds

CANDIDATE'S ANSWER: "{answer}"

Consider technical accuracy, completeness, time efficiency and practical understanding.
Give 2-3 sentences of constructive feedback.

Respond with ONLY this JSON:

{{
    "score": <1-10>,
    "feedback": "<constructive feedback>"
}}"""

    # ============================================================
    # FINAL SUMMARY
    # ============================================================

    @staticmethod
    def generate_summary(answers: List[AnswerRecord]) -> str:
        """Prompt for the overall assessment."""
        answers_text = "\n\n".join(
            f"Question {i + 1} ({a.difficulty.value}): {a.question_text}\n"
            f"Answer: {a.answer_text}\n"
            f"Score: {a.score}/10\n"
            f"Time: {a.time_used_seconds}s/{a.time_limit_seconds}s"
            for i, a in enumerate(answers)
        )

        return f"""You are an expert technical interviewer. Based on these interview answers, provide an overall assessment.

INTERVIEW RESULTS:
{answers_text}

Provide an overall score out of 100 and a 3-4 sentence summary covering
technical strengths and weaknesses, communication skills, and an overall recommendation.

Respond with ONLY this JSON:

{{
    "score": <0-100>,
    "summary": "<overall assessment>"
}}"""


# ============================================================
# FALLBACKS (used when the evaluator fails)
# ============================================================

FALLBACK_QUESTIONS = [
    {
        "id": "easy-1",
        "text": "What is the difference between let, const, and var in JavaScript?",
        "difficulty": "easy",
    },
    {
        "id": "easy-2",
        "text": "Explain what JSX is and how it differs from regular HTML.",
        "difficulty": "easy",
    },
    {
        "id": "medium-1",
        "text": "How would you handle state management in a large React application? Compare different approaches.",
        "difficulty": "medium",
    },
    {
        "id": "medium-2",
        "text": "Explain the event loop in Node.js and how it handles asynchronous operations.",
        "difficulty": "medium",
    },
    {
        "id": "hard-1",
        "text": "Design a scalable architecture for a real-time chat application with millions of users. "
                "Consider both frontend and backend aspects.",
        "difficulty": "hard",
    },
    {
        "id": "hard-2",
        "text": "Implement a custom React hook that manages a queue of API requests with retry logic "
                "and concurrent request limits.",
        "difficulty": "hard",
    },
]

FALLBACK_FEEDBACK = [
    "Good understanding of the concept. Consider providing more specific examples.",
    "Solid answer with room for improvement. Try to be more detailed in your explanations.",
    "Excellent response showing deep understanding of the topic.",
    "Basic understanding shown. Could benefit from more technical depth.",
    "Great answer! You demonstrate strong knowledge and practical experience.",
]

# (minimum score, summary), checked top to bottom
FALLBACK_SUMMARIES = [
    (80, "Excellent candidate with strong technical skills and deep understanding of full-stack development. "
         "Shows great problem-solving abilities and communication skills. Highly recommended for senior positions."),
    (60, "Good candidate with solid foundation in full-stack technologies. Demonstrates competent problem-solving "
         "skills with room for growth. Suitable for mid-level positions with mentorship."),
    (40, "Candidate shows basic understanding of concepts but needs significant development. May be suitable "
         "for junior positions with proper training and guidance."),
    (0, "Candidate requires substantial improvement in technical skills and understanding. Consider additional "
        "training or alternative roles better suited to current skill level."),
]

"""
Configuration settings for the AI Interview Assistant.
All settings can be overridden via environment variables.
"""
import os
from typing import Dict, Tuple
from dataclasses import dataclass, field


@dataclass
class LLMConfig:
    """Answer evaluator (LLM server) configuration."""
    provider: str = field(default_factory=lambda: os.getenv("LLM_PROVIDER", "llamacpp"))
    base_url: str = field(default_factory=lambda: os.getenv("LLM_URL", "http://localhost:9000"))
    completion_endpoint: str = "/completion"
    api_key: str = field(default_factory=lambda: os.getenv("GEMINI_API_KEY", ""))
    model: str = field(default_factory=lambda: os.getenv("LLM_MODEL", "gemini-2.5-flash"))
    gemini_api_base: str = "https://generativelanguage.googleapis.com/v1"
    timeout: int = 60
    max_retries: int = 2

    # Default generation parameters
    default_temperature: float = 0.7
    default_top_p: float = 0.9
    default_repeat_penalty: float = 1.1

    @property
    def completion_url(self) -> str:
        return f"{self.base_url}{self.completion_endpoint}"

    @property
    def gemini_url(self) -> str:
        return f"{self.gemini_api_base}/models/{self.model}:generateContent"


@dataclass
class StorageConfig:
    """Durable application state configuration."""
    data_dir: str = field(default_factory=lambda: os.getenv("INTERVIEW_DATA_DIR", "./data"))
    storage_key: str = "interview_assistant_data"


@dataclass
class InterviewConfig:
    """Interview flow configuration."""
    # Seconds allowed per question, by difficulty
    time_limits: Dict[str, int] = field(default_factory=lambda: {
        "easy": 20,
        "medium": 60,
        "hard": 120,
    })

    questions_per_difficulty: int = 2
    difficulty_order: Tuple[str, ...] = ("easy", "medium", "hard")

    max_answer_length: int = 2000
    no_answer_text: str = "No answer provided"

    # Resume upload policy
    max_resume_bytes: int = 10 * 1024 * 1024
    resume_mime_types: Tuple[str, ...] = (
        "application/pdf",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    )

    tick_interval_seconds: float = 1.0

    @property
    def total_questions(self) -> int:
        return self.questions_per_difficulty * len(self.difficulty_order)


class Config:
    """Main configuration class combining all config sections."""

    def __init__(self):
        self.llm = LLMConfig()
        self.storage = StorageConfig()
        self.interview = InterviewConfig()

    @classmethod
    def from_env(cls) -> "Config":
        """Create config from environment variables."""
        return cls()


# Global config instance
config = Config()

"""
Exceptions raised by the interview workflow.
"""
from typing import Dict


class InterviewError(Exception):
    """Base class for workflow errors surfaced to the caller."""


class UnsupportedResumeError(InterviewError):
    """Resume rejected before extraction (wrong type or too large)."""


class ResumeExtractionError(InterviewError):
    """Resume could not be read. The upload can be retried."""


class InvalidTransitionError(InterviewError):
    """Operation is not allowed in the current workflow step."""


class InfoValidationError(InterviewError):
    """One or more contact fields failed validation."""

    def __init__(self, errors: Dict[str, str]):
        self.errors = errors
        super().__init__("; ".join(f"{k}: {v}" for k, v in errors.items()))

"""
Question scorers for quiz attempts.

Each question family has its own module with a scorer exposing:
- validate(): Check the question is well formed for its type
- score(): Grade one response, all-or-nothing
"""

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .base import Scorer


class QuestionType(str, Enum):
    """Supported question types."""
    MULTIPLE_CHOICE = "MULTIPLE_CHOICE"
    TRUE_FALSE = "TRUE_FALSE"
    SHORT_ANSWER = "SHORT_ANSWER"
    ESSAY = "ESSAY"

    @property
    def takes_choices(self) -> bool:
        return self in (QuestionType.MULTIPLE_CHOICE, QuestionType.TRUE_FALSE)


# Scorer registry - populated by @register decorator
SCORERS: dict[QuestionType, "Scorer"] = {}


def register(*question_types: QuestionType):
    """Decorator to register a scorer for one or more question types."""
    def decorator(cls):
        instance = cls()
        for question_type in question_types:
            SCORERS[question_type] = instance
        return cls
    return decorator


def get_scorer(question_type: "str | QuestionType") -> "Scorer | None":
    """Get the scorer for a question type."""
    if isinstance(question_type, str):
        try:
            question_type = QuestionType(question_type.upper())
        except ValueError:
            return None
    return SCORERS.get(question_type)


# Import scorers to trigger registration
from . import choice
from . import short_answer
from . import essay

__all__ = [
    "QuestionType",
    "SCORERS",
    "get_scorer",
    "register",
]

"""
Base protocol and types for question scorers.
"""

from dataclasses import dataclass, field
from typing import Protocol

from coursepath.db.models import Question


@dataclass(frozen=True)
class ScoringRules:
    """Tunables that affect grading."""
    essay_min_chars: int = 10


@dataclass(frozen=True)
class QuestionResponse:
    """A learner's answer to one question, already validated for its type."""
    selected_answer_ids: frozenset[str] = frozenset()
    text: str | None = None


@dataclass
class ScoredResponse:
    """Result of scoring one question."""
    correct: bool
    points_earned: int
    points_possible: int
    correct_answer_ids: list[str] = field(default_factory=list)


def all_or_nothing(question: Question, correct: bool) -> ScoredResponse:
    return ScoredResponse(
        correct=correct,
        points_earned=question.points if correct else 0,
        points_possible=question.points,
        correct_answer_ids=sorted(a.id for a in question.correct_answers),
    )


class Scorer(Protocol):
    """Protocol for question scorers."""

    def validate(self, question: Question) -> list[str]:
        """Check the question definition. Returns a list of problems (empty if valid)."""
        ...

    def score(
        self,
        question: Question,
        response: QuestionResponse,
        rules: ScoringRules,
    ) -> ScoredResponse:
        """Grade the response and return the result."""
        ...

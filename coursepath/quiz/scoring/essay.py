"""
Essay scorer.

Placeholder auto-credit until manual grading exists: full points when the
trimmed response is longer than ``essay_min_chars``.
"""

from coursepath.db.models import Question

from . import QuestionType, register
from .base import QuestionResponse, ScoredResponse, ScoringRules


@register(QuestionType.ESSAY)
class EssayScorer:
    """Scorer for ESSAY questions."""

    def validate(self, question: Question) -> list[str]:
        return []

    def score(
        self,
        question: Question,
        response: QuestionResponse,
        rules: ScoringRules,
    ) -> ScoredResponse:
        correct = len((response.text or "").strip()) > rules.essay_min_chars
        return ScoredResponse(
            correct=correct,
            points_earned=question.points if correct else 0,
            points_possible=question.points,
        )

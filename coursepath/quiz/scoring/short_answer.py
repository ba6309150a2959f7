"""
Short answer scorer.

Lenient containment match: the trimmed, lower-cased response must contain any
trimmed, lower-cased correct answer text. A blank correct answer matches
anything; save_quiz refuses such questions at authoring time.
"""

from coursepath.db.models import Question

from . import QuestionType, register
from .base import QuestionResponse, ScoredResponse, ScoringRules, all_or_nothing


def _normalize(text: str | None) -> str:
    return (text or "").strip().lower()


@register(QuestionType.SHORT_ANSWER)
class ShortAnswerScorer:
    """Scorer for SHORT_ANSWER questions."""

    def validate(self, question: Question) -> list[str]:
        if not any(_normalize(a.text) for a in question.correct_answers):
            return ["needs at least one non-blank correct answer"]
        return []

    def score(
        self,
        question: Question,
        response: QuestionResponse,
        rules: ScoringRules,
    ) -> ScoredResponse:
        submitted = _normalize(response.text)
        expected = [_normalize(a.text) for a in question.correct_answers]
        correct = any(e in submitted for e in expected)
        return all_or_nothing(question, correct)

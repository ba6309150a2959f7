"""
Choice question scorer.

Multiple choice and true/false. Full credit only when the selected answer set
equals the correct answer set exactly; order and duplicates are ignored.
A question with no correct option credits an empty selection.
"""

from coursepath.db.models import Question

from . import QuestionType, register
from .base import QuestionResponse, ScoredResponse, ScoringRules, all_or_nothing


@register(QuestionType.MULTIPLE_CHOICE, QuestionType.TRUE_FALSE)
class ChoiceScorer:
    """Scorer for MULTIPLE_CHOICE and TRUE_FALSE questions."""

    def validate(self, question: Question) -> list[str]:
        problems = []
        if not question.answers:
            problems.append("needs at least one answer option")
        if not question.correct_answers:
            problems.append("needs at least one correct answer")
        if question.type == QuestionType.TRUE_FALSE.value:
            if len(question.answers) != 2:
                problems.append("true/false needs exactly two answers")
            if len(question.correct_answers) != 1:
                problems.append("true/false needs exactly one correct answer")
        return problems

    def score(
        self,
        question: Question,
        response: QuestionResponse,
        rules: ScoringRules,
    ) -> ScoredResponse:
        correct_ids = {a.id for a in question.correct_answers}
        correct = set(response.selected_answer_ids) == correct_ids
        return all_or_nothing(question, correct)

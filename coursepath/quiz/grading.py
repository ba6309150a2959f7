"""
Attempt grading.

Pure functions: turn a quiz's questions plus the learner's responses into
per-question results and a 0-100 score. No database access.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from coursepath.core.percent import percent_score
from coursepath.db.models import Question

from .scoring import get_scorer
from .scoring.base import QuestionResponse, ScoringRules


@dataclass
class QuestionOutcome:
    """Scoring outcome for one question."""
    question_id: str
    question_text: str
    question_type: str
    is_correct: bool
    points_earned: int
    points_possible: int
    selected_answer_ids: list[str] = field(default_factory=list)
    text_response: str | None = None
    correct_answer_ids: list[str] = field(default_factory=list)


@dataclass
class Grade:
    score: int
    earned_points: int
    possible_points: int
    results: list[QuestionOutcome]

    @property
    def correct_count(self) -> int:
        return sum(1 for r in self.results if r.is_correct)

    @property
    def total_questions(self) -> int:
        return len(self.results)


def grade_responses(
    questions: Sequence[Question],
    responses: Mapping[str, QuestionResponse],
    rules: ScoringRules,
) -> Grade:
    """
    Score every question of the quiz. Unanswered questions earn nothing.

    Raises:
        ValueError: a question has a type with no registered scorer
    """
    results = []
    for question in questions:
        scorer = get_scorer(question.type)
        if scorer is None:
            raise ValueError(f"No scorer for question type: {question.type}")

        response = responses.get(question.id, QuestionResponse())
        scored = scorer.score(question, response, rules)
        results.append(
            QuestionOutcome(
                question_id=question.id,
                question_text=question.text,
                question_type=question.type,
                is_correct=scored.correct,
                points_earned=scored.points_earned,
                points_possible=scored.points_possible,
                selected_answer_ids=sorted(response.selected_answer_ids),
                text_response=response.text,
                correct_answer_ids=scored.correct_answer_ids,
            )
        )

    earned = sum(r.points_earned for r in results)
    possible = sum(r.points_possible for r in results)
    return Grade(
        score=percent_score(earned, possible),
        earned_points=earned,
        possible_points=possible,
        results=results,
    )

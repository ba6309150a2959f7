"""
Quiz authoring for course instructors.

save_quiz() replaces a quiz's passing score and full question set in one
transaction. Each question is checked by its type's scorer before anything is
written, so a quiz is never left half-edited.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from loguru import logger
from pydantic import BaseModel, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from config import Settings, get_settings
from coursepath.core.errors import ValidationError
from coursepath.core.identity import Identity
from coursepath.db import queries
from coursepath.db.models import Answer, Question, new_id

from .scoring import QuestionType, get_scorer


class AnswerInput(BaseModel):
    text: str
    is_correct: bool = False


class QuestionInput(BaseModel):
    """One question as submitted by the quiz editor."""

    text: str = Field(..., min_length=1)
    type: QuestionType
    points: int = Field(default=1, gt=0)
    answers: list[AnswerInput] = Field(default_factory=list)


_questions_adapter = TypeAdapter(list[QuestionInput])


@dataclass
class QuizSummary:
    quiz_id: str
    passing_score: int
    question_count: int
    total_points: int


def parse_questions(raw: Sequence[QuestionInput | dict[str, Any]]) -> list[QuestionInput]:
    """Validate editor input into QuestionInput models."""
    try:
        return _questions_adapter.validate_python(
            [q.model_dump() if isinstance(q, QuestionInput) else q for q in raw]
        )
    except PydanticValidationError as e:
        errors = [
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        ]
        raise ValidationError("Invalid questions", errors=errors) from e


def save_quiz(
    session: Session,
    identity: Identity,
    quiz_id: str,
    passing_score: int | None,
    questions: Sequence[QuestionInput | dict[str, Any]],
    settings: Settings | None = None,
) -> QuizSummary:
    """
    Replace a quiz's settings and questions.

    A passing_score of None falls back to the configured default.

    Raises:
        NotFound: unknown quiz
        Unauthorized: caller does not own the course
        ValidationError: passing score out of range or malformed questions
    """
    quiz = queries.get_quiz(session, quiz_id)
    identity.require_course_owner(quiz.content_item.course)

    if passing_score is None:
        passing_score = (settings or get_settings()).default_passing_score

    errors: list[str] = []
    if not 0 <= passing_score <= 100:
        errors.append("passing_score: must be between 0 and 100")

    parsed = parse_questions(questions)
    built: list[Question] = []
    for position, entry in enumerate(parsed):
        question = Question(
            id=new_id(),
            text=entry.text,
            type=entry.type.value,
            points=entry.points,
            order=position,
            answers=[
                Answer(id=new_id(), text=a.text, is_correct=a.is_correct) for a in entry.answers
            ],
        )
        scorer = get_scorer(entry.type)
        for problem in scorer.validate(question):
            errors.append(f"questions.{position}: {problem}")
        built.append(question)

    if errors:
        raise ValidationError("Invalid quiz", errors=errors)

    quiz.passing_score = passing_score
    quiz.questions.clear()
    session.flush()
    quiz.questions.extend(built)
    session.flush()

    logger.info(f"Quiz {quiz.id} saved by {identity.user_id}: {len(built)} questions")
    return QuizSummary(
        quiz_id=quiz.id,
        passing_score=quiz.passing_score,
        question_count=len(built),
        total_points=sum(q.points for q in built),
    )

"""
Shared lookups used across the progression services.

Centralizing these keeps the "non-hidden items in order" and "passed quiz"
definitions in exactly one place; the lock evaluator and the completion
evaluator must agree on both.

Usage:
    from coursepath.db import queries

    items = queries.visible_items(session, course_id)
"""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from coursepath.core.errors import NotEnrolled, NotFound
from coursepath.db.models import (
    ContentItem,
    ContentProgress,
    Course,
    Enrollment,
    Quiz,
    QuizAttempt,
)


def get_course(session: Session, course_id: str) -> Course:
    course = session.get(Course, course_id)
    if course is None:
        raise NotFound("Course", course_id)
    return course


def get_item(session: Session, content_item_id: str) -> ContentItem:
    item = session.get(ContentItem, content_item_id)
    if item is None:
        raise NotFound("ContentItem", content_item_id)
    return item


def get_quiz(session: Session, quiz_id: str) -> Quiz:
    quiz = session.get(Quiz, quiz_id)
    if quiz is None:
        raise NotFound("Quiz", quiz_id)
    return quiz


def get_attempt(session: Session, attempt_id: str) -> QuizAttempt:
    attempt = session.get(QuizAttempt, attempt_id)
    if attempt is None:
        raise NotFound("QuizAttempt", attempt_id)
    return attempt


def find_enrollment(session: Session, learner_id: str, course_id: str) -> Enrollment | None:
    return session.scalar(
        select(Enrollment).where(
            Enrollment.learner_id == learner_id,
            Enrollment.course_id == course_id,
        )
    )


def require_enrollment(session: Session, learner_id: str, course_id: str) -> Enrollment:
    enrollment = find_enrollment(session, learner_id, course_id)
    if enrollment is None:
        raise NotEnrolled(learner_id, course_id)
    return enrollment


def visible_items(session: Session, course_id: str) -> list[ContentItem]:
    """Non-hidden items of a course in sequence order (ties broken by id)."""
    return list(
        session.scalars(
            select(ContentItem)
            .where(ContentItem.course_id == course_id, ContentItem.hidden.is_(False))
            .options(selectinload(ContentItem.quiz))
            .order_by(ContentItem.order, ContentItem.id)
        )
    )


def completed_item_ids(session: Session, learner_id: str, item_ids: Iterable[str]) -> set[str]:
    ids = list(item_ids)
    if not ids:
        return set()
    rows = session.scalars(
        select(ContentProgress.content_item_id).where(
            ContentProgress.learner_id == learner_id,
            ContentProgress.content_item_id.in_(ids),
            ContentProgress.is_completed.is_(True),
        )
    )
    return set(rows)


def passed_quiz_ids(session: Session, learner_id: str, quizzes: Iterable[Quiz]) -> set[str]:
    """
    Quizzes for which the learner has at least one attempt scoring at or above
    the quiz's passing score.
    """
    quiz_list = list(quizzes)
    if not quiz_list:
        return set()
    rows = session.execute(
        select(QuizAttempt.quiz_id, func.max(QuizAttempt.score))
        .where(
            QuizAttempt.learner_id == learner_id,
            QuizAttempt.quiz_id.in_([q.id for q in quiz_list]),
            QuizAttempt.completed_at.is_not(None),
        )
        .group_by(QuizAttempt.quiz_id)
    )
    best = {quiz_id: score for quiz_id, score in rows}
    return {q.id for q in quiz_list if q.id in best and best[q.id] >= q.passing_score}

"""
Sequential content locking.

An item unlocks once the item before it is satisfied:
- the learner has completed it, and
- if it is a quiz item, the learner has a passing attempt on its quiz

The first visible item is never locked. Hidden items are dropped before
locking is computed, so they never block anything.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from sqlalchemy.orm import Session

from coursepath.core.errors import NotFound, Unauthorized
from coursepath.core.identity import Identity
from coursepath.db import queries
from coursepath.db.models import ContentItem, Course
from coursepath.core.percent import percent_score


@dataclass
class ItemState:
    item_id: str
    title: str
    type: str
    order: int
    is_locked: bool
    is_completed: bool


@dataclass
class CourseOutline:
    """A learner's view of a course: item states plus overall progress."""
    course_id: str
    items: list[ItemState] = field(default_factory=list)
    completed_count: int = 0
    total: int = 0
    percent: int = 0
    next_item_id: str | None = None

    def state_of(self, item_id: str) -> ItemState | None:
        return next((s for s in self.items if s.item_id == item_id), None)


def is_satisfied(item: ContentItem, completed_ids: set[str], passed_quiz_ids: set[str]) -> bool:
    """Completed, and passed when the item carries a quiz."""
    if item.id not in completed_ids:
        return False
    if item.is_quiz and item.quiz is not None:
        return item.quiz.id in passed_quiz_ids
    return True


def compute_lock_states(
    items: Sequence[ContentItem],
    completed_ids: set[str],
    passed_quiz_ids: set[str],
) -> list[ItemState]:
    """
    Lock state for every visible item, in the order given.

    Args:
        items: course items in sequence order; hidden ones are skipped
        completed_ids: content item ids the learner has completed
        passed_quiz_ids: quiz ids with at least one passing attempt
    """
    states = []
    previous: ContentItem | None = None
    for item in items:
        if item.hidden:
            continue
        locked = previous is not None and not is_satisfied(previous, completed_ids, passed_quiz_ids)
        states.append(
            ItemState(
                item_id=item.id,
                title=item.title,
                type=item.type,
                order=item.order,
                is_locked=locked,
                is_completed=item.id in completed_ids,
            )
        )
        previous = item
    return states


class LockEvaluator:
    """Build course outlines and gate access to locked items."""

    def __init__(self, session: Session):
        self.session = session

    def evaluate(self, identity: Identity, course_id: str) -> CourseOutline:
        """
        Course outline for the caller.

        Learners must be enrolled. Course owners and admins see the outline
        with nothing locked.

        Raises:
            NotFound: unknown course
            NotEnrolled: learner not enrolled
        """
        course = queries.get_course(self.session, course_id)
        owner = identity.owns_course(course)
        if not owner:
            queries.require_enrollment(self.session, identity.user_id, course.id)
        return self.outline_for(course, identity.user_id, unlock_all=owner)

    def outline_for(self, course: Course, learner_id: str, unlock_all: bool = False) -> CourseOutline:
        items = queries.visible_items(self.session, course.id)
        item_ids = [i.id for i in items]
        completed = queries.completed_item_ids(self.session, learner_id, item_ids)
        passed = queries.passed_quiz_ids(
            self.session, learner_id, [i.quiz for i in items if i.quiz is not None]
        )

        states = compute_lock_states(items, completed, passed)
        if unlock_all:
            for state in states:
                state.is_locked = False

        completed_count = sum(1 for s in states if s.is_completed)
        next_item = next((s for s in states if not s.is_locked and not s.is_completed), None)
        return CourseOutline(
            course_id=course.id,
            items=states,
            completed_count=completed_count,
            total=len(states),
            percent=percent_score(completed_count, len(states)),
            next_item_id=next_item.item_id if next_item else None,
        )

    def ensure_unlocked(self, identity: Identity, content_item_id: str) -> ItemState:
        """
        Raises:
            NotFound: unknown or hidden item
            NotEnrolled: learner not enrolled
            Unauthorized: item is locked for the caller
        """
        item = queries.get_item(self.session, content_item_id)
        outline = self.evaluate(identity, item.course_id)
        state = outline.state_of(item.id)
        if state is None:
            raise NotFound("ContentItem", content_item_id)
        if state.is_locked:
            raise Unauthorized("Content is locked", content_item_id=item.id)
        return state

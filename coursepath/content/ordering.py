"""
Content ordering for course instructors.

reorder_item() moves an item one step up or down by swapping its ``order``
with the nearest neighbour. Both rows are written in the caller's
transaction; moving past either end is a no-op.
"""

from __future__ import annotations

from enum import Enum

from loguru import logger
from sqlalchemy import select
from sqlalchemy.orm import Session

from coursepath.core.errors import NotFound
from coursepath.core.identity import Identity
from coursepath.db import queries
from coursepath.db.models import ContentItem


class Direction(str, Enum):
    UP = "up"
    DOWN = "down"


def reorder_item(
    session: Session,
    identity: Identity,
    course_id: str,
    content_item_id: str,
    direction: Direction | str,
) -> list[str]:
    """
    Move an item one position. Returns the course's item ids in new order.

    Raises:
        NotFound: unknown course, or item not in the course
        Unauthorized: caller does not own the course
        ValueError: direction is not "up" or "down"
    """
    direction = Direction(direction)
    course = queries.get_course(session, course_id)
    identity.require_course_owner(course)

    items = list(
        session.scalars(
            select(ContentItem)
            .where(ContentItem.course_id == course.id)
            .order_by(ContentItem.order, ContentItem.id)
        )
    )
    index = next((i for i, item in enumerate(items) if item.id == content_item_id), None)
    if index is None:
        raise NotFound("ContentItem", content_item_id)

    neighbour = index - 1 if direction is Direction.UP else index + 1
    if not 0 <= neighbour < len(items):
        return [item.id for item in items]

    # Duplicate order values would make a swap invisible
    if len({item.order for item in items}) != len(items):
        for position, item in enumerate(items):
            item.order = position

    current, other = items[index], items[neighbour]
    current.order, other.order = other.order, current.order
    session.flush()

    logger.info(f"Item {current.id} moved {direction.value} in course {course.id}")
    items[index], items[neighbour] = other, current
    return [item.id for item in items]

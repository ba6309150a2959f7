"""
Progress Tracker.

Records per-learner, per-content completion and access timestamps:
- mark_complete: idempotent upsert to completed (NotStarted -> Completed, one-way)
- track_access: best-effort access timestamp, never raises
- record_quiz_pass: completion written by the quiz engine on a passing attempt

All writes are single INSERT ... ON CONFLICT statements keyed by
(learner_id, content_item_id), so repeated or concurrent calls leave exactly
one row.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from coursepath.core.clock import Clock, utcnow
from coursepath.core.identity import Identity
from coursepath.db import queries
from coursepath.db.models import ContentProgress, new_id
from coursepath.db.upsert import insert_for

CompletionHook = Callable[[str, str], Any]


@dataclass
class ProgressRecord:
    """Current progress of one learner on one content item."""

    learner_id: str
    content_item_id: str
    is_completed: bool
    score: int | None
    last_accessed_at: datetime
    completed_at: datetime | None

    @classmethod
    def from_row(cls, row: ContentProgress) -> ProgressRecord:
        return cls(
            learner_id=row.learner_id,
            content_item_id=row.content_item_id,
            is_completed=row.is_completed,
            score=row.score,
            last_accessed_at=row.last_accessed_at,
            completed_at=row.completed_at,
        )


class ProgressTracker:
    """
    Track content completion per learner.

    Args:
        session: SQLAlchemy session; the caller owns the transaction
        clock: time source (naive UTC)
        on_item_completed: called with (course_id, learner_id) after a
            completion write, used to trigger the course completion check
    """

    def __init__(
        self,
        session: Session,
        clock: Clock = utcnow,
        on_item_completed: CompletionHook | None = None,
    ):
        self.session = session
        self.clock = clock
        self.on_item_completed = on_item_completed

    def mark_complete(self, identity: Identity, content_item_id: str) -> ProgressRecord:
        """
        Mark a content item complete for the calling learner.

        Raises:
            NotFound: unknown content item
            NotEnrolled: caller has no enrollment in the item's course
        """
        item = queries.get_item(self.session, content_item_id)
        queries.require_enrollment(self.session, identity.user_id, item.course_id)

        self._upsert(identity.user_id, item.id, complete=True)
        record = self.get(identity.user_id, item.id)
        logger.debug(f"Item {item.id} completed by {identity.user_id}")

        if self.on_item_completed is not None:
            self.on_item_completed(item.course_id, identity.user_id)
        return record

    def track_access(self, identity: Identity, content_item_id: str) -> None:
        """
        Update last_accessed_at without completing the item.

        Non-critical telemetry: every failure is logged and swallowed. The
        write runs inside a savepoint, so a failed statement is rolled back
        on its own and the caller's transaction stays usable.
        """
        try:
            with self.session.begin_nested():
                item = queries.get_item(self.session, content_item_id)
                if queries.find_enrollment(self.session, identity.user_id, item.course_id) is None:
                    logger.debug(f"Access by non-enrolled user {identity.user_id} to {item.id} ignored")
                    return
                self._upsert(identity.user_id, item.id, complete=False)
        except Exception as e:  # Intentionally broad - access tracking must never fail the caller
            logger.warning(f"Access tracking failed for {content_item_id}: {e}")

    def record_quiz_pass(self, learner_id: str, content_item_id: str, score: int) -> ProgressRecord:
        """Complete a quiz item and record the passing score (caller already authorized)."""
        item = queries.get_item(self.session, content_item_id)
        self._upsert(learner_id, item.id, complete=True, score=score)
        record = self.get(learner_id, item.id)

        if self.on_item_completed is not None:
            self.on_item_completed(item.course_id, learner_id)
        return record

    def get(self, learner_id: str, content_item_id: str) -> ProgressRecord:
        row = self.session.scalars(
            select(ContentProgress)
            .where(
                ContentProgress.learner_id == learner_id,
                ContentProgress.content_item_id == content_item_id,
            )
            .execution_options(populate_existing=True)
        ).one()
        return ProgressRecord.from_row(row)

    def progress_map(self, learner_id: str, item_ids: Iterable[str]) -> dict[str, ProgressRecord]:
        """Progress rows for the given items, keyed by content item id (missing = not started)."""
        ids = list(item_ids)
        if not ids:
            return {}
        rows = self.session.scalars(
            select(ContentProgress)
            .where(
                ContentProgress.learner_id == learner_id,
                ContentProgress.content_item_id.in_(ids),
            )
            .execution_options(populate_existing=True)
        )
        return {row.content_item_id: ProgressRecord.from_row(row) for row in rows}

    def _upsert(
        self,
        learner_id: str,
        content_item_id: str,
        complete: bool,
        score: int | None = None,
    ) -> None:
        """
        INSERT ... ON CONFLICT (learner_id, content_item_id) DO UPDATE.

        Completion is one-way: an access never clears is_completed, and
        completed_at keeps the first completion time.
        """
        now = self.clock()
        table = ContentProgress.__table__

        stmt = insert_for(self.session, ContentProgress).values(
            id=new_id(),
            learner_id=learner_id,
            content_item_id=content_item_id,
            is_completed=complete,
            score=score,
            last_accessed_at=now,
            completed_at=now if complete else None,
        )

        update: dict[str, Any] = {"last_accessed_at": now}
        if complete:
            update["is_completed"] = True
            update["completed_at"] = func.coalesce(table.c.completed_at, now)
        if score is not None:
            update["score"] = score

        stmt = stmt.on_conflict_do_update(
            index_elements=["learner_id", "content_item_id"],
            set_=update,
        )
        self.session.execute(stmt)

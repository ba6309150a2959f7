"""
Course completion.

A course is complete for a learner when every visible item is completed and
every visible quiz item has a passing attempt. An empty course is complete.

The first time a course evaluates as complete, the learner's enrollment is
stamped with completed_at (compare-and-set, so it is written once). With
``auto_issue_certificates`` on, that transition also issues the certificate.
"""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger
from sqlalchemy import update
from sqlalchemy.orm import Session

from config import Settings, get_settings
from coursepath.core.clock import Clock, utcnow
from coursepath.db import queries
from coursepath.db.models import Enrollment


@dataclass
class Progress:
    completed: int
    total: int


@dataclass
class CompletionResult:
    completed: bool
    progress: Progress
    reason: str | None = None


class CompletionEvaluator:
    """
    Evaluate course completion and record the enrollment transition.

    Args:
        session: SQLAlchemy session; the caller owns the transaction
        settings: reads auto_issue_certificates
        clock: time source (naive UTC)
    """

    def __init__(
        self,
        session: Session,
        settings: Settings | None = None,
        clock: Clock = utcnow,
    ):
        self.session = session
        self.settings = settings or get_settings()
        self.clock = clock

    def compute_completion(self, course_id: str, learner_id: str) -> CompletionResult:
        """
        Evaluate completion for one learner.

        Raises:
            NotFound: unknown course
        """
        course = queries.get_course(self.session, course_id)
        items = queries.visible_items(self.session, course.id)
        completed_ids = queries.completed_item_ids(self.session, learner_id, [i.id for i in items])
        progress = Progress(
            completed=sum(1 for i in items if i.id in completed_ids),
            total=len(items),
        )

        quiz_items = [i for i in items if i.is_quiz and i.quiz is not None]
        passed = queries.passed_quiz_ids(self.session, learner_id, [i.quiz for i in quiz_items])
        for item in quiz_items:
            if item.quiz.id not in passed:
                return CompletionResult(
                    completed=False,
                    progress=progress,
                    reason=f"Quiz not passed: {item.title}",
                )

        if progress.completed < progress.total:
            return CompletionResult(
                completed=False,
                progress=progress,
                reason=f"{progress.completed} of {progress.total} items completed",
            )

        if self._mark_enrollment_complete(course.id, learner_id):
            logger.info(f"Course {course.id} completed by {learner_id}")
            if self.settings.auto_issue_certificates:
                self._auto_issue(course.id, learner_id)

        return CompletionResult(completed=True, progress=progress)

    def _mark_enrollment_complete(self, course_id: str, learner_id: str) -> bool:
        """Set Enrollment.completed_at once. True only for the call that set it."""
        result = self.session.execute(
            update(Enrollment)
            .where(
                Enrollment.learner_id == learner_id,
                Enrollment.course_id == course_id,
                Enrollment.completed_at.is_(None),
            )
            .values(completed_at=self.clock())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def _auto_issue(self, course_id: str, learner_id: str) -> None:
        from coursepath.certificates.issuer import CertificateIssuer

        issuer = CertificateIssuer(self.session, self.settings, self.clock, evaluator=self)
        certificate = issuer.issue_for_learner(learner_id, course_id)
        logger.info(f"Certificate {certificate.id} issued automatically")

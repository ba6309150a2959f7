"""
Progression Service.

Provides high-level operations for the CLI and web handlers:
- Mark content complete / track access
- Run quiz attempts
- Build course outlines and check locks
- Evaluate completion and issue certificates

Every call runs inside the session it was built with; wrap a service in
``session_scope()`` to get one transaction per operation.
"""

from __future__ import annotations

from sqlalchemy.orm import Session

from config import Settings, get_settings
from coursepath.certificates.issuer import CertificateIssuer
from coursepath.core.clock import Clock, utcnow
from coursepath.core.identity import Identity
from coursepath.progress.completion import CompletionEvaluator, CompletionResult
from coursepath.progress.locks import LockEvaluator
from coursepath.progress.tracker import ProgressTracker
from coursepath.quiz.engine import QuizEngine


class ProgressionService:
    """
    High-level service for learner progression.

    Coordinates between progress tracker, quiz engine, lock evaluator,
    completion evaluator and certificate issuer. Completing an item (directly
    or by passing a quiz) re-evaluates course completion.
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

        self.completion = CompletionEvaluator(session, self.settings, clock)
        self.tracker = ProgressTracker(
            session, clock=clock, on_item_completed=self._check_completion
        )
        self.quizzes = QuizEngine(session, self.settings, clock, tracker=self.tracker)
        self.locks = LockEvaluator(session)
        self.certificates = CertificateIssuer(session, self.settings, clock, evaluator=self.completion)

    def _check_completion(self, course_id: str, learner_id: str) -> CompletionResult:
        return self.completion.compute_completion(course_id, learner_id)

    # Shortcuts for the common learner flow

    def mark_complete(self, identity: Identity, content_item_id: str):
        return self.tracker.mark_complete(identity, content_item_id)

    def track_access(self, identity: Identity, content_item_id: str) -> None:
        self.tracker.track_access(identity, content_item_id)

    def outline(self, identity: Identity, course_id: str):
        return self.locks.evaluate(identity, course_id)

    def completion_for(self, identity: Identity, course_id: str) -> CompletionResult:
        return self.completion.compute_completion(course_id, identity.user_id)

    def issue_certificate(self, identity: Identity, course_id: str):
        return self.certificates.issue(identity, course_id)

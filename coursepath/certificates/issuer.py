"""
Certificate Issuer.

Issues one certificate per (learner, course) once the course is complete, and
verifies certificates for unauthenticated viewers.

Issuance is INSERT ... ON CONFLICT DO NOTHING on the unique
(learner_id, course_id) pair followed by a read, so concurrent calls all get
the same certificate.
"""

from __future__ import annotations

from datetime import datetime

from loguru import logger
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.orm import Session

from config import Settings, get_settings
from coursepath.core.clock import Clock, utcnow
from coursepath.core.errors import NotCompleted
from coursepath.core.identity import Identity
from coursepath.db import queries
from coursepath.db.models import Certificate, new_id
from coursepath.db.upsert import insert_for
from coursepath.progress.completion import CompletionEvaluator

UNKNOWN = "Unknown"


class IssuedCertificate(BaseModel):
    id: str
    learner_id: str
    course_id: str
    issued_at: datetime
    verification_url: str
    newly_issued: bool = False


class CertificateDetails(BaseModel):
    learner_name: str
    course_title: str
    instructor_name: str
    issued_at: datetime


class VerificationResult(BaseModel):
    valid: bool
    certificate: CertificateDetails | None = None


class CertificateIssuer:
    """
    Args:
        session: SQLAlchemy session; the caller owns the transaction
        settings: reads verification_base_url
        clock: time source (naive UTC)
        evaluator: completion evaluator to consult before issuing
    """

    def __init__(
        self,
        session: Session,
        settings: Settings | None = None,
        clock: Clock = utcnow,
        evaluator: CompletionEvaluator | None = None,
    ):
        self.session = session
        self.settings = settings or get_settings()
        self.clock = clock
        self.evaluator = evaluator or CompletionEvaluator(session, self.settings, clock)

    def issue(self, identity: Identity, course_id: str) -> IssuedCertificate:
        """
        Issue (or return) the caller's certificate for a course.

        Raises:
            NotFound: unknown course
            NotEnrolled: caller not enrolled
            NotCompleted: course not complete yet
        """
        return self.issue_for_learner(identity.user_id, course_id)

    def issue_for_learner(self, learner_id: str, course_id: str) -> IssuedCertificate:
        course = queries.get_course(self.session, course_id)
        queries.require_enrollment(self.session, learner_id, course.id)

        completion = self.evaluator.compute_completion(course.id, learner_id)
        if not completion.completed:
            logger.debug(f"Certificate refused for {learner_id}: {completion.reason}")
            raise NotCompleted(course.id, completion.reason)

        stmt = (
            insert_for(self.session, Certificate)
            .values(id=new_id(), learner_id=learner_id, course_id=course.id, issued_at=self.clock())
            .on_conflict_do_nothing(index_elements=["learner_id", "course_id"])
        )
        created = self.session.execute(stmt).rowcount == 1

        certificate = self.session.scalars(
            select(Certificate)
            .where(Certificate.learner_id == learner_id, Certificate.course_id == course.id)
            .execution_options(populate_existing=True)
        ).one()

        if created:
            logger.info(f"Certificate {certificate.id} issued to {learner_id} for course {course.id}")

        return IssuedCertificate(
            id=certificate.id,
            learner_id=certificate.learner_id,
            course_id=certificate.course_id,
            issued_at=certificate.issued_at,
            verification_url=self.verification_url(certificate.id),
            newly_issued=created,
        )

    def verify(self, certificate_id: str) -> VerificationResult:
        """Public lookup; unknown ids are reported invalid rather than raised."""
        certificate = self.session.get(Certificate, certificate_id)
        if certificate is None:
            return VerificationResult(valid=False)

        course = certificate.course
        instructor = course.instructor if course else None
        return VerificationResult(
            valid=True,
            certificate=CertificateDetails(
                learner_name=(certificate.learner.name if certificate.learner else None) or UNKNOWN,
                course_title=(course.title if course else None) or UNKNOWN,
                instructor_name=(instructor.name if instructor else None) or UNKNOWN,
                issued_at=certificate.issued_at,
            ),
        )

    def verification_url(self, certificate_id: str) -> str:
        base = self.settings.verification_base_url.rstrip("/")
        return f"{base}/verify/certificate/{certificate_id}"

"""
Error taxonomy for the progression core.

Every refusal the core can produce is a subclass of CoursepathError with a
stable ``code`` so callers (CLI, web handlers) can map them to responses
without string matching.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any


class CoursepathError(Exception):
    """Base class for all typed core errors."""

    code: str = "error"

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        """Serialize for API/CLI consumers."""
        payload: dict[str, Any] = {"error": self.code, "message": self.message}
        for key, value in self.details.items():
            payload[key] = value.isoformat() if isinstance(value, datetime) else value
        return payload


class Unauthorized(CoursepathError):
    code = "unauthorized"


class NotEnrolled(CoursepathError):
    code = "not_enrolled"

    def __init__(self, learner_id: str, course_id: str):
        super().__init__(
            "Not enrolled in this course", learner_id=learner_id, course_id=course_id
        )


class NotFound(CoursepathError):
    code = "not_found"

    def __init__(self, entity: str, entity_id: str):
        super().__init__(f"{entity} not found: {entity_id}", entity=entity, entity_id=entity_id)
        self.entity = entity
        self.entity_id = entity_id


class DuplicateSubmission(CoursepathError):
    code = "duplicate_submission"

    def __init__(self, attempt_id: str):
        super().__init__("Attempt already submitted", attempt_id=attempt_id)


class EmptyQuiz(CoursepathError):
    code = "empty_quiz"

    def __init__(self, quiz_id: str):
        super().__init__("Quiz has no questions", quiz_id=quiz_id)


class RetakeLimitExceeded(CoursepathError):
    code = "retake_limit_exceeded"

    def __init__(self, quiz_id: str, max_attempts: int):
        super().__init__(
            f"Maximum attempt limit reached ({max_attempts} attempts)",
            quiz_id=quiz_id,
            max_attempts=max_attempts,
        )
        self.max_attempts = max_attempts


class RetakeTooSoon(CoursepathError):
    code = "retake_too_soon"

    def __init__(self, quiz_id: str, retry_at: datetime):
        super().__init__(
            "Please wait before retaking the quiz", quiz_id=quiz_id, retry_at=retry_at
        )
        self.retry_at = retry_at


class NotCompleted(CoursepathError):
    """Course not finished yet. An expected state, not a fault."""

    code = "not_completed"

    def __init__(self, course_id: str, reason: str | None = None):
        super().__init__(reason or "Course not completed yet", course_id=course_id)
        self.reason = reason


class ValidationError(CoursepathError):
    code = "validation_error"

    def __init__(self, message: str, errors: list[str] | None = None):
        super().__init__(message, errors=errors or [])
        self.errors = errors or []

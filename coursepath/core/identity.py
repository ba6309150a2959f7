"""
Caller identity threaded explicitly into every core operation.

Identity issuance (sessions, tokens) belongs to an outer collaborator; the
core only trusts what it is handed and performs its own authorization.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from coursepath.core.errors import Unauthorized

if TYPE_CHECKING:
    from coursepath.db.models import Course


class Role(str, Enum):
    """Platform roles."""

    LEARNER = "learner"
    INSTRUCTOR = "instructor"
    ADMIN = "admin"


class Identity(BaseModel):
    """A trusted (user id, role) pair supplied by the identity collaborator."""

    model_config = ConfigDict(frozen=True)

    user_id: str = Field(..., min_length=1)
    role: Role = Role.LEARNER

    @classmethod
    def learner(cls, user_id: str) -> Identity:
        return cls(user_id=user_id, role=Role.LEARNER)

    @classmethod
    def instructor(cls, user_id: str) -> Identity:
        return cls(user_id=user_id, role=Role.INSTRUCTOR)

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def owns_course(self, course: Course) -> bool:
        """Admins own everything; instructors own the courses they teach."""
        if self.is_admin:
            return True
        return self.role == Role.INSTRUCTOR and course.instructor_id == self.user_id

    def require_course_owner(self, course: Course) -> None:
        if not self.owns_course(course):
            raise Unauthorized(
                "Course not found or unauthorized", course_id=course.id, user_id=self.user_id
            )

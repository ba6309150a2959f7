"""
Course structure models.

Users, courses and content items are owned by the CRUD collaborators; the core
reads them and writes only ContentItem.order (reordering) and
Enrollment.completed_at (completion).
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from coursepath.core.clock import utcnow
from coursepath.core.content import ContentPayload, ContentType, parse_payload

from .base import Base, new_id

if TYPE_CHECKING:
    from .quiz import Quiz


class User(Base):
    """Minimal user record: the core needs names for certificate verification."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str | None] = mapped_column(Text)
    email: Mapped[str | None] = mapped_column(Text, unique=True)
    role: Mapped[str] = mapped_column(String(20), default="learner")

    def __repr__(self) -> str:
        return f"<User id={self.id} role={self.role}>"


class Course(Base):
    __tablename__ = "courses"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    instructor_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False)
    published: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    instructor: Mapped[User] = relationship()
    items: Mapped[list[ContentItem]] = relationship(
        back_populates="course",
        order_by="ContentItem.order",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Course id={self.id} title={self.title!r}>"


class ContentItem(Base):
    """
    One unit of course material.

    ``payload`` holds the type-specific fields as JSON; use ``content`` to get
    the validated tagged variant.
    """

    __tablename__ = "content_items"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    course_id: Mapped[str] = mapped_column(
        ForeignKey("courses.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    order: Mapped[int] = mapped_column(Integer, nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    hidden: Mapped[bool] = mapped_column(Boolean, default=False)
    is_preview: Mapped[bool] = mapped_column(Boolean, default=False)
    payload: Mapped[dict[str, Any] | None] = mapped_column(JSON)

    course: Mapped[Course] = relationship(back_populates="items")
    quiz: Mapped[Quiz | None] = relationship(
        back_populates="content_item", uselist=False, cascade="all, delete-orphan"
    )

    __table_args__ = (Index("idx_content_items_course_order", "course_id", "order"),)

    def __repr__(self) -> str:
        return f"<ContentItem id={self.id} order={self.order} type={self.type}>"

    @property
    def is_quiz(self) -> bool:
        return self.type == ContentType.QUIZ.value

    @property
    def content(self) -> ContentPayload:
        """Validated payload; items created without one get an empty variant."""
        return parse_payload({"type": self.type, **(self.payload or {})})


class Enrollment(Base):
    """A learner's registration in a course. Active until completed_at is set."""

    __tablename__ = "enrollments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    learner_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False)
    course_id: Mapped[str] = mapped_column(
        ForeignKey("courses.id", ondelete="CASCADE"), nullable=False
    )
    enrolled_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime)

    course: Mapped[Course] = relationship()

    __table_args__ = (UniqueConstraint("learner_id", "course_id", name="uq_enrollment_learner_course"),)

    def __repr__(self) -> str:
        return f"<Enrollment learner={self.learner_id} course={self.course_id}>"

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None

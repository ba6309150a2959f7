"""
Learner progress models.

ContentProgress is created lazily on first access or completion and is unique
per (learner, content item). Certificate is unique per (learner, course); the
constraint is what makes issuance safe under concurrent calls.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from coursepath.core.clock import utcnow

from .base import Base, new_id
from .course import ContentItem, Course, User


class ContentProgress(Base):
    __tablename__ = "content_progress"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    learner_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False)
    content_item_id: Mapped[str] = mapped_column(
        ForeignKey("content_items.id", ondelete="CASCADE"), nullable=False
    )
    is_completed: Mapped[bool] = mapped_column(Boolean, default=False)
    score: Mapped[int | None] = mapped_column(Integer)
    last_accessed_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime)

    content_item: Mapped[ContentItem] = relationship()

    __table_args__ = (
        UniqueConstraint("learner_id", "content_item_id", name="uq_progress_learner_item"),
    )

    def __repr__(self) -> str:
        return (
            f"<ContentProgress learner={self.learner_id} item={self.content_item_id} "
            f"completed={self.is_completed}>"
        )


class Certificate(Base):
    __tablename__ = "certificates"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    learner_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False)
    course_id: Mapped[str] = mapped_column(
        ForeignKey("courses.id", ondelete="CASCADE"), nullable=False
    )
    issued_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    learner: Mapped[User] = relationship()
    course: Mapped[Course] = relationship()

    __table_args__ = (
        UniqueConstraint("learner_id", "course_id", name="uq_certificate_learner_course"),
    )

    def __repr__(self) -> str:
        return f"<Certificate id={self.id} learner={self.learner_id} course={self.course_id}>"

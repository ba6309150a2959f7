"""
Quiz models.

Implements:
- Quiz: 1:1 with a QUIZ content item, carries the passing score
- Question / Answer: ordered questions with their answer options
- QuizAttempt: one scored submission cycle (Started -> Submitted, terminal)
- AttemptResponse: what the learner answered (drafts and final answers)
- QuestionResult: per-question scoring outcome of a submitted attempt

Responses and results keep question_id without a foreign key: an instructor
may replace a quiz's questions after attempts exist, and the attempt's
record must survive that.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from coursepath.core.clock import utcnow

from .base import Base, new_id
from .course import ContentItem


class Quiz(Base):
    __tablename__ = "quizzes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    content_item_id: Mapped[str] = mapped_column(
        ForeignKey("content_items.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    passing_score: Mapped[int] = mapped_column(Integer, nullable=False, default=70)

    content_item: Mapped[ContentItem] = relationship(back_populates="quiz")
    questions: Mapped[list[Question]] = relationship(
        back_populates="quiz",
        order_by="Question.order",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Quiz id={self.id} passing={self.passing_score}>"

    @property
    def course_id(self) -> str:
        return self.content_item.course_id

    def is_passing(self, score: int) -> bool:
        return score >= self.passing_score


class Question(Base):
    __tablename__ = "questions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    quiz_id: Mapped[str] = mapped_column(ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    quiz: Mapped[Quiz] = relationship(back_populates="questions")
    answers: Mapped[list[Answer]] = relationship(
        back_populates="question",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Question id={self.id} type={self.type} points={self.points}>"

    @property
    def correct_answers(self) -> list[Answer]:
        return [a for a in self.answers if a.is_correct]


class Answer(Base):
    __tablename__ = "answers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    question_id: Mapped[str] = mapped_column(
        ForeignKey("questions.id", ondelete="CASCADE"), nullable=False
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)
    is_correct: Mapped[bool] = mapped_column(Boolean, default=False)

    question: Mapped[Question] = relationship(back_populates="answers")


class QuizAttempt(Base):
    """
    One attempt at a quiz.

    score and completed_at are written together, exactly once, by a
    compare-and-set update (see QuizEngine). focus_loss_count counts proctoring
    signals received while the attempt is open.
    """

    __tablename__ = "quiz_attempts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    learner_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False)
    quiz_id: Mapped[str] = mapped_column(ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False)
    score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    started_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime)
    focus_loss_count: Mapped[int] = mapped_column(Integer, default=0)
    forced: Mapped[bool] = mapped_column(Boolean, default=False)

    quiz: Mapped[Quiz] = relationship()
    responses: Mapped[list[AttemptResponse]] = relationship(
        back_populates="attempt", cascade="all, delete-orphan"
    )
    results: Mapped[list[QuestionResult]] = relationship(
        back_populates="attempt",
        order_by="QuestionResult.position",
        cascade="all, delete-orphan",
    )

    __table_args__ = (Index("idx_quiz_attempts_learner_quiz", "learner_id", "quiz_id"),)

    def __repr__(self) -> str:
        return f"<QuizAttempt id={self.id} score={self.score} completed={self.completed_at}>"

    @property
    def is_submitted(self) -> bool:
        return self.completed_at is not None


class AttemptResponse(Base):
    """The learner's answer to one question within an attempt."""

    __tablename__ = "attempt_responses"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    attempt_id: Mapped[str] = mapped_column(
        ForeignKey("quiz_attempts.id", ondelete="CASCADE"), nullable=False
    )
    question_id: Mapped[str] = mapped_column(String(36), nullable=False)
    selected_answer_ids: Mapped[list[str]] = mapped_column(JSON, default=list)
    text_response: Mapped[str | None] = mapped_column(Text)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    attempt: Mapped[QuizAttempt] = relationship(back_populates="responses")

    __table_args__ = (
        UniqueConstraint("attempt_id", "question_id", name="uq_attempt_response_question"),
    )


class QuestionResult(Base):
    """Scoring outcome for one question of a submitted attempt."""

    __tablename__ = "question_results"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    attempt_id: Mapped[str] = mapped_column(
        ForeignKey("quiz_attempts.id", ondelete="CASCADE"), nullable=False
    )
    question_id: Mapped[str] = mapped_column(String(36), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    question_text: Mapped[str] = mapped_column(Text, nullable=False)
    question_type: Mapped[str] = mapped_column(String(20), nullable=False)
    is_correct: Mapped[bool] = mapped_column(Boolean, nullable=False)
    points_earned: Mapped[int] = mapped_column(Integer, nullable=False)
    points_possible: Mapped[int] = mapped_column(Integer, nullable=False)
    selected_answer_ids: Mapped[list[str]] = mapped_column(JSON, default=list)
    text_response: Mapped[str | None] = mapped_column(Text)
    correct_answer_ids: Mapped[list[str]] = mapped_column(JSON, default=list)

    attempt: Mapped[QuizAttempt] = relationship(back_populates="results")

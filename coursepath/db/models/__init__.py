# SQLAlchemy models
from .base import Base, new_id
from .course import ContentItem, Course, Enrollment, User
from .progress import Certificate, ContentProgress
from .quiz import (
    Answer,
    AttemptResponse,
    Question,
    QuestionResult,
    Quiz,
    QuizAttempt,
)

__all__ = [
    # Base
    "Base",
    "new_id",
    # Course structure
    "User",
    "Course",
    "ContentItem",
    "Enrollment",
    # Quiz
    "Quiz",
    "Question",
    "Answer",
    "QuizAttempt",
    "AttemptResponse",
    "QuestionResult",
    # Progress
    "ContentProgress",
    "Certificate",
]

"""
Core Module - Shared types used by every service.

Components:
- errors: Typed error taxonomy (CoursepathError and subclasses)
- identity: Explicit caller identity (Identity, Role)
- content: Content types and tagged payload variants
- clock: Naive-UTC time source
- percent: Half-up integer percentages
- logging: Loguru sink configuration
"""

from coursepath.core.clock import Clock, utcnow
from coursepath.core.content import (
    Attachment,
    ContentPayload,
    ContentType,
    DocumentContent,
    ImageContent,
    QuizContent,
    TextContent,
    VideoContent,
    dump_payload,
    parse_payload,
)
from coursepath.core.errors import (
    CoursepathError,
    DuplicateSubmission,
    EmptyQuiz,
    NotCompleted,
    NotEnrolled,
    NotFound,
    RetakeLimitExceeded,
    RetakeTooSoon,
    Unauthorized,
    ValidationError,
)
from coursepath.core.identity import Identity, Role
from coursepath.core.percent import percent_score

__all__ = [
    # Time
    "Clock",
    "utcnow",
    # Numbers
    "percent_score",
    # Content
    "Attachment",
    "ContentPayload",
    "ContentType",
    "DocumentContent",
    "ImageContent",
    "QuizContent",
    "TextContent",
    "VideoContent",
    "dump_payload",
    "parse_payload",
    # Errors
    "CoursepathError",
    "DuplicateSubmission",
    "EmptyQuiz",
    "NotCompleted",
    "NotEnrolled",
    "NotFound",
    "RetakeLimitExceeded",
    "RetakeTooSoon",
    "Unauthorized",
    "ValidationError",
    # Identity
    "Identity",
    "Role",
]

"""
Content item types and their payloads.

Each content type carries only the fields that are valid for it. The payload
is stored as JSON on the content item and validated here, at the boundary,
both on the way in and on the way out.

Payload shapes:

VIDEO:
    {"type": "VIDEO", "url": "https://...", "duration_seconds": 300, "attachments": [...]}

TEXT:
    {"type": "TEXT", "body_markdown": "# Heading ...", "attachments": [...]}

QUIZ:
    {"type": "QUIZ", "attachments": [...]}   (questions live in the quiz tables)

IMAGE:
    {"type": "IMAGE", "url": "/uploads/diagram.png", "alt_text": "..."}

DOCUMENT:
    {"type": "DOCUMENT", "url": "https://.../handout.pdf"}
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError

from coursepath.core.errors import ValidationError


class ContentType(str, Enum):
    """Course content item types."""

    VIDEO = "VIDEO"
    TEXT = "TEXT"
    QUIZ = "QUIZ"
    IMAGE = "IMAGE"
    DOCUMENT = "DOCUMENT"


# Absolute http(s) URLs or paths served by the upload collaborator
_URL_PATTERN = re.compile(r"^(https?://.+|/uploads/.+)$")


def _check_url(value: str) -> str:
    if not _URL_PATTERN.match(value):
        raise ValueError("Invalid URL or upload path")
    return value


class Attachment(BaseModel):
    """A downloadable file attached to a content item."""

    name: str = Field(..., min_length=1, max_length=255)
    url: str

    @field_validator("url")
    @classmethod
    def _validate_url(cls, value: str) -> str:
        return _check_url(value)


class _PayloadBase(BaseModel):
    attachments: list[Attachment] = Field(default_factory=list)


class VideoContent(_PayloadBase):
    type: Literal["VIDEO"] = "VIDEO"
    url: str
    duration_seconds: int | None = Field(default=None, ge=0)

    @field_validator("url")
    @classmethod
    def _validate_url(cls, value: str) -> str:
        return _check_url(value)


class TextContent(_PayloadBase):
    type: Literal["TEXT"] = "TEXT"
    body_markdown: str = ""


class QuizContent(_PayloadBase):
    type: Literal["QUIZ"] = "QUIZ"


class ImageContent(_PayloadBase):
    type: Literal["IMAGE"] = "IMAGE"
    url: str
    alt_text: str | None = None

    @field_validator("url")
    @classmethod
    def _validate_url(cls, value: str) -> str:
        return _check_url(value)


class DocumentContent(_PayloadBase):
    type: Literal["DOCUMENT"] = "DOCUMENT"
    url: str

    @field_validator("url")
    @classmethod
    def _validate_url(cls, value: str) -> str:
        return _check_url(value)


ContentPayload = Annotated[
    Union[VideoContent, TextContent, QuizContent, ImageContent, DocumentContent],
    Field(discriminator="type"),
]

_payload_adapter: TypeAdapter[Any] = TypeAdapter(ContentPayload)


def parse_payload(data: dict[str, Any]) -> ContentPayload:
    """
    Validate a raw payload dict into its tagged variant.

    Raises:
        ValidationError: unknown type tag or fields invalid for the type
    """
    try:
        return _payload_adapter.validate_python(data)
    except PydanticValidationError as e:
        errors = [
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        ]
        raise ValidationError("Invalid content payload", errors=errors) from e


def dump_payload(payload: ContentPayload) -> dict[str, Any]:
    """Serialize a payload for JSON storage."""
    return payload.model_dump(mode="json")

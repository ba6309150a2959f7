"""Declarative base and column helpers shared by all models."""

from __future__ import annotations

from uuid import uuid4

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


def new_id() -> str:
    """Primary keys are UUID4 strings so they travel unchanged through URLs."""
    return str(uuid4())

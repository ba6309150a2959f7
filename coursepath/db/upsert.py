"""
INSERT ... ON CONFLICT helpers.

Idempotent writes (progress upserts, certificate insert-if-absent) go through
the database's own conflict handling instead of read-then-write, so two
concurrent callers cannot both insert a row for the same unique key.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session


def insert_for(session: Session, model: Any) -> Any:
    """
    Return the dialect-specific Core ``insert()`` for a model's table.

    The statement targets the Table rather than the mapped class, so
    ``session.execute()`` returns a plain cursor result with ``rowcount``.
    """
    table = getattr(model, "__table__", model)
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(table)
    if dialect == "sqlite":
        return sqlite.insert(table)
    raise NotImplementedError(f"ON CONFLICT upserts not supported for dialect: {dialect}")

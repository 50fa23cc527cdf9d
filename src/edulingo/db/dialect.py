"""Dialect-aware INSERT for upserts.

Production runs on PostgreSQL; the test suite runs on SQLite. Both
dialects implement ``ON CONFLICT`` with the same SQLAlchemy API.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession


def upsert(db: AsyncSession, table: Any) -> Any:  # noqa: ANN401
    """Return an INSERT construct supporting on_conflict_* for the session's dialect."""
    if db.get_bind().dialect.name == "sqlite":
        return sqlite_insert(table)
    return pg_insert(table)

"""Dialect-specific INSERT constructs for ON CONFLICT statements."""

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession


def conflict_insert(db: AsyncSession, model):
    """Return an ``insert(model)`` that supports ``on_conflict_do_*`` for the session's backend."""
    dialect_name = db.get_bind().dialect.name
    if dialect_name == "postgresql":
        return postgresql.insert(model)
    if dialect_name == "sqlite":
        return sqlite.insert(model)
    raise NotImplementedError(f"ON CONFLICT inserts are not supported on {dialect_name}")

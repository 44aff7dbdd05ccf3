"""Dialect-aware INSERT constructs for conflict-tolerant writes.

``ON CONFLICT`` lives on the dialect-specific ``Insert`` classes; PostgreSQL
and SQLite expose the same ``on_conflict_do_nothing`` / ``on_conflict_do_update``
API, so callers build one statement and let the bound dialect pick the class.
"""

from typing import Any

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession


_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def dialect_insert(session: AsyncSession, model: Any) -> Any:
    """Return an ``INSERT`` for ``model`` that supports ``ON CONFLICT``."""
    dialect = session.get_bind().dialect.name
    try:
        insert = _INSERTS[dialect]
    except KeyError as exc:
        msg = f"Conflict-tolerant inserts are not supported on {dialect}"
        raise NotImplementedError(msg) from exc
    return insert(model)

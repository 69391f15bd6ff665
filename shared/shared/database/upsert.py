"""Dialect-aware ``INSERT ... ON CONFLICT`` construction.

PostgreSQL serves production traffic; SQLite backs the test suite. Both
dialects expose the same ``on_conflict_do_update`` / ``on_conflict_do_nothing``
API, so callers only pick the right ``insert`` here.
"""

from typing import Any

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def upsert_insert(session: AsyncSession, model: Any) -> Any:
    dialect = session.get_bind().dialect.name
    try:
        insert = _INSERTS[dialect]
    except KeyError:
        raise NotImplementedError(f"Upsert is not supported on dialect {dialect!r}") from None
    return insert(model)

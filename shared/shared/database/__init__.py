from shared.database.postgres import (
    AsyncSessionFactory,
    Base,
    get_async_engine,
    session_factory_for,
)
from shared.database.upsert import upsert_insert

__all__ = [
    "AsyncSessionFactory",
    "Base",
    "get_async_engine",
    "session_factory_for",
    "upsert_insert",
]

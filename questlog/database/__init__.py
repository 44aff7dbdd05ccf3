from .base import Base
from .engine import engine
from .session import DbSession, async_session_maker, get_db_session
from .upsert import dialect_insert


__all__ = [
    "Base",
    "DbSession",
    "async_session_maker",
    "dialect_insert",
    "engine",
    "get_db_session",
]

"""Database module."""

from .database import init_db, make_engine, make_session_factory, session_scope, SessionLocal
from .models import Base, AttemptRecord, EarnedAchievement
from .store import AttemptStore, MemoryAttemptStore, SqlAttemptStore

__all__ = [
    "init_db", "make_engine", "make_session_factory", "session_scope", "SessionLocal",
    "Base", "AttemptRecord", "EarnedAchievement",
    "AttemptStore", "MemoryAttemptStore", "SqlAttemptStore",
]

"""Database connection and session management."""

from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from ..config import DATABASE_URL, DATA_DIR
from .models import Base


def make_engine(url: str = DATABASE_URL) -> Engine:
    """Create an engine; in-memory SQLite shares one connection across threads."""
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}  # Needed for SQLite + FastAPI
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, echo=False, **kwargs)
    return create_engine(url, echo=False, pool_pre_ping=True)


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


if DATABASE_URL.startswith(f"sqlite:///{DATA_DIR}"):
    DATA_DIR.mkdir(parents=True, exist_ok=True)

engine = make_engine(DATABASE_URL)
SessionLocal = make_session_factory(engine)


def init_db(bind: Engine = engine):
    """Initialize database tables."""
    Base.metadata.create_all(bind=bind)


@contextmanager
def session_scope(factory: sessionmaker = SessionLocal) -> Session:
    """Context manager for database sessions."""
    db = factory()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

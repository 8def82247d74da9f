from __future__ import annotations

from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from .config import database_url
from .models import Base


_engine: Optional[Engine] = None
_engine_url: Optional[str] = None


def get_engine() -> Engine:
    """Return a process-wide Engine, recreating it when DATABASE_URL changes.

    This makes tests reliable when they override DATABASE_URL per test.
    """
    global _engine, _engine_url
    current_url = database_url()
    if _engine is None or _engine_url != current_url:
        _engine = create_engine(current_url, pool_pre_ping=True)
        _engine_url = current_url
    return _engine


def new_session() -> Session:
    return sessionmaker(
        bind=get_engine(), autoflush=False, autocommit=False, future=True
    )()


def create_all() -> None:
    """Create all tables using SQLAlchemy metadata (useful for tests/dev)."""
    Base.metadata.create_all(bind=get_engine())

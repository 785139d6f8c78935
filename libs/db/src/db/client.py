"""Centralized SQLAlchemy engine/session helpers for the workspace.

Usage
-----
from db.client import get_engine, session_scope

with session_scope() as s:
    s.execute(...)

Engines are cached per database URL so a process (or a test session) can talk
to more than one database without re-creating connection pools.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

_ENGINES: dict[str, Engine] = {}
_SESSION_MAKERS: dict[str, sessionmaker[Session]] = {}


def _database_url(override: str | None = None) -> str:
    url = override or os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL is not set; cannot initialize database client")
    return url


def get_engine(*, database_url: str | None = None) -> Engine:
    """Return the shared SQLAlchemy engine for ``database_url``, creating it on first use."""

    url = _database_url(database_url)
    engine = _ENGINES.get(url)
    if engine is None:
        engine = create_engine(url, pool_pre_ping=True)
        _ENGINES[url] = engine
        _SESSION_MAKERS[url] = sessionmaker(bind=engine, expire_on_commit=False, class_=Session)
    return engine


def get_session(*, database_url: str | None = None) -> Session:
    """Return a new SQLAlchemy session bound to the shared engine."""

    url = _database_url(database_url)
    get_engine(database_url=url)
    return _SESSION_MAKERS[url]()


@contextmanager
def session_scope(*, database_url: str | None = None) -> Iterator[Session]:
    """Provide a transactional scope around a series of operations."""

    session = get_session(database_url=database_url)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def dispose_engines() -> None:
    """Dispose every cached engine (used by tests between temporary databases)."""

    for engine in _ENGINES.values():
        engine.dispose()
    _ENGINES.clear()
    _SESSION_MAKERS.clear()


__all__ = [
    "dispose_engines",
    "get_engine",
    "get_session",
    "session_scope",
]

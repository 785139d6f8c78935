# ruff: noqa: E402, I001
"""Pytest configuration: import paths, per-test SQLite databases, fixed clocks.

Every test that touches the SQL document store gets its own file-backed
SQLite database under ``tmp_path``; cached engines are disposed afterwards so
no connection outlives its file.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo

import pytest

# Make `packages/`, `libs/db/src` and the repo root importable for a plain checkout.
_ROOT = Path(__file__).resolve().parents[1]
sys.path[:0] = [
    p
    for p in [str(_ROOT / "packages"), str(_ROOT / "libs" / "db" / "src"), str(_ROOT)]
    if p not in sys.path
]

from db.client import dispose_engines
from family_ledger.ledger import LedgerStore
from family_ledger.store import SqlDocumentStore
from tests.helpers.db import bootstrap_sqlite_db
from tests.helpers.doubles import MemoryDocumentStore, RecordingReplyClient

TAIPEI = ZoneInfo("Asia/Taipei")
# 2024-08-25 10:00 in Taipei is still 2024-08-25 in UTC (02:00).
FIXED_NOW = datetime(2024, 8, 25, 10, 0, tzinfo=TAIPEI)


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer settings from leaking into tests."""

    for key in (
        "DATABASE_URL",
        "OPENAI_API_KEY",
        "LINE_CHANNEL_ACCESS_TOKEN",
        "LINE_API_TIMEOUT_SECONDS",
        "FAMILY_LEDGER_LOG_LEVEL",
        "FAMILY_LEDGER_TIMEZONE",
        "FAMILY_LEDGER_OPENAI_MODEL",
        "FAMILY_LEDGER_OPENAI_TIMEOUT_SECONDS",
        "PORT",
    ):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def _propagate_package_logs(monkeypatch: pytest.MonkeyPatch) -> None:
    """Let ``caplog`` see package records even after a CLI test configured logging."""

    monkeypatch.setattr(logging.getLogger("family_ledger"), "propagate", True)


@pytest.fixture
def sqlite_url(tmp_path: Path) -> Iterator[str]:
    url = bootstrap_sqlite_db(tmp_path / "ledger.sqlite3")
    yield url
    dispose_engines()


@pytest.fixture
def clock() -> Iterator[list[datetime]]:
    """A mutable one-element list; tests may replace ``clock[0]`` to move time."""

    yield [FIXED_NOW]


@pytest.fixture
def sql_ledger(sqlite_url: str, clock: list[datetime]) -> LedgerStore:
    return LedgerStore(SqlDocumentStore(database_url=sqlite_url), clock=lambda: clock[0])


@pytest.fixture
def memory_store() -> MemoryDocumentStore:
    return MemoryDocumentStore()


@pytest.fixture
def memory_ledger(memory_store: MemoryDocumentStore, clock: list[datetime]) -> LedgerStore:
    return LedgerStore(memory_store, clock=lambda: clock[0])


@pytest.fixture
def replies() -> RecordingReplyClient:
    return RecordingReplyClient()

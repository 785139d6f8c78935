from datetime import UTC, datetime
from pathlib import Path

import pytest
from prompt_toolkit import PromptSession
from prompt_toolkit.input import create_pipe_input
from prompt_toolkit.output import DummyOutput

from family_ledger.ledger import LedgerStore
from family_ledger.models import Item
from family_ledger.workflows.load_history import (
    load_history_file,
    load_history_interactive,
    load_history_text,
    preview_lines,
    summarize,
)
from family_ledger.parser import parse_historical_block
from tests.helpers.doubles import MemoryDocumentStore

BLOCK = "8/4\n鮮奶 255\n8/6\n紅蘿蔔 29\n地瓜 130\n"
STAMP = datetime(2024, 8, 30, tzinfo=UTC)


def test_summary_and_preview() -> None:
    entries = parse_historical_block(BLOCK, now=STAMP)
    s = summarize(entries)
    assert (s.entries, s.items, s.amount) == (2, 3, 414)
    lines = preview_lines(entries)
    assert lines[:2] == ["  8/4: 1 items, total: 255", "  8/6: 2 items, total: 159"]
    assert "  Total amount: 414" in lines


def test_load_history_text_overwrites_ledger(memory_ledger: LedgerStore) -> None:
    memory_ledger.add_expenses([Item(name="舊", price=1)], "2024-08-01")
    progress: list[str] = []

    summary = load_history_text(BLOCK, memory_ledger, on_progress=progress.append, now=STAMP)

    assert summary.saved
    ledger = memory_ledger.get_aggregated_expenses()
    assert [e.date for e in ledger.entries] == ["8/4", "8/6"]
    assert ledger.entries[0].timestamp == STAMP
    assert progress[0] == "Parsed 2 date entries"


def test_load_history_text_declined_writes_nothing(
    memory_store: MemoryDocumentStore, memory_ledger: LedgerStore
) -> None:
    summary = load_history_text(BLOCK, memory_ledger, confirm_write=lambda: False)
    assert not summary.saved
    assert memory_store.writes == []


def test_load_history_text_without_entries_writes_nothing(
    memory_store: MemoryDocumentStore, memory_ledger: LedgerStore
) -> None:
    summary = load_history_text("沒有日期 100\n", memory_ledger)
    assert (summary.entries, summary.saved) == (0, False)
    assert memory_store.writes == []


def test_load_history_file(tmp_path: Path, sql_ledger: LedgerStore) -> None:
    path = tmp_path / "historical-data.txt"
    path.write_text(BLOCK, encoding="utf-8")

    summary = load_history_file(path, sql_ledger)

    assert summary.saved
    assert sql_ledger.get_aggregated_expenses().item_count == 3


def test_load_history_file_missing(tmp_path: Path, memory_ledger: LedgerStore) -> None:
    with pytest.raises(FileNotFoundError):
        load_history_file(tmp_path / "nope.txt", memory_ledger)


def test_load_history_interactive_confirms_then_writes(memory_ledger: LedgerStore) -> None:
    with create_pipe_input() as pipe:
        sess = PromptSession(input=pipe, output=DummyOutput())
        pipe.send_text("8/4\r鮮奶 255\rEND\ryes\r")
        summary = load_history_interactive(memory_ledger, session=sess, now=STAMP)

    assert summary is not None and summary.saved
    assert memory_ledger.get_aggregated_expenses().entries[0].date == "8/4"


def test_load_history_interactive_no_data(
    memory_store: MemoryDocumentStore, memory_ledger: LedgerStore
) -> None:
    with create_pipe_input() as pipe:
        sess = PromptSession(input=pipe, output=DummyOutput())
        pipe.send_text("END\r")
        assert load_history_interactive(memory_ledger, session=sess) is None
    assert memory_store.writes == []

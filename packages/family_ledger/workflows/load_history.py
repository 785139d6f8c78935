# ruff: noqa: I001
"""Historical ledger loading: parse a dated block, preview it, overwrite the ledger.

The loaded entries replace the whole ledger document (they do not merge with
chat-recorded entries) and keep their ``M/D`` dates as written. The backup
slot is left alone.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime
from os import PathLike
from pathlib import Path

from prompt_toolkit import PromptSession

from ..ledger import LedgerStore
from ..logging_setup import get_logger
from ..models import DateEntry
from ..parser import parse_historical_block
from ..term_ui import END_SENTINEL, confirm, read_block_until_end

DEFAULT_HISTORY_FILE = "historical-data.txt"

PASTE_INSTRUCTIONS = (
    "Paste historical expense data in this format:",
    "8/4",
    "鮮奶 255",
    "8/6",
    "紅蘿蔔 29",
    "地瓜 130",
    "...",
    f'When finished, type "{END_SENTINEL}" on a new line and press Enter.',
)

_logger = get_logger("family_ledger.workflows.load_history")


@dataclass(frozen=True, slots=True)
class LoadSummary:
    entries: int
    items: int
    amount: int
    saved: bool = False


def summarize(entries: Sequence[DateEntry]) -> LoadSummary:
    return LoadSummary(
        entries=len(entries),
        items=sum(len(e.items) for e in entries),
        amount=sum(e.total for e in entries),
    )


def preview_lines(entries: Sequence[DateEntry]) -> list[str]:
    """One ``date: N items, total: T`` line per entry, then the summary block."""

    lines = [f"  {e.date}: {len(e.items)} items, total: {e.total}" for e in entries]
    s = summarize(entries)
    lines += [
        "",
        "Summary:",
        f"  Total entries: {s.entries}",
        f"  Total items: {s.items}",
        f"  Total amount: {s.amount}",
    ]
    return lines


def load_history_text(
    text: str,
    ledger: LedgerStore,
    *,
    confirm_write: Callable[[], bool] | None = None,
    on_progress: Callable[[str], None] | None = None,
    now: datetime | None = None,
) -> LoadSummary:
    """Parse ``text`` and overwrite the ledger with its entries.

    Parameters
    ----------
    confirm_write:
        Asked after the preview; returning ``False`` skips the write. ``None``
        writes without asking.
    on_progress:
        Receives short status lines (e.g. ``typer.echo``).

    Returns a summary whose ``saved`` flag says whether the ledger was written.
    Nothing is written when the block holds no dated items. Storage errors
    propagate.
    """

    def _emit(line: str) -> None:
        if on_progress:
            on_progress(line)

    entries = parse_historical_block(text, now=now)
    _emit(f"Parsed {len(entries)} date entries")
    if not entries:
        _emit("No valid entries found. Please check the data format.")
        return summarize(entries)

    _emit("Preview of parsed data:")
    for line in preview_lines(entries):
        _emit(line)

    summary = summarize(entries)
    if confirm_write is not None and not confirm_write():
        _emit("Data not saved.")
        return summary

    ledger.replace_entries(entries)
    _logger.info(
        "load_history:saved entries=%d items=%d amount=%d",
        summary.entries,
        summary.items,
        summary.amount,
    )
    _emit("Historical data loaded.")
    return LoadSummary(
        entries=summary.entries, items=summary.items, amount=summary.amount, saved=True
    )


def load_history_file(
    path: str | PathLike[str],
    ledger: LedgerStore,
    *,
    on_progress: Callable[[str], None] | None = None,
    now: datetime | None = None,
) -> LoadSummary:
    """Load a UTF-8 history file; raises ``FileNotFoundError`` when it is missing."""

    file_path = Path(path)
    if on_progress:
        on_progress(f"Reading from: {file_path}")
    text = file_path.read_text(encoding="utf-8")
    return load_history_text(text, ledger, on_progress=on_progress, now=now)


def load_history_interactive(
    ledger: LedgerStore,
    *,
    session: PromptSession | None = None,
    on_progress: Callable[[str], None] | None = None,
    now: datetime | None = None,
) -> LoadSummary | None:
    """Read a pasted block until ``END``, preview it, and write after a yes.

    Returns ``None`` when no data was provided.
    """

    if on_progress:
        for line in PASTE_INSTRUCTIONS:
            on_progress(line)

    text = read_block_until_end(session=session)
    if text is None or not text.strip():
        if on_progress:
            on_progress("No data provided.")
        return None

    return load_history_text(
        text,
        ledger,
        confirm_write=lambda: confirm(session=session),
        on_progress=on_progress,
        now=now,
    )


__all__ = [
    "DEFAULT_HISTORY_FILE",
    "LoadSummary",
    "load_history_file",
    "load_history_interactive",
    "load_history_text",
    "preview_lines",
    "summarize",
]

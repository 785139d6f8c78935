"""Text grammar for expense messages and historical ledger blocks.

Expense line
    ``<name> <price>`` where ``price`` is the maximal run of ASCII digits at
    the end of the line and ``name`` is everything before it, outer whitespace
    stripped. Lines that do not fit (no trailing digits, a zero price, an empty
    name) are not items and are dropped without error.

Historical block
    Alternating date headers (``M/D``, one or two digits each) and expense
    lines::

        8/4
        鮮奶 255
        8/6
        紅蘿蔔 29
        地瓜 130
"""

from __future__ import annotations

import re
from datetime import UTC, datetime

from .models import DateEntry, Item, ParseResult

_TRAILING_PRICE_RE = re.compile(r"[0-9]+$")
_DATE_HEADER_RE = re.compile(r"^[0-9]{1,2}/[0-9]{1,2}$")


def parse_expense_line(line: str) -> Item | None:
    """Return the :class:`Item` on ``line`` or ``None`` when the line is not an item."""

    text = line.strip()
    if not text:
        return None
    match = _TRAILING_PRICE_RE.search(text)
    if match is None:
        return None
    price = int(match.group())
    name = text[: match.start()].strip()
    if not name or price <= 0:
        return None
    return Item(name=name, price=price)


def parse_expense_message(message: str | None) -> ParseResult:
    """Parse every non-blank line of ``message`` and return the items with their sum."""

    if not message or not isinstance(message, str):
        return ParseResult()

    items: list[Item] = []
    for line in message.strip().split("\n"):
        item = parse_expense_line(line)
        if item is not None:
            items.append(item)
    return ParseResult(items=tuple(items), total=sum(i.price for i in items))


def is_date_header(line: str) -> bool:
    return _DATE_HEADER_RE.fullmatch(line.strip()) is not None


def parse_historical_block(text: str, *, now: datetime | None = None) -> list[DateEntry]:
    """Split a multi-date block into :class:`DateEntry` objects in header order.

    A header with no valid items yields no entry, and item lines seen before
    the first header are dropped. Every emitted entry is stamped with ``now``
    (defaults to the current UTC time).
    """

    stamp = now or datetime.now(UTC)
    entries: list[DateEntry] = []
    current_date: str | None = None
    current_items: list[Item] = []

    def _flush() -> None:
        if current_date is not None and current_items:
            entries.append(DateEntry(date=current_date, items=list(current_items), timestamp=stamp))

    for raw in text.strip().split("\n"):
        line = raw.strip()
        if not line:
            continue
        if is_date_header(line):
            _flush()
            current_date = line
            current_items = []
            continue
        if current_date is None:
            continue
        item = parse_expense_line(line)
        if item is not None:
            current_items.append(item)

    _flush()
    return entries


__all__ = [
    "is_date_header",
    "parse_expense_line",
    "parse_expense_message",
    "parse_historical_block",
]

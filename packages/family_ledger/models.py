"""Data models for ``family_ledger``.

Persisted shapes (the ledger document and its backup) are pydantic models so
they validate on the way in from the document store and serialize to plain
JSON on the way out. Results returned by operations are small frozen
dataclasses.

Persisted JSON uses snake_case keys and ISO-8601 datetimes::

    {
      "entries": [
        {"date": "2024-08-04", "items": [{"name": "鮮奶", "price": 255}],
         "timestamp": "2024-08-04T01:02:03+00:00"}
      ],
      "last_updated": "2024-08-04T01:02:03+00:00"
    }
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ---------------------------------------------------------------------------
# Ledger document
# ---------------------------------------------------------------------------


class Item(BaseModel):
    """A single purchase: a trimmed, non-empty name and a positive integer price."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True, extra="ignore")

    name: str = Field(min_length=1)
    price: int = Field(gt=0)


class DateEntry(BaseModel):
    """One date's bucket of items inside the ledger.

    ``date`` is either canonical ``YYYY-MM-DD`` (chat-recorded) or legacy
    ``M/D`` (historical loads). Entries are keyed by exact string equality, so
    ``"8/4"`` and ``"2024-08-04"`` are different buckets.
    ``timestamp`` marks the last mutation; it is optional so that documents
    written without it still load.
    """

    model_config = ConfigDict(extra="ignore")

    date: str
    items: list[Item] = Field(default_factory=list)
    timestamp: datetime | None = None

    @field_validator("date")
    @classmethod
    def _date_non_empty(cls, v: str) -> str:
        # Kept verbatim: entries merge on exact string equality.
        if not v.strip():
            raise ValueError("date must be a non-empty string")
        return v

    @property
    def total(self) -> int:
        return sum(item.price for item in self.items)


class Ledger(BaseModel):
    """The singleton aggregated document; ``entries`` are in first-seen order."""

    model_config = ConfigDict(extra="ignore")

    entries: list[DateEntry] = Field(default_factory=list)
    last_updated: datetime | None = None

    @property
    def item_count(self) -> int:
        return sum(len(entry.items) for entry in self.entries)

    @property
    def total(self) -> int:
        return sum(entry.total for entry in self.entries)


class LedgerBackup(Ledger):
    """Snapshot of the ledger taken right before the most recent add."""

    backup_time: datetime

    def to_ledger(self) -> Ledger:
        """Drop the backup metadata and return the plain ledger state."""

        return Ledger.model_validate(self.model_dump(exclude={"backup_time"}))


# ---------------------------------------------------------------------------
# Operation results
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ParseResult:
    """Items recovered from a chat message plus their sum.

    An empty ``items`` tuple is not an error: it means the message is not an
    expense record and should be ignored.
    """

    items: tuple[Item, ...] = ()
    total: int = 0

    @property
    def is_expense(self) -> bool:
        return bool(self.items)


@dataclass(frozen=True, slots=True)
class AddResult:
    success: bool
    total_items: int = 0
    total: int = 0
    error: str | None = None


@dataclass(frozen=True, slots=True)
class UndoResult:
    success: bool
    message: str


# ---------------------------------------------------------------------------
# Categorization (per organize run, never persisted)
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CategorizedItem:
    """A ledger item numbered for one classifier round-trip.

    ``id`` is 1-based and only meaningful within a single organize run;
    ``date`` is the display form (``M/D``).
    """

    id: int
    date: str
    name: str
    price: int


@dataclass(frozen=True, slots=True)
class CategoryGroup:
    """Items resolved to one category label, in date order, with their subtotal."""

    category: str
    items: tuple[CategorizedItem, ...]

    @property
    def total(self) -> int:
        return sum(item.price for item in self.items)


def sum_prices(items: Sequence[Item] | Sequence[CategorizedItem]) -> int:
    return sum(item.price for item in items)

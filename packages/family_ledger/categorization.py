"""Month filtering, item numbering and classifier reply reconciliation.

Everything here is pure: no I/O and no logging. Problems found while
reconciling an untrusted classifier reply are returned as warning strings so
the caller decides how to surface them.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, StrictInt, ValidationError, field_validator

from .models import CategorizedItem, CategoryGroup, DateEntry
from .periods import MonthSelector, display_date

# ---------------------------------------------------------------------------
# Selection and numbering (pre-request)
# ---------------------------------------------------------------------------


def filter_entries_by_month(
    entries: Sequence[DateEntry], selector: MonthSelector
) -> list[DateEntry]:
    """Entries whose canonical date starts with ``YYYY-MM``.

    Legacy ``M/D`` dates carry no year and never match.
    """

    prefix = selector.prefix + "-"
    return [entry for entry in entries if entry.date.startswith(prefix)]


def number_items(entries: Sequence[DateEntry]) -> list[CategorizedItem]:
    """Sort ``entries`` by date string and number their items ``1..N``.

    The sort is stable, so entries sharing a date string keep stored order;
    items keep their order within each entry.
    """

    ordered = sorted(entries, key=lambda e: e.date)
    numbered: list[CategorizedItem] = []
    for entry in ordered:
        shown = display_date(entry.date)
        for item in entry.items:
            numbered.append(
                CategorizedItem(id=len(numbered) + 1, date=shown, name=item.name, price=item.price)
            )
    return numbered


# ---------------------------------------------------------------------------
# Reply parsing and reconciliation
# ---------------------------------------------------------------------------


class _ReplyEntry(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    id: StrictInt
    category: str

    @field_validator("category")
    @classmethod
    def _category_non_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("category must be a non-empty string")
        return v


@dataclass(frozen=True, slots=True)
class Reconciliation:
    """Outcome of matching a classifier reply against the numbered items.

    ``groups`` are in the order each category first appears in the reply
    (unsorted); ``assigned`` maps
    item id to its accepted category.
    """

    groups: tuple[CategoryGroup, ...]
    assigned: dict[int, str] = field(default_factory=dict)
    warnings: tuple[str, ...] = ()

    @property
    def categorized_total(self) -> int:
        return sum(group.total for group in self.groups)


def extract_reply_entries(body: Any) -> list[Any]:
    """Return the list of ``{id, category}`` entries from a decoded reply.

    Accepted shapes: a top-level array, or an object holding the array under
    ``items`` or ``categories``. Anything else raises ``ValueError``.
    """

    if isinstance(body, list):
        return body
    if isinstance(body, Mapping):
        for key in ("items", "categories"):
            value = body.get(key)
            if isinstance(value, list):
                return value
        raise ValueError("Invalid response: no 'items' or 'categories' array in reply object")
    raise ValueError(
        f"Invalid response: expected a JSON array or object, got {type(body).__name__}"
    )


def reconcile_categories(body: Any, items: Sequence[CategorizedItem]) -> Reconciliation:
    """Match a classifier reply to ``items`` by id.

    - Unknown ids, malformed entries and repeated ids are dropped (the first
      category given for an id wins); each drop adds a warning.
    - Items the reply does not mention are absent from every group.
    - A reply whose entry count differs from ``len(items)`` adds a warning but
      is still used.

    Raises ``ValueError`` only when no entry list can be found in ``body``.
    """

    raw_entries = extract_reply_entries(body)
    by_id = {item.id: item for item in items}
    warnings: list[str] = []

    if len(raw_entries) != len(items):
        warnings.append(f"count_mismatch expected={len(items)} got={len(raw_entries)}")

    assigned: dict[int, str] = {}
    for pos, raw in enumerate(raw_entries):
        try:
            entry = _ReplyEntry.model_validate(raw)
        except ValidationError:
            warnings.append(f"malformed_entry position={pos} value={raw!r}")
            continue
        if entry.id not in by_id:
            warnings.append(f"unknown_id id={entry.id} category={entry.category}")
            continue
        if entry.id in assigned:
            warnings.append(
                f"duplicate_id id={entry.id} kept={assigned[entry.id]} dropped={entry.category}"
            )
            continue
        assigned[entry.id] = entry.category

    missing = [item.id for item in items if item.id not in assigned]
    if missing:
        warnings.append(f"missing_ids ids={missing}")

    # Categories in reply order; members in id order (date ascending).
    buckets: dict[str, list[CategorizedItem]] = {c: [] for c in assigned.values()}
    for item in items:
        category = assigned.get(item.id)
        if category is not None:
            buckets.setdefault(category, []).append(item)

    groups = tuple(CategoryGroup(category=c, items=tuple(members)) for c, members in buckets.items())
    return Reconciliation(groups=groups, assigned=assigned, warnings=tuple(warnings))


def sort_groups_by_total(groups: Sequence[CategoryGroup]) -> list[CategoryGroup]:
    """Order groups by subtotal, highest first; ties keep their incoming order."""

    return sorted(groups, key=lambda g: g.total, reverse=True)


__all__ = [
    "Reconciliation",
    "extract_reply_entries",
    "filter_entries_by_month",
    "number_items",
    "reconcile_categories",
    "sort_groups_by_total",
]

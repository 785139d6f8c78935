"""Calendar helpers: storage dates, display dates and ``YYYYMM`` month selectors.

All "today" and "this month" decisions are made in a single configured
timezone (``Asia/Taipei`` unless overridden), never in the host's local time.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime
from zoneinfo import ZoneInfo

DEFAULT_TIMEZONE = "Asia/Taipei"

_CANONICAL_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_YEAR_MONTH_RE = re.compile(r"^\d{6}$")


def now_in(tz: ZoneInfo | str = DEFAULT_TIMEZONE) -> datetime:
    zone = tz if isinstance(tz, ZoneInfo) else ZoneInfo(tz)
    return datetime.now(zone)


def storage_date(moment: datetime | date) -> str:
    """Canonical ledger key for ``moment``: ``YYYY-MM-DD``."""

    return moment.strftime("%Y-%m-%d")


def display_date(value: str) -> str:
    """Render a ledger date for chat: ``2024-08-25`` → ``8/25``.

    Legacy ``M/D`` dates (and anything else that is not canonical) are
    returned unchanged.
    """

    match = _CANONICAL_DATE_RE.match(value)
    if match is None:
        return value
    return f"{int(match.group(2))}/{int(match.group(3))}"


@dataclass(frozen=True, slots=True)
class MonthSelector:
    """A target month for organize runs.

    ``explicit`` is False when the month was derived from the clock rather
    than supplied by the user; chat replies then say "本月" instead of the
    month name.
    """

    year: int
    month: int
    explicit: bool = True

    @classmethod
    def parse(cls, year_month: str) -> MonthSelector:
        """Parse a 6-digit ``YYYYMM`` literal (e.g. ``"202408"``)."""

        if not _YEAR_MONTH_RE.fullmatch(year_month):
            raise ValueError(f"year_month must be 6 digits (YYYYMM), got {year_month!r}")
        return cls(year=int(year_month[:4]), month=int(year_month[4:]), explicit=True)

    @classmethod
    def current(cls, moment: datetime) -> MonthSelector:
        return cls(year=moment.year, month=moment.month, explicit=False)

    @property
    def prefix(self) -> str:
        """``YYYY-MM`` prefix matched against canonical entry dates."""

        return f"{self.year:04d}-{self.month:02d}"

    @property
    def label(self) -> str:
        """Chinese month label, e.g. ``2024年8月``."""

        return f"{self.year}年{self.month}月"

    @property
    def reply_label(self) -> str:
        return self.label if self.explicit else "本月"


def resolve_month(year_month: str | None, *, moment: datetime) -> MonthSelector:
    """Return the selector for ``year_month``, or for the month containing ``moment``."""

    if year_month:
        return MonthSelector.parse(year_month)
    return MonthSelector.current(moment)


__all__ = [
    "DEFAULT_TIMEZONE",
    "MonthSelector",
    "display_date",
    "now_in",
    "resolve_month",
    "storage_date",
]

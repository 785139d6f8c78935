"""Chat command dispatch: text in, at most one reply out.

Recognized commands (matched on the trimmed message):

========================  =========================================
``查看``                   view the whole ledger
``打錯``                   undo the most recent add
``整理``                   organize the current month
``整理YYYYMM``             organize a specific month
anything else             parse as expense lines
========================  =========================================

A message with no expense lines produces no reply and no write, so ordinary
chatter in the group is ignored.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import Literal
from zoneinfo import ZoneInfo

from .categorize import CategorizationError, Classifier, organize_expenses
from .ledger import LedgerStore, format_aggregated_text
from .line_client import ReplyClient
from .logging_setup import get_logger
from .models import AddResult, ParseResult
from .parser import parse_expense_message
from .periods import DEFAULT_TIMEZONE, now_in, storage_date

VIEW_FAILED = "查看失敗，請稍後再試"
UNDO_FAILED = "回復失敗，請稍後再試"
ORGANIZE_FAILED = "整理失敗，請稍後再試"

_ORGANIZE_MONTH_RE = re.compile(r"^整理(\d{6})$")

_logger = get_logger("family_ledger.dispatcher")


class CommandKind(StrEnum):
    VIEW = "view"
    UNDO = "undo"
    ORGANIZE = "organize"
    EXPENSE = "expense"


@dataclass(frozen=True, slots=True)
class Command:
    kind: CommandKind
    year_month: str | None = None
    text: str = ""


def parse_command(text: str) -> Command:
    """Classify ``text`` into a :class:`Command` (no side effects)."""

    trimmed = (text or "").strip()
    if trimmed == "查看":
        return Command(CommandKind.VIEW)
    if trimmed == "打錯":
        return Command(CommandKind.UNDO)
    if trimmed == "整理":
        return Command(CommandKind.ORGANIZE)
    match = _ORGANIZE_MONTH_RE.match(trimmed)
    if match is not None:
        return Command(CommandKind.ORGANIZE, year_month=match.group(1))
    return Command(CommandKind.EXPENSE, text=text or "")


def format_ack(parsed: ParseResult) -> str:
    return f"✅ 已記錄 {len(parsed.items)} 項消費，總計：{parsed.total}"


@dataclass(frozen=True, slots=True)
class DispatchOutcome:
    """What one message led to.

    ``ignored``: not a command and no expense lines; nothing sent or written.
    ``replied``: a command ran and ``reply`` was sent.
    ``recorded``: expense lines were acknowledged; ``add_result`` reports the
    write, which may have failed after the acknowledgment went out.
    """

    status: Literal["ignored", "replied", "recorded"]
    command: CommandKind | None = None
    reply: str | None = None
    add_result: AddResult | None = None


class CommandDispatcher:
    """Routes chat text to the ledger, the organize flow and the reply channel.

    Parameters
    ----------
    ledger:
        The ledger store adapter.
    replier:
        Reply channel; ``send`` failures are its own concern.
    classifier:
        Organize classifier, or ``None`` when none is configured.
    timezone:
        Zone that decides "today" and "this month".
    clock:
        Returns the current instant in ``timezone``; injectable for tests.
    """

    def __init__(
        self,
        ledger: LedgerStore,
        replier: ReplyClient,
        *,
        classifier: Classifier | None = None,
        timezone: str = DEFAULT_TIMEZONE,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.ledger = ledger
        self.replier = replier
        self.classifier = classifier
        zone = ZoneInfo(timezone)
        self._clock = clock or (lambda: now_in(zone))

    def handle_text(self, text: str, reply_token: str) -> DispatchOutcome:
        command = parse_command(text)
        if command.kind is CommandKind.VIEW:
            return self._reply(command, reply_token, self._view())
        if command.kind is CommandKind.UNDO:
            return self._reply(command, reply_token, self._undo())
        if command.kind is CommandKind.ORGANIZE:
            return self._reply(command, reply_token, self._organize(command.year_month))
        return self._record(command.text, reply_token)

    # ---- Handlers -----------------------------------------------------------

    def _reply(self, command: Command, reply_token: str, text: str) -> DispatchOutcome:
        self.replier.send(reply_token, text)
        return DispatchOutcome(status="replied", command=command.kind, reply=text)

    def _view(self) -> str:
        try:
            ledger = self.ledger.get_aggregated_expenses()
        except Exception as e:  # noqa: BLE001 - any read failure becomes the failure reply
            _logger.error("dispatch:view_failed error=%s", e)
            return VIEW_FAILED
        return format_aggregated_text(ledger, display_dates=True)

    def _undo(self) -> str:
        try:
            return self.ledger.undo_last_change().message
        except Exception as e:  # noqa: BLE001 - undo must always answer
            _logger.error("dispatch:undo_failed error=%s", e)
            return UNDO_FAILED

    def _organize(self, year_month: str | None) -> str:
        try:
            ledger = self.ledger.get_aggregated_expenses()
            outcome = organize_expenses(
                ledger, year_month, classifier=self.classifier, moment=self._clock()
            )
        except CategorizationError as e:
            _logger.error("dispatch:organize_failed month=%s error=%s", year_month, e)
            return ORGANIZE_FAILED
        except Exception as e:  # noqa: BLE001 - storage or unexpected errors share the reply
            _logger.exception("dispatch:organize_failed month=%s error=%s", year_month, e)
            return ORGANIZE_FAILED
        _logger.info("dispatch:organize kind=%s month=%s", outcome.kind, year_month)
        return outcome.text

    def _record(self, text: str, reply_token: str) -> DispatchOutcome:
        parsed = parse_expense_message(text)
        if not parsed.is_expense:
            return DispatchOutcome(status="ignored")

        # Acknowledge first; the write outcome never changes what the user sees.
        reply = format_ack(parsed)
        self.replier.send(reply_token, reply)

        date = storage_date(self._clock())
        result = self.ledger.add_expenses(parsed.items, date)
        if not result.success:
            _logger.error("dispatch:record_not_saved date=%s error=%s", date, result.error)
        return DispatchOutcome(
            status="recorded", command=CommandKind.EXPENSE, reply=reply, add_result=result
        )


__all__ = [
    "Command",
    "CommandDispatcher",
    "CommandKind",
    "DispatchOutcome",
    "format_ack",
    "parse_command",
]

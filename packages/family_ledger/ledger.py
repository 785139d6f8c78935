"""Ledger store adapter: the aggregated ledger document and its backup slot.

:class:`LedgerStore` is the only component that reads or writes the two
documents. Behavior:

- ``add_expenses`` snapshots the current ledger into the backup slot before
  every write (even when the ledger is empty), then merges the new items into
  the entry whose ``date`` matches exactly, or appends a new entry.
- ``undo_last_change`` copies the backup back over the ledger. The backup is
  left in place, so repeated undos restore the same snapshot until the next
  add (single-level undo, not history).
- Storage failures during ``add_expenses`` and ``undo_last_change`` are
  reported in the returned result and logged, never raised.

The add path is a plain read-modify-write with no version check; two adds
racing on the same document can lose one side's items.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from datetime import UTC, datetime

from .logging_setup import get_logger
from .models import AddResult, DateEntry, Item, Ledger, LedgerBackup, UndoResult
from .periods import display_date
from .store import DocumentStore

DEFAULT_COLLECTION = "expenses"
LEDGER_DOCUMENT_ID = "aggregated"
BACKUP_DOCUMENT_ID = "backup"

EMPTY_LEDGER_TEXT = "目前沒有記錄"
UNDO_NOTHING_TO_RESTORE = "沒有可以回復的記錄"
UNDO_RESTORED = "已回復到上一個狀態"
UNDO_FAILED = "回復失敗，請稍後再試"

_logger = get_logger("family_ledger.ledger")


def _utcnow() -> datetime:
    return datetime.now(UTC)


class LedgerStore:
    """Owns read/write access to the ledger and backup documents.

    Parameters
    ----------
    store:
        Document store handle (see :class:`family_ledger.store.DocumentStore`).
    collection / ledger_document_id / backup_document_id:
        Addressing for the two singleton documents.
    clock:
        Returns the current instant for ``timestamp``/``last_updated``/
        ``backup_time`` stamps. Defaults to UTC now.
    """

    def __init__(
        self,
        store: DocumentStore,
        *,
        collection: str = DEFAULT_COLLECTION,
        ledger_document_id: str = LEDGER_DOCUMENT_ID,
        backup_document_id: str = BACKUP_DOCUMENT_ID,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._ledger_ref = store.document(collection, ledger_document_id)
        self._backup_ref = store.document(collection, backup_document_id)
        self._clock = clock

    # ---- Reads ---------------------------------------------------------------

    def get_aggregated_expenses(self) -> Ledger:
        """Return the stored ledger, or an empty one when none exists.

        Storage errors propagate to the caller.
        """

        snapshot = self._ledger_ref.get()
        if not snapshot.exists or snapshot.data is None:
            return Ledger(entries=[])
        return Ledger.model_validate(snapshot.data)

    def get_backup(self) -> LedgerBackup | None:
        snapshot = self._backup_ref.get()
        if not snapshot.exists or snapshot.data is None:
            return None
        return LedgerBackup.model_validate(snapshot.data)

    # ---- Writes --------------------------------------------------------------

    def add_expenses(self, items: Sequence[Item], date: str) -> AddResult:
        """Merge ``items`` into the entry for ``date`` and persist the ledger."""

        items = list(items)
        try:
            current = self.get_aggregated_expenses()
            now = self._clock()

            backup = LedgerBackup(
                entries=current.entries,
                last_updated=current.last_updated,
                backup_time=now,
            )
            self._backup_ref.set(backup.model_dump(mode="json"))

            updated = self._merge(current, items, date, now)
            self._ledger_ref.set(updated.model_dump(mode="json"))
        except Exception as e:  # noqa: BLE001 - storage failures are reported, never raised
            _logger.error(
                "ledger:add_expenses_failed date=%s items=%d error=%s", date, len(items), e
            )
            return AddResult(success=False, error=str(e))

        total = sum(item.price for item in items)
        _logger.info("ledger:add_expenses date=%s items=%d total=%d", date, len(items), total)
        return AddResult(success=True, total_items=len(items), total=total)

    @staticmethod
    def _merge(current: Ledger, items: list[Item], date: str, now: datetime) -> Ledger:
        entries = [entry.model_copy(deep=True) for entry in current.entries]
        for idx, entry in enumerate(entries):
            if entry.date == date:
                entries[idx] = entry.model_copy(
                    update={"items": [*entry.items, *items], "timestamp": now}
                )
                break
        else:
            entries.append(DateEntry(date=date, items=items, timestamp=now))
        return Ledger(entries=entries, last_updated=now)

    def undo_last_change(self) -> UndoResult:
        """Restore the ledger to its state before the most recent add."""

        try:
            backup = self.get_backup()
            if backup is None:
                return UndoResult(success=False, message=UNDO_NOTHING_TO_RESTORE)

            restored = backup.to_ledger().model_copy(update={"last_updated": self._clock()})
            self._ledger_ref.set(restored.model_dump(mode="json"))
        except Exception as e:  # noqa: BLE001 - undo failures become a reply, not a crash
            _logger.error("ledger:undo_failed error=%s", e)
            return UndoResult(success=False, message=UNDO_FAILED)

        _logger.info(
            "ledger:undo_restored entries=%d backup_time=%s",
            len(restored.entries),
            backup.backup_time.isoformat(),
        )
        return UndoResult(success=True, message=UNDO_RESTORED)

    def replace_entries(self, entries: Iterable[DateEntry]) -> Ledger:
        """Overwrite the ledger with ``entries`` (historical loads).

        The backup slot is not touched, so an undo after a bulk load restores
        whatever preceded the last chat-recorded add. Storage errors propagate.
        """

        ledger = Ledger(entries=list(entries), last_updated=self._clock())
        self._ledger_ref.set(ledger.model_dump(mode="json"))
        _logger.info(
            "ledger:replace_entries entries=%d items=%d", len(ledger.entries), ledger.item_count
        )
        return ledger


# ---- Rendering -----------------------------------------------------------------


def format_aggregated_text(ledger: Ledger, *, display_dates: bool = False) -> str:
    """Render ``ledger`` as ``date`` header lines followed by ``name price`` lines.

    Entries keep their stored order. With ``display_dates`` canonical dates
    are shown as ``M/D`` (the chat view); otherwise dates are rendered as
    stored. An empty ledger renders as :data:`EMPTY_LEDGER_TEXT`.
    """

    if not ledger.entries:
        return EMPTY_LEDGER_TEXT

    lines: list[str] = []
    for entry in ledger.entries:
        lines.append(display_date(entry.date) if display_dates else entry.date)
        lines.extend(f"{item.name} {item.price}" for item in entry.items)
    return "\n".join(lines).strip()


__all__ = [
    "BACKUP_DOCUMENT_ID",
    "DEFAULT_COLLECTION",
    "EMPTY_LEDGER_TEXT",
    "LEDGER_DOCUMENT_ID",
    "LedgerStore",
    "format_aggregated_text",
]

"""Household expense ledger for a family LINE group.

Chat messages like ``鮮奶 255`` are parsed into items and merged into one
running ledger grouped by date; ``查看``/``打錯``/``整理`` view, undo, and
produce a categorized monthly report via OpenAI.
"""

from .categorize import CategorizationError, OpenAIClassifier, OrganizeOutcome, organize_expenses
from .dispatcher import CommandDispatcher, DispatchOutcome, parse_command
from .ledger import LedgerStore, format_aggregated_text
from .models import AddResult, DateEntry, Item, Ledger, LedgerBackup, ParseResult, UndoResult
from .parser import parse_expense_line, parse_expense_message, parse_historical_block
from .store import SqlDocumentStore, StoreError

__all__ = [
    "AddResult",
    "CategorizationError",
    "CommandDispatcher",
    "DateEntry",
    "DispatchOutcome",
    "Item",
    "Ledger",
    "LedgerBackup",
    "LedgerStore",
    "OpenAIClassifier",
    "OrganizeOutcome",
    "ParseResult",
    "SqlDocumentStore",
    "StoreError",
    "UndoResult",
    "format_aggregated_text",
    "organize_expenses",
    "parse_command",
    "parse_expense_line",
    "parse_expense_message",
    "parse_historical_block",
]

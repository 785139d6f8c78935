"""High-level workflows composed from the ledger, parser and terminal helpers."""

from .load_history import (
    load_history_file,
    load_history_interactive,
    load_history_text,
)

__all__ = ["load_history_file", "load_history_interactive", "load_history_text"]

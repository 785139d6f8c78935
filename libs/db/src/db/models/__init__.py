"""Shared SQLAlchemy models registry for the workspace database.

Currently includes the JSON document table used by ``family_ledger``.
"""

from .documents import Base, LedgerDocument

__all__ = [
    "Base",
    "LedgerDocument",
]

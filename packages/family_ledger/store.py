# ruff: noqa: I001
"""Document store collaborator: JSON documents addressed by collection + id.

The ledger only needs two verbs per document, ``get`` and ``set`` (a full
overwrite). :class:`SqlDocumentStore` implements them on the shared
``ledger_documents`` table owned by ``libs/db``; any object satisfying
:class:`DocumentStore` can be injected instead.

There is no conditional write: concurrent read-modify-write cycles on the same
document resolve as last-write-wins.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any, NamedTuple, Protocol, runtime_checkable

from sqlalchemy.exc import SQLAlchemyError

from db.client import session_scope
from db.models.documents import LedgerDocument

from .logging_setup import get_logger

_logger = get_logger("family_ledger.store")


class StoreError(RuntimeError):
    """Raised when the backing store cannot be read or written."""


class DocumentSnapshot(NamedTuple):
    exists: bool
    data: dict[str, Any] | None


@runtime_checkable
class DocumentRef(Protocol):
    def get(self) -> DocumentSnapshot: ...

    def set(self, data: Mapping[str, Any]) -> None: ...


@runtime_checkable
class DocumentStore(Protocol):
    def document(self, collection: str, document_id: str) -> DocumentRef: ...


# ---------------------------------------------------------------------------
# SQLAlchemy implementation
# ---------------------------------------------------------------------------


class SqlDocumentRef:
    __slots__ = ("_store", "collection", "document_id")

    def __init__(self, store: SqlDocumentStore, collection: str, document_id: str) -> None:
        self._store = store
        self.collection = collection
        self.document_id = document_id

    def __repr__(self) -> str:  # pragma: no cover - trivial repr
        return f"SqlDocumentRef({self.collection!r}, {self.document_id!r})"

    def get(self) -> DocumentSnapshot:
        try:
            with session_scope(database_url=self._store.database_url) as session:
                row = session.get(LedgerDocument, (self.collection, self.document_id))
                if row is None:
                    return DocumentSnapshot(exists=False, data=None)
                return DocumentSnapshot(exists=True, data=copy.deepcopy(row.data))
        except SQLAlchemyError as e:
            raise StoreError(
                f"failed to read document {self.collection}/{self.document_id}: {e}"
            ) from e

    def set(self, data: Mapping[str, Any]) -> None:
        payload = copy.deepcopy(dict(data))
        try:
            with session_scope(database_url=self._store.database_url) as session:
                row = session.get(LedgerDocument, (self.collection, self.document_id))
                if row is None:
                    session.add(
                        LedgerDocument(
                            collection=self.collection,
                            document_id=self.document_id,
                            data=payload,
                        )
                    )
                else:
                    # Reassign (not mutate) so the JSON column is flagged dirty.
                    row.data = payload
        except SQLAlchemyError as e:
            raise StoreError(
                f"failed to write document {self.collection}/{self.document_id}: {e}"
            ) from e
        _logger.debug(
            "store:set collection=%s document_id=%s", self.collection, self.document_id
        )


class SqlDocumentStore:
    """Document store backed by the ``ledger_documents`` table.

    ``database_url`` falls back to the ``DATABASE_URL`` environment variable
    when ``None`` (see :mod:`db.client`).
    """

    def __init__(self, database_url: str | None = None) -> None:
        self.database_url = database_url

    def document(self, collection: str, document_id: str) -> SqlDocumentRef:
        return SqlDocumentRef(self, collection, document_id)


__all__ = [
    "DocumentRef",
    "DocumentSnapshot",
    "DocumentStore",
    "SqlDocumentRef",
    "SqlDocumentStore",
    "StoreError",
]

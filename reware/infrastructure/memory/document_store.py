"""In-memory document store (implements IDocumentStore).

Same contract as FirestoreDocumentStore: documents addressed by slash paths,
collection snapshots ordered by document id, atomic commits with
Firestore preconditions. Listeners are called synchronously, first with the
current contents on subscribe and then after every commit that touches them.
"""

from __future__ import annotations

import copy
import itertools
import logging
from collections.abc import Sequence
from typing import Any

from reware.application.dtos.writes import Write, WriteKind
from reware.application.interfaces import (
    DocumentListener,
    ErrorListener,
    SnapshotListener,
    Unsubscribe,
)
from reware.domain.entities import Document
from reware.domain.exceptions import (
    DocumentAlreadyExistsException,
    DocumentNotFoundException,
)
from reware.infrastructure.firebase.collections import split_path
from reware.shared.utils.generators import generate_cuid

logger = logging.getLogger(__name__)


class InMemoryDocumentStore:
    """Process-local document store. Not shared between processes."""

    def __init__(self) -> None:
        self._docs: dict[str, dict[str, Any]] = {}
        self._collection_listeners: dict[str, dict[int, SnapshotListener]] = {}
        self._document_listeners: dict[str, dict[int, DocumentListener]] = {}
        self._ids = itertools.count(1)

    # ---- reads ----

    async def get_one(self, path: str) -> Document | None:
        data = self._docs.get(path)
        if data is None:
            return None
        return Document(split_path(path)[1], copy.deepcopy(data))

    def _snapshot(self, collection_path: str) -> list[Document]:
        prefix = collection_path.rstrip("/") + "/"
        docs = [
            Document(p[len(prefix):], copy.deepcopy(data))
            for p, data in self._docs.items()
            if p.startswith(prefix) and "/" not in p[len(prefix):]
        ]
        docs.sort(key=lambda d: d.id)
        return docs

    # ---- live subscriptions ----

    def subscribe_collection(
        self,
        path: str,
        on_snapshot: SnapshotListener,
        on_error: ErrorListener | None = None,
    ) -> Unsubscribe:
        path = path.rstrip("/")
        token = next(self._ids)
        self._collection_listeners.setdefault(path, {})[token] = on_snapshot
        on_snapshot(self._snapshot(path))

        def unsubscribe() -> None:
            listeners = self._collection_listeners.get(path)
            if listeners is not None:
                listeners.pop(token, None)
                if not listeners:
                    del self._collection_listeners[path]

        return unsubscribe

    def subscribe_document(
        self,
        path: str,
        on_change: DocumentListener,
        on_error: ErrorListener | None = None,
    ) -> Unsubscribe:
        token = next(self._ids)
        self._document_listeners.setdefault(path, {})[token] = on_change
        on_change(self._document(path))

        def unsubscribe() -> None:
            listeners = self._document_listeners.get(path)
            if listeners is not None:
                listeners.pop(token, None)
                if not listeners:
                    del self._document_listeners[path]

        return unsubscribe

    def listener_count(self) -> int:
        """Number of registered live listeners (collections and documents)."""
        return sum(len(v) for v in self._collection_listeners.values()) + sum(
            len(v) for v in self._document_listeners.values()
        )

    def _document(self, path: str) -> Document | None:
        data = self._docs.get(path)
        if data is None:
            return None
        return Document(split_path(path)[1], copy.deepcopy(data))

    def _notify(self, touched: set[str]) -> None:
        collections = {split_path(p)[0] for p in touched}
        for coll in sorted(collections):
            for listener in list(self._collection_listeners.get(coll, {}).values()):
                try:
                    listener(self._snapshot(coll))
                except Exception:
                    logger.exception("Collection listener failed for %s", coll)
        for path in sorted(touched):
            for doc_listener in list(self._document_listeners.get(path, {}).values()):
                try:
                    doc_listener(self._document(path))
                except Exception:
                    logger.exception("Document listener failed for %s", path)

    # ---- writes ----

    async def create(self, path: str, fields: dict[str, Any]) -> str:
        doc_id = generate_cuid()
        await self.commit([Write.create(f"{path.rstrip('/')}/{doc_id}", fields)])
        return doc_id

    async def set(self, path: str, fields: dict[str, Any]) -> None:
        await self.commit([Write.set(path, fields)])

    async def patch(self, path: str, fields: dict[str, Any]) -> None:
        await self.commit([Write.patch(path, fields)])

    async def delete(self, path: str) -> None:
        await self.commit([Write.delete(path)])

    async def increment(self, path: str, field_name: str, amount: int) -> None:
        await self.commit([Write.increment(path, field_name, amount)])

    async def commit(self, writes: Sequence[Write]) -> None:
        """Check every precondition first, then apply all writes and notify once."""
        staged = {w.path: self._docs.get(w.path) for w in writes}
        for w in writes:
            exists = staged[w.path] is not None
            if w.kind == WriteKind.CREATE and exists:
                raise DocumentAlreadyExistsException(w.path)
            if w.kind in (WriteKind.PATCH, WriteKind.DELETE, WriteKind.INCREMENT) and not exists:
                raise DocumentNotFoundException(w.path)
            staged[w.path] = self._apply(w, staged[w.path])
        for path, data in staged.items():
            if data is None:
                self._docs.pop(path, None)
            else:
                self._docs[path] = data
        self._notify(set(staged))

    @staticmethod
    def _apply(write: Write, current: dict[str, Any] | None) -> dict[str, Any] | None:
        if write.kind == WriteKind.DELETE:
            return None
        if write.kind in (WriteKind.CREATE, WriteKind.SET):
            return copy.deepcopy(write.fields)
        updated = copy.deepcopy(current) if current is not None else {}
        if write.kind == WriteKind.PATCH:
            updated.update(copy.deepcopy(write.fields))
        else:
            name = write.field_name or ""
            updated[name] = (updated.get(name) or 0) + write.amount
        return updated

    async def aclose(self) -> None:
        self._collection_listeners.clear()
        self._document_listeners.clear()

"""Live collection and document synchronizers.

A binding owns exactly one store subscription. Every bind() or close()
bumps the generation; callbacks carry the generation they were registered
with and are dropped when it is no longer current, so a late snapshot from a
released subscription can never overwrite the state of the current one.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from typing import Any, Generic, TypeVar

from reware.application.interfaces import IDocumentStore, Unsubscribe
from reware.domain.entities import Document
from reware.views.notifications import NotificationCenter

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _Binding:
    """Generation counter plus the release function of the current subscription."""

    def __init__(self) -> None:
        self.generation = 0
        self.path: str | None = None
        self._unsubscribe: Unsubscribe | None = None

    def next(self, path: str | None) -> int:
        self.release()
        self.generation += 1
        self.path = path
        return self.generation

    def attach(self, generation: int, unsubscribe: Unsubscribe) -> None:
        if generation == self.generation:
            self._unsubscribe = unsubscribe
        else:
            unsubscribe()

    def release(self) -> None:
        if self._unsubscribe is not None:
            unsubscribe, self._unsubscribe = self._unsubscribe, None
            unsubscribe()

    @property
    def active(self) -> bool:
        return self._unsubscribe is not None


class LiveCollection(Generic[T]):
    """Local ordered snapshot of one collection, replaced on every remote change.

    Args:
        store: Document store to subscribe to.
        mapper: Turns a Document into the item type exposed by items.
        label: Plural noun used in the fetch error ("Failed to fetch listings.").
        notifications: Where subscription errors are reported.
        on_change: Called after every state change (snapshot, error, local edit).
    """

    def __init__(
        self,
        store: IDocumentStore,
        mapper: Callable[[Document], T],
        label: str,
        notifications: NotificationCenter | None = None,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        self._store = store
        self._mapper = mapper
        self.label = label
        self._notifications = notifications
        self._on_change = on_change
        self._binding = _Binding()
        self._documents: list[Document] = []
        self._tombstones: set[str] = set()
        self._loading = False
        self._error: str | None = None

    # ---- binding ----

    def bind(self, path: str) -> None:
        """Subscribe to the collection at path, releasing any previous subscription."""
        generation = self._binding.next(path)
        self._documents = []
        self._tombstones = set()
        self._loading = True
        self._error = None
        unsubscribe = self._store.subscribe_collection(
            path,
            lambda docs: self._on_snapshot(generation, docs),
            lambda exc: self._on_error(generation, exc),
        )
        self._binding.attach(generation, unsubscribe)
        self._changed()

    def close(self) -> None:
        """Release the subscription and clear local state."""
        self._binding.next(None)
        self._documents = []
        self._tombstones = set()
        self._loading = False
        self._error = None

    def _on_snapshot(self, generation: int, docs: list[Document]) -> None:
        if generation != self._binding.generation:
            logger.debug("Dropped stale %s snapshot (generation %d)", self.label, generation)
            return
        present = {d.id for d in docs}
        # A tombstone lives until a snapshot without that id arrives.
        self._tombstones &= present
        self._documents = [d for d in docs if d.id not in self._tombstones]
        self._loading = False
        self._error = None
        self._changed()

    def _on_error(self, generation: int, exc: Exception) -> None:
        if generation != self._binding.generation:
            return
        self._error = getattr(exc, "message", None) or str(exc)
        logger.warning("Live %s subscription error: %s", self.label, self._error)
        if self._notifications is not None:
            self._notifications.error(f"Failed to fetch {self.label}.")
        self._changed()

    # ---- local reconciliation ----

    def remove_local(self, doc_id: str) -> None:
        """Drop an item now and hide it from snapshots that still carry it."""
        self._tombstones.add(doc_id)
        self._documents = [d for d in self._documents if d.id != doc_id]
        self._changed()

    def patch_local(self, doc_id: str, fields: dict[str, Any]) -> None:
        """Optimistically merge fields into one item."""
        self._documents = [
            Document(d.id, {**d.data, **fields}) if d.id == doc_id else d
            for d in self._documents
        ]
        self._changed()

    def revert_local(self, previous: Document, fields: Iterable[str]) -> None:
        """Undo an optimistic patch of fields on one item; no-op once the item is gone."""
        current = self.get(previous.id)
        if current is None:
            return
        names = set(fields)
        data = {k: v for k, v in current.data.items() if k not in names}
        data.update({k: v for k, v in previous.data.items() if k in names})
        self._documents = [
            Document(d.id, data) if d.id == previous.id else d for d in self._documents
        ]
        self._changed()

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()

    # ---- state ----

    @property
    def path(self) -> str | None:
        return self._binding.path

    @property
    def generation(self) -> int:
        return self._binding.generation

    @property
    def bound(self) -> bool:
        return self._binding.active

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def documents(self) -> Sequence[Document]:
        return tuple(self._documents)

    @property
    def items(self) -> list[T]:
        return [self._mapper(d) for d in self._documents]

    def get(self, doc_id: str) -> Document | None:
        for d in self._documents:
            if d.id == doc_id:
                return d
        return None

    def __len__(self) -> int:
        return len(self._documents)


class LiveDocument(Generic[T]):
    """Follows one document; value is None while loading or when it does not exist."""

    def __init__(
        self,
        store: IDocumentStore,
        mapper: Callable[[Document], T],
        label: str,
        notifications: NotificationCenter | None = None,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        self._store = store
        self._mapper = mapper
        self.label = label
        self._notifications = notifications
        self._on_change = on_change
        self._binding = _Binding()
        self._document: Document | None = None
        self._loading = False
        self._error: str | None = None

    def bind(self, path: str) -> None:
        generation = self._binding.next(path)
        self._document = None
        self._loading = True
        self._error = None
        unsubscribe = self._store.subscribe_document(
            path,
            lambda doc: self._on_document(generation, doc),
            lambda exc: self._on_error(generation, exc),
        )
        self._binding.attach(generation, unsubscribe)
        if self._on_change is not None:
            self._on_change()

    def close(self) -> None:
        self._binding.next(None)
        self._document = None
        self._loading = False
        self._error = None

    def _on_document(self, generation: int, doc: Document | None) -> None:
        if generation != self._binding.generation:
            return
        self._document = doc
        self._loading = False
        self._error = None
        if self._on_change is not None:
            self._on_change()

    def _on_error(self, generation: int, exc: Exception) -> None:
        if generation != self._binding.generation:
            return
        self._error = getattr(exc, "message", None) or str(exc)
        if self._notifications is not None:
            self._notifications.error(f"Failed to fetch {self.label}.")
        if self._on_change is not None:
            self._on_change()

    @property
    def path(self) -> str | None:
        return self._binding.path

    @property
    def bound(self) -> bool:
        return self._binding.active

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def exists(self) -> bool:
        return self._document is not None

    @property
    def document(self) -> Document | None:
        return self._document

    @property
    def value(self) -> T | None:
        return self._mapper(self._document) if self._document is not None else None

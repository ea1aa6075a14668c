"""Firestore-backed document store (implements IDocumentStore).

Point reads and writes map one-to-one onto the REST client. Live
subscriptions are polling watchers: one asyncio task per subscription that
re-reads the collection (or document) every poll interval and delivers the
full result only when it changed. Local writes wake the watchers of the
paths they touch so the writer's own changes show up without waiting a tick.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections.abc import Awaitable, Callable, Iterator, Sequence
from contextlib import contextmanager
from typing import Any

import httpx
from google.auth.exceptions import GoogleAuthError

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
    DocumentStoreException,
    StoreUnavailableException,
)
from reware.infrastructure.firebase._rest_client import (
    DocumentExistsError,
    DocumentMissingError,
    FirestoreRESTClient,
    FirestoreRESTError,
)
from reware.infrastructure.firebase.collections import split_path

logger = logging.getLogger(__name__)

_UNSET = object()


@contextmanager
def _translate(operation: str, path: str) -> Iterator[None]:
    """Map REST and transport errors to domain DocumentStoreException subclasses."""
    try:
        yield
    except DocumentMissingError as e:
        raise DocumentNotFoundException(path) from e
    except DocumentExistsError as e:
        raise DocumentAlreadyExistsException(path) from e
    except FirestoreRESTError as e:
        raise StoreUnavailableException(operation, e.message) from e
    except httpx.HTTPError as e:
        raise StoreUnavailableException(operation, str(e) or type(e).__name__) from e
    except GoogleAuthError as e:
        raise StoreUnavailableException(operation, str(e) or type(e).__name__) from e


class _Watch:
    """Polling watcher for one live subscription."""

    def __init__(
        self,
        path: str,
        fetch: Callable[[], Awaitable[Any]],
        deliver: Callable[[Any], None],
        on_error: ErrorListener | None,
        interval: float,
    ) -> None:
        self.path = path
        self._fetch = fetch
        self._deliver = deliver
        self._on_error = on_error
        self._interval = interval
        self._wake = asyncio.Event()
        self._last: Any = _UNSET
        self._failing = False
        self.task: asyncio.Task[None] | None = None

    def start(self) -> None:
        self.task = asyncio.get_running_loop().create_task(self._run())

    def nudge(self) -> None:
        self._wake.set()

    def cancel(self) -> None:
        if self.task is not None:
            self.task.cancel()

    async def _run(self) -> None:
        while True:
            self._wake.clear()
            await self._poll_once()
            try:
                await asyncio.wait_for(self._wake.wait(), timeout=self._interval)
            except TimeoutError:
                pass

    async def _poll_once(self) -> None:
        try:
            value = await self._fetch()
        except DocumentStoreException as exc:
            # Report once per failure streak; keep polling so the view recovers.
            if not self._failing:
                self._failing = True
                logger.warning("Live subscription to %s failed: %s", self.path, exc.message)
                if self._on_error is not None:
                    self._on_error(exc)
            return
        self._failing = False
        if self._last is not _UNSET and value == self._last:
            return
        self._last = value
        try:
            self._deliver(value)
        except Exception:
            logger.exception("Snapshot listener failed for %s", self.path)


class FirestoreDocumentStore:
    """IDocumentStore over the Firestore REST API."""

    def __init__(self, client: FirestoreRESTClient, poll_interval: float = 2.0) -> None:
        self._client = client
        self._poll_interval = poll_interval
        self._watches: dict[int, _Watch] = {}
        self._ids = itertools.count(1)

    # ---- reads ----

    async def get_one(self, path: str) -> Document | None:
        with _translate("read", path):
            snap = await self._client.document(path).get()
        if snap is None:
            return None
        return Document(snap.id, snap.to_dict())

    async def list_documents(self, path: str) -> list[Document]:
        """Full contents of a collection, ordered by document id."""
        with _translate("read", path):
            docs = [Document(s.id, s.to_dict()) async for s in self._client.collection(path).stream()]
        docs.sort(key=lambda d: d.id)
        return docs

    # ---- live subscriptions ----

    def _watch(
        self,
        path: str,
        fetch: Callable[[], Awaitable[Any]],
        deliver: Callable[[Any], None],
        on_error: ErrorListener | None,
    ) -> Unsubscribe:
        token = next(self._ids)
        watch = _Watch(path, fetch, deliver, on_error, self._poll_interval)
        self._watches[token] = watch
        watch.start()
        logger.debug("Watching %s (%d active)", path, len(self._watches))

        def unsubscribe() -> None:
            removed = self._watches.pop(token, None)
            if removed is not None:
                removed.cancel()

        return unsubscribe

    def subscribe_collection(
        self,
        path: str,
        on_snapshot: SnapshotListener,
        on_error: ErrorListener | None = None,
    ) -> Unsubscribe:
        path = path.strip("/")
        return self._watch(path, lambda: self.list_documents(path), on_snapshot, on_error)

    def subscribe_document(
        self,
        path: str,
        on_change: DocumentListener,
        on_error: ErrorListener | None = None,
    ) -> Unsubscribe:
        path = path.strip("/")
        return self._watch(path, lambda: self.get_one(path), on_change, on_error)

    def active_watch_count(self) -> int:
        return len(self._watches)

    def _nudge(self, paths: set[str]) -> None:
        parents = {split_path(p)[0] for p in paths}
        for watch in self._watches.values():
            if watch.path in paths or watch.path in parents:
                watch.nudge()

    # ---- writes ----

    async def create(self, path: str, fields: dict[str, Any]) -> str:
        ref = self._client.collection(path).document()
        await self.commit([Write.create(ref.path, fields)])
        return ref.id

    async def set(self, path: str, fields: dict[str, Any]) -> None:
        await self.commit([Write.set(path, fields)])

    async def patch(self, path: str, fields: dict[str, Any]) -> None:
        await self.commit([Write.patch(path, fields)])

    async def delete(self, path: str) -> None:
        await self.commit([Write.delete(path)])

    async def increment(self, path: str, field_name: str, amount: int) -> None:
        await self.commit([Write.increment(path, field_name, amount)])

    async def commit(self, writes: Sequence[Write]) -> None:
        batch = self._client.batch()
        for w in writes:
            ref = self._client.document(w.path)
            if w.kind == WriteKind.CREATE:
                batch.create(ref, w.fields)
            elif w.kind == WriteKind.SET:
                batch.set(ref, w.fields)
            elif w.kind == WriteKind.PATCH:
                batch.update(ref, w.fields)
            elif w.kind == WriteKind.DELETE:
                batch.delete(ref)
            else:
                batch.increment(ref, w.field_name or "", w.amount)
        # The REST error does not say which write failed; name every path in the commit.
        with _translate("write", ", ".join(w.path for w in writes)):
            await batch.commit()
        self._nudge({w.path for w in writes})

    async def aclose(self) -> None:
        for watch in list(self._watches.values()):
            watch.cancel()
        self._watches.clear()

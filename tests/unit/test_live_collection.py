"""Tests for LiveCollection and LiveDocument generation handling."""

from collections.abc import Callable

from reware.domain.entities import Document, Listing, UserProfile
from reware.domain.exceptions import StoreUnavailableException
from reware.infrastructure.memory import InMemoryDocumentStore
from reware.views.notifications import NotificationCenter
from reware.views.sync import LiveCollection, LiveDocument


class ManualStore:
    """Store double that hands snapshot callbacks to the test."""

    def __init__(self) -> None:
        self.subscriptions: list[tuple[str, Callable, Callable]] = []
        self.released: list[str] = []

    def subscribe_collection(self, path, on_snapshot, on_error=None):
        self.subscriptions.append((path, on_snapshot, on_error))
        return lambda: self.released.append(path)

    def subscribe_document(self, path, on_change, on_error=None):
        self.subscriptions.append((path, on_change, on_error))
        return lambda: self.released.append(path)


def _docs(*ids: str) -> list[Document]:
    return [Document(i, {"title": i.upper()}) for i in ids]


def test_bind_sets_loading_until_first_snapshot() -> None:
    store = ManualStore()
    live = LiveCollection(store, Listing.from_document, "listings")
    live.bind("users/u1/listings")
    assert live.loading
    assert live.bound
    _, on_snapshot, _ = store.subscriptions[0]
    on_snapshot(_docs("a", "b"))
    assert not live.loading
    assert [item.title for item in live.items] == ["A", "B"]


def test_stale_generation_snapshot_is_dropped() -> None:
    """After a rebind, the old subscription cannot overwrite the new state."""
    store = ManualStore()
    live = LiveCollection(store, Listing.from_document, "listings")
    live.bind("users/u1/listings")
    live.bind("users/u2/listings")
    assert store.released == ["users/u1/listings"]
    _, old_callback, _ = store.subscriptions[0]
    _, new_callback, _ = store.subscriptions[1]

    new_callback(_docs("mine"))
    old_callback(_docs("theirs"))
    assert [d.id for d in live.documents] == ["mine"]
    assert live.generation == 2


def test_close_drops_later_snapshots_and_clears_state() -> None:
    store = ManualStore()
    live = LiveCollection(store, Listing.from_document, "listings")
    live.bind("users/u1/listings")
    _, callback, _ = store.subscriptions[0]
    callback(_docs("a"))
    live.close()
    callback(_docs("a", "b"))
    assert len(live) == 0
    assert not live.bound
    assert live.path is None


def test_tombstone_hides_item_until_snapshot_without_it() -> None:
    store = ManualStore()
    live = LiveCollection(store, Listing.from_document, "listings")
    live.bind("users/u1/listings")
    _, callback, _ = store.subscriptions[0]
    callback(_docs("a", "b"))

    live.remove_local("a")
    assert [d.id for d in live.documents] == ["b"]
    # A snapshot taken before the delete reached the server still carries "a".
    callback(_docs("a", "b"))
    assert [d.id for d in live.documents] == ["b"]
    callback(_docs("b"))
    # The tombstone is gone: a recreated "a" shows again.
    callback(_docs("a", "b"))
    assert [d.id for d in live.documents] == ["a", "b"]


def test_patch_local_and_revert_local() -> None:
    store = ManualStore()
    live = LiveCollection(store, UserProfile.from_document, "users")
    live.bind("users")
    _, callback, _ = store.subscriptions[0]
    callback([Document("u1", {"displayName": "Ann", "role": "user"})])
    before = live.get("u1")
    assert before is not None

    live.patch_local("u1", {"role": "admin"})
    assert live.items[0].is_admin
    # A snapshot lands while the write is in flight.
    callback([Document("u1", {"displayName": "Ann", "role": "admin", "points": 30}), Document("u2", {})])
    live.revert_local(before, ("displayName", "role"))
    assert not live.items[0].is_admin
    assert live.items[0].points == 30
    assert [d.id for d in live.documents] == ["u1", "u2"]


def test_revert_local_skips_removed_item() -> None:
    store = ManualStore()
    live = LiveCollection(store, UserProfile.from_document, "users")
    live.bind("users")
    _, callback, _ = store.subscriptions[0]
    callback([Document("u1", {"role": "user"}), Document("u2", {"role": "user"})])
    before = live.get("u1")
    assert before is not None

    callback([Document("u2", {"role": "user"})])
    live.revert_local(before, ("displayName", "role"))
    assert [d.id for d in live.documents] == ["u2"]


def test_error_reports_fetch_failure(notifications: NotificationCenter) -> None:
    store = ManualStore()
    changes: list[int] = []
    live = LiveCollection(
        store, Listing.from_document, "listings", notifications, lambda: changes.append(1)
    )
    live.bind("users/u1/listings")
    _, _, on_error = store.subscriptions[0]
    on_error(StoreUnavailableException("read", "503"))
    assert live.error is not None
    assert notifications.messages() == ["Failed to fetch listings."]
    assert changes


def test_stale_error_is_ignored(notifications: NotificationCenter) -> None:
    store = ManualStore()
    live = LiveCollection(store, Listing.from_document, "listings", notifications)
    live.bind("users/u1/listings")
    live.bind("users/u1/listings")
    _, _, old_error = store.subscriptions[0]
    old_error(StoreUnavailableException("read", "503"))
    assert live.error is None
    assert notifications.history == []


async def test_live_collection_against_memory_store(store: InMemoryDocumentStore) -> None:
    live = LiveCollection(store, Listing.from_document, "listings")
    live.bind("users/u1/listings")
    assert not live.loading
    await store.set("users/u1/listings/l1", {"title": "Chair"})
    assert [item.title for item in live.items] == ["Chair"]
    live.close()
    assert store.listener_count() == 0


async def test_live_document_follows_creation_and_deletion(store: InMemoryDocumentStore) -> None:
    changes: list[int] = []
    profile = LiveDocument(store, UserProfile.from_document, "profile", on_change=lambda: changes.append(1))
    profile.bind("users/u1")
    assert not profile.exists
    await store.set("users/u1", {"email": "a@b.c", "points": 50})
    assert profile.value is not None and profile.value.points == 50
    await store.delete("users/u1")
    assert profile.value is None
    # bind, first delivery, set, delete
    assert len(changes) == 4


def test_live_document_drops_stale_generation() -> None:
    store = ManualStore()
    profile = LiveDocument(store, UserProfile.from_document, "profile")
    profile.bind("users/u1")
    profile.bind("users/u2")
    _, old_callback, _ = store.subscriptions[0]
    old_callback(Document("u1", {"points": 10}))
    assert profile.loading
    assert profile.document is None


def test_live_document_bind_reports_loading_before_first_delivery() -> None:
    store = ManualStore()
    states: list[bool] = []
    profile = LiveDocument(
        store, UserProfile.from_document, "profile", on_change=lambda: states.append(profile.loading)
    )
    profile.bind("users/u1")
    assert states == [True]
    _, callback, _ = store.subscriptions[0]
    callback(Document("u1", {"points": 5}))
    assert states == [True, False]

"""Tests for MutationDispatcher writes and their notifications."""

import pytest

from reware.application.dtos.writes import Write
from reware.domain.entities import Document, Identity, Listing, ListingDraft, PurchaseDraft
from reware.domain.enums import Condition, NotificationLevel, Role
from reware.domain.exceptions import DocumentAlreadyExistsException
from reware.infrastructure.memory import InMemoryDocumentStore
from reware.views.dispatcher import MutationDispatcher
from reware.views.notifications import NotificationCenter
from reware.views.sync import LiveCollection


@pytest.fixture
def dispatcher(store: InMemoryDocumentStore, notifications: NotificationCenter) -> MutationDispatcher:
    return MutationDispatcher(store, notifications)


async def _profile(store: InMemoryDocumentStore, user_id: str = "alice", points: int = 0) -> None:
    await store.set(f"users/{user_id}", {"email": f"{user_id}@example.com", "points": points, "role": "user"})


async def test_ensure_profile_creates_default_once(
    dispatcher: MutationDispatcher, store: InMemoryDocumentStore, alice: Identity
) -> None:
    first = await dispatcher.ensure_profile(alice)
    assert first is not None
    assert first.points == 0
    assert first.role == Role.USER
    assert first.display_name == "Alice"

    await store.increment("users/alice", "points", 100)
    second = await dispatcher.ensure_profile(alice)
    assert second is not None and second.points == 100


async def test_ensure_profile_rereads_when_created_concurrently(
    notifications: NotificationCenter, alice: Identity
) -> None:
    class RacingStore(InMemoryDocumentStore):
        """Another session creates the profile between our read and our create."""

        async def commit(self, writes: list[Write]) -> None:
            if writes[0].path == "users/alice" and await self.get_one("users/alice") is None:
                await super().commit([Write.create("users/alice", {"email": "x", "points": 7})])
                raise DocumentAlreadyExistsException("users/alice")
            await super().commit(writes)

    dispatcher = MutationDispatcher(RacingStore(), notifications)
    profile = await dispatcher.ensure_profile(alice)
    assert profile is not None and profile.points == 7
    assert notifications.history == []


@pytest.mark.parametrize(("condition", "points"), [(Condition.GOOD, 100), (Condition.FAIR, 50), (Condition.POOR, 50)])
async def test_create_listing_awards_points_atomically(
    dispatcher: MutationDispatcher,
    store: InMemoryDocumentStore,
    notifications: NotificationCenter,
    condition: Condition,
    points: int,
) -> None:
    await _profile(store)
    listing_id = await dispatcher.create_listing(
        "alice", ListingDraft(title="Chair", price="20", condition=condition)
    )
    assert listing_id is not None
    listing = await store.get_one(f"users/alice/listings/{listing_id}")
    assert listing is not None and listing.data["pointsEarned"] == points
    profile = await store.get_one("users/alice")
    assert profile is not None and profile.data["points"] == points
    assert notifications.last is not None
    assert notifications.last.message == "Listing added and points awarded!"


async def test_create_listing_without_profile_writes_nothing(
    dispatcher: MutationDispatcher, store: InMemoryDocumentStore, notifications: NotificationCenter
) -> None:
    """The increment precondition fails, so the listing is not created either."""
    seen: list[list[Document]] = []
    store.subscribe_collection("users/alice/listings", seen.append)
    result = await dispatcher.create_listing("alice", ListingDraft(title="Chair", price="20"))
    assert result is None
    assert seen == [[]]
    assert notifications.last is not None
    assert notifications.last.level == NotificationLevel.ERROR
    assert notifications.last.message.startswith("Failed to add listing: No document to update")


async def test_create_purchase(
    dispatcher: MutationDispatcher, store: InMemoryDocumentStore, notifications: NotificationCenter
) -> None:
    purchase_id = await dispatcher.create_purchase("alice", PurchaseDraft(title="Desk", price="40"))
    assert purchase_id is not None
    assert await store.get_one(f"users/alice/purchases/{purchase_id}") is not None
    assert notifications.messages() == ["Purchase recorded!"]


async def test_delete_listing_keeps_points_and_second_delete_fails(
    dispatcher: MutationDispatcher, store: InMemoryDocumentStore, notifications: NotificationCenter
) -> None:
    await _profile(store)
    listing_id = await dispatcher.create_listing("alice", ListingDraft(title="Chair", price="20"))
    assert listing_id is not None
    live = LiveCollection(store, Listing.from_document, "listings")
    live.bind("users/alice/listings")

    assert await dispatcher.delete_listing("alice", listing_id, live)
    assert len(live) == 0
    profile = await store.get_one("users/alice")
    assert profile is not None and profile.data["points"] == 100

    assert not await dispatcher.delete_listing("alice", listing_id, live)
    assert notifications.last is not None
    assert notifications.last.message.startswith("Failed to delete listing: No document to update")


async def test_delete_purchase(
    dispatcher: MutationDispatcher, store: InMemoryDocumentStore, notifications: NotificationCenter
) -> None:
    await store.set("users/alice/purchases/p1", {"title": "Desk", "price": "40"})
    assert await dispatcher.delete_purchase("alice", "p1")
    assert notifications.last is not None and notifications.last.message == "Purchase deleted!"


async def test_update_user_patches_name_and_role_only(
    dispatcher: MutationDispatcher, store: InMemoryDocumentStore, notifications: NotificationCenter
) -> None:
    await _profile(store, "bob", points=30)
    assert await dispatcher.update_user("bob", "Robert", Role.MODERATOR)
    doc = await store.get_one("users/bob")
    assert doc is not None
    assert doc.data == {"email": "bob@example.com", "points": 30, "role": "moderator", "displayName": "Robert"}
    assert notifications.messages() == ["User updated successfully"]


async def test_update_missing_user_fails(
    dispatcher: MutationDispatcher, notifications: NotificationCenter
) -> None:
    assert not await dispatcher.update_user("ghost", "Ghost", Role.USER)
    assert notifications.last is not None
    assert notifications.last.message.startswith("Failed to update user:")


async def test_delete_user_removes_profile(
    dispatcher: MutationDispatcher, store: InMemoryDocumentStore, notifications: NotificationCenter
) -> None:
    await _profile(store, "bob")
    assert await dispatcher.delete_user("bob")
    assert await store.get_one("users/bob") is None
    assert notifications.messages() == ["User deleted successfully"]

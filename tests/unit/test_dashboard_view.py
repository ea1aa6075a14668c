"""Tests for DashboardView: live bindings per identity and user actions."""

import pytest

from reware.domain.entities import Identity
from reware.domain.enums import NotificationLevel
from reware.domain.exceptions import AuthenticationException, IdentityProviderException
from reware.infrastructure.memory import InMemoryDocumentStore
from reware.views.dashboard import DashboardView
from reware.views.dispatcher import MutationDispatcher
from reware.views.notifications import NotificationCenter
from reware.views.session import SessionGate
from tests.fakes import FakeIdentityProvider


@pytest.fixture
def gate(fake_provider: FakeIdentityProvider) -> SessionGate:
    gate = SessionGate(fake_provider)
    gate.start()
    return gate


@pytest.fixture
def view(
    store: InMemoryDocumentStore,
    gate: SessionGate,
    fake_provider: FakeIdentityProvider,
    notifications: NotificationCenter,
) -> DashboardView:
    return DashboardView(
        store, gate, fake_provider, MutationDispatcher(store, notifications), notifications
    )


async def test_first_visit_creates_profile(
    view: DashboardView, fake_provider: FakeIdentityProvider, alice: Identity
) -> None:
    fake_provider.emit(alice)
    view.mount()
    await view.wait_idle()
    state = view.render()
    assert state["profile"]["displayName"] == "Alice"
    assert state["stats"] == {"listings": 0, "purchases": 0, "points": 0}
    assert state["loading"] == {"profile": False, "listings": False, "purchases": False}
    assert not state["isAdmin"]


async def test_add_listing_updates_stats_live(
    view: DashboardView,
    fake_provider: FakeIdentityProvider,
    notifications: NotificationCenter,
    alice: Identity,
) -> None:
    fake_provider.emit(alice)
    view.mount()
    await view.wait_idle()
    await view.add_listing("Chair", "20", "good", "oak")
    await view.add_listing("Lamp", "5", "poor")
    state = view.render()
    assert state["stats"] == {"listings": 2, "purchases": 0, "points": 150}
    assert sorted(item["title"] for item in state["listings"]) == ["Chair", "Lamp"]
    assert notifications.messages(NotificationLevel.SUCCESS) == [
        "Listing added and points awarded!",
        "Listing added and points awarded!",
    ]


@pytest.mark.parametrize(
    ("title", "price", "condition", "message"),
    [
        ("", "20", "good", "Failed to add listing: title is required"),
        ("Chair", "", "good", "Failed to add listing: price is required"),
        ("Chair", "20", "mint", "Failed to add listing: Unknown condition: mint"),
    ],
)
async def test_add_listing_rejects_bad_input(
    view: DashboardView,
    fake_provider: FakeIdentityProvider,
    notifications: NotificationCenter,
    store: InMemoryDocumentStore,
    alice: Identity,
    title: str,
    price: str,
    condition: str,
    message: str,
) -> None:
    fake_provider.emit(alice)
    view.mount()
    await view.wait_idle()
    assert await view.add_listing(title, price, condition) is None
    assert notifications.last is not None and notifications.last.message == message
    profile = await store.get_one("users/alice")
    assert profile is not None and profile.data["points"] == 0


async def test_purchases_and_deletes(
    view: DashboardView, fake_provider: FakeIdentityProvider, alice: Identity
) -> None:
    fake_provider.emit(alice)
    view.mount()
    await view.wait_idle()
    purchase_id = await view.add_purchase("Desk", "40")
    listing_id = await view.add_listing("Chair", "20", "fair")
    assert purchase_id is not None and listing_id is not None
    assert await view.delete_purchase(purchase_id)
    assert await view.delete_listing(listing_id)
    state = view.render()
    # Points stay awarded after the listing is gone.
    assert state["stats"] == {"listings": 0, "purchases": 0, "points": 50}


async def test_add_purchase_requires_fields(
    view: DashboardView,
    fake_provider: FakeIdentityProvider,
    notifications: NotificationCenter,
    alice: Identity,
) -> None:
    fake_provider.emit(alice)
    view.mount()
    await view.wait_idle()
    assert await view.add_purchase("Desk", " ") is None
    assert notifications.last is not None
    assert notifications.last.message == "Failed to record purchase: price is required"


async def test_identity_switch_rebinds_to_new_owner(
    view: DashboardView,
    fake_provider: FakeIdentityProvider,
    store: InMemoryDocumentStore,
    alice: Identity,
    bob: Identity,
) -> None:
    fake_provider.emit(alice)
    view.mount()
    await view.wait_idle()
    await view.add_listing("Chair", "20")

    fake_provider.emit(bob)
    await view.wait_idle()
    assert view.owner == bob
    assert view.listings.path == "users/bob/listings"
    assert view.render()["listings"] == []
    # Writes to the previous owner's data no longer reach this view.
    await store.set("users/alice/listings/extra", {"title": "Extra"})
    assert view.render()["listings"] == []


async def test_sign_out_releases_subscriptions(
    view: DashboardView,
    fake_provider: FakeIdentityProvider,
    store: InMemoryDocumentStore,
    alice: Identity,
) -> None:
    fake_provider.emit(alice)
    view.mount()
    await view.wait_idle()
    assert store.listener_count() == 3
    fake_provider.emit(None)
    assert store.listener_count() == 0
    assert view.owner is None
    with pytest.raises(AuthenticationException):
        await view.add_listing("Chair", "20")


async def test_unmount_stops_following_session(
    view: DashboardView,
    fake_provider: FakeIdentityProvider,
    store: InMemoryDocumentStore,
    alice: Identity,
) -> None:
    fake_provider.emit(alice)
    view.mount()
    await view.wait_idle()
    view.unmount()
    fake_provider.emit(Identity("carol", "carol@example.com"))
    assert view.owner is None
    assert store.listener_count() == 0


async def test_logout(
    view: DashboardView,
    fake_provider: FakeIdentityProvider,
    notifications: NotificationCenter,
    alice: Identity,
) -> None:
    fake_provider.emit(alice)
    view.mount()
    await view.wait_idle()
    assert await view.logout()
    assert notifications.last is not None
    assert notifications.last.message == "Logged out successfully!"


async def test_logout_failure_is_reported(
    view: DashboardView,
    fake_provider: FakeIdentityProvider,
    notifications: NotificationCenter,
    alice: Identity,
) -> None:
    fake_provider.emit(alice)
    fake_provider.fail_sign_out = IdentityProviderException("offline")
    view.mount()
    await view.wait_idle()
    assert not await view.logout()
    assert notifications.last is not None
    assert notifications.last.message == "Failed to log out."
    assert view.owner == alice

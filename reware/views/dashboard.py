"""Dashboard view: the owner's profile, listings and purchases, all live."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from typing import Any

from reware.application.interfaces import IDocumentStore, IIdentityProvider, Unsubscribe
from reware.domain.entities import (
    Identity,
    Listing,
    ListingDraft,
    Purchase,
    PurchaseDraft,
    UserProfile,
)
from reware.domain.enums import Condition
from reware.domain.exceptions import (
    AuthenticationException,
    IdentityProviderException,
    ValidationException,
)
from reware.infrastructure.firebase.collections import (
    listings_path,
    purchases_path,
    user_path,
)
from reware.views.dispatcher import MutationDispatcher
from reware.views.notifications import NotificationCenter
from reware.views.session import SessionGate, SessionState
from reware.views.sync import LiveCollection, LiveDocument

logger = logging.getLogger(__name__)


class DashboardView:
    """Binds the three live sources to the authenticated identity."""

    name = "dashboard"

    def __init__(
        self,
        store: IDocumentStore,
        gate: SessionGate,
        provider: IIdentityProvider,
        dispatcher: MutationDispatcher,
        notifications: NotificationCenter,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        self._gate = gate
        self._provider = provider
        self._dispatcher = dispatcher
        self._notifications = notifications
        self._on_change = on_change
        self.profile: LiveDocument[UserProfile] = LiveDocument(
            store, UserProfile.from_document, "profile", notifications, on_change
        )
        self.listings: LiveCollection[Listing] = LiveCollection(
            store, Listing.from_document, "listings", notifications, on_change
        )
        self.purchases: LiveCollection[Purchase] = LiveCollection(
            store, Purchase.from_document, "purchases", notifications, on_change
        )
        self._unsubscribe_gate: Unsubscribe | None = None
        self._owner: Identity | None = None
        self._ensure: asyncio.Task[UserProfile | None] | None = None

    @property
    def owner(self) -> Identity | None:
        return self._owner

    def mount(self) -> None:
        if self._unsubscribe_gate is not None:
            return
        self._unsubscribe_gate = self._gate.subscribe(self._on_session)
        self._on_session(self._gate.state)

    def unmount(self) -> None:
        if self._unsubscribe_gate is not None:
            self._unsubscribe_gate()
            self._unsubscribe_gate = None
        self._release()

    def _release(self) -> None:
        if self._ensure is not None and not self._ensure.done():
            self._ensure.cancel()
        self._ensure = None
        self.profile.close()
        self.listings.close()
        self.purchases.close()
        self._owner = None

    def _on_session(self, state: SessionState) -> None:
        if self._unsubscribe_gate is None:
            return
        identity = state.identity
        if identity is None:
            self._release()
            return
        if self._owner is not None and self._owner.id == identity.id:
            return
        self._release()
        self._owner = identity
        self.profile.bind(user_path(identity.id))
        self.listings.bind(listings_path(identity.id))
        self.purchases.bind(purchases_path(identity.id))
        self._ensure = asyncio.get_running_loop().create_task(
            self._dispatcher.ensure_profile(identity)
        )

    async def wait_idle(self) -> None:
        """Wait for the profile bootstrap of the current identity."""
        if self._ensure is not None and not self._ensure.done():
            with contextlib.suppress(asyncio.CancelledError):
                await self._ensure

    def _require_owner(self) -> Identity:
        if self._owner is None:
            raise AuthenticationException("Sign in to continue")
        return self._owner

    # ---- actions ----

    async def add_listing(
        self,
        title: str,
        price: str,
        condition: str = Condition.GOOD.value,
        description: str = "",
    ) -> str | None:
        owner = self._require_owner()
        try:
            if condition not in [c.value for c in Condition]:
                raise ValidationException(f"Unknown condition: {condition}", field="condition")
            draft = ListingDraft(
                title=title,
                price=price,
                condition=Condition(condition),
                description=description,
            )
        except ValidationException as e:
            self._notifications.error(f"Failed to add listing: {e.message}")
            return None
        return await self._dispatcher.create_listing(owner.id, draft)

    async def add_purchase(self, title: str, price: str) -> str | None:
        owner = self._require_owner()
        try:
            draft = PurchaseDraft(title=title, price=price)
        except ValidationException as e:
            self._notifications.error(f"Failed to record purchase: {e.message}")
            return None
        return await self._dispatcher.create_purchase(owner.id, draft)

    async def delete_listing(self, listing_id: str) -> bool:
        owner = self._require_owner()
        return await self._dispatcher.delete_listing(owner.id, listing_id, self.listings)

    async def delete_purchase(self, purchase_id: str) -> bool:
        owner = self._require_owner()
        return await self._dispatcher.delete_purchase(owner.id, purchase_id, self.purchases)

    async def logout(self) -> bool:
        try:
            await self._provider.sign_out()
        except IdentityProviderException as e:
            logger.warning("Sign-out failed: %s", e.message)
            self._notifications.error("Failed to log out.")
            return False
        self._notifications.success("Logged out successfully!")
        return True

    def render(self) -> dict[str, Any]:
        profile = self.profile.value
        listings = self.listings.items
        purchases = self.purchases.items
        bootstrapping = self._ensure is not None and not self._ensure.done()
        return {
            "profile": profile.to_view() if profile else None,
            "isAdmin": bool(profile and profile.is_admin),
            "listings": [item.to_view() for item in listings],
            "purchases": [item.to_view() for item in purchases],
            "stats": {
                "listings": len(listings),
                "purchases": len(purchases),
                "points": profile.points if profile else 0,
            },
            "loading": {
                "profile": self.profile.loading or (profile is None and bootstrapping),
                "listings": self.listings.loading,
                "purchases": self.purchases.loading,
            },
            "conditions": [c.value for c in Condition],
        }

"""Mutation dispatcher: user actions turned into document store writes.

Every action reports its own outcome through the NotificationCenter and
returns a falsy value on failure; store errors never propagate to the caller.
"""

from __future__ import annotations

import logging

from reware.application.dtos.writes import Write
from reware.application.interfaces import IDocumentStore
from reware.domain.entities import (
    Document,
    Identity,
    ListingDraft,
    PurchaseDraft,
    UserProfile,
)
from reware.domain.enums import Role
from reware.domain.exceptions import (
    DocumentAlreadyExistsException,
    DocumentStoreException,
)
from reware.infrastructure.firebase.collections import (
    listing_path,
    purchase_path,
    user_path,
)
from reware.shared.utils.datetime import utc_now
from reware.shared.utils.generators import generate_cuid
from reware.views.notifications import NotificationCenter
from reware.views.sync import LiveCollection

logger = logging.getLogger(__name__)


class MutationDispatcher:
    """Writes for one session, with success and failure toasts."""

    def __init__(self, store: IDocumentStore, notifications: NotificationCenter) -> None:
        self._store = store
        self._notifications = notifications

    def _failed(self, action: str, exc: DocumentStoreException) -> None:
        logger.warning("%s failed: %s", action, exc.message)
        self._notifications.error(f"Failed to {action}: {exc.message}")

    async def ensure_profile(self, identity: Identity) -> UserProfile | None:
        """Return the identity's profile, creating the default one when absent."""
        path = user_path(identity.id)
        try:
            doc = await self._store.get_one(path)
            if doc is None:
                fields = UserProfile.default_fields(identity, utc_now())
                try:
                    await self._store.commit([Write.create(path, fields)])
                    doc = Document(identity.id, fields)
                    logger.info("Created profile for %s", identity.id)
                except DocumentAlreadyExistsException:
                    # Another session of the same user created it first.
                    doc = await self._store.get_one(path)
        except DocumentStoreException as e:
            self._failed("load profile", e)
            return None
        return UserProfile.from_document(doc) if doc is not None else None

    async def create_listing(self, owner_id: str, draft: ListingDraft) -> str | None:
        """Create the listing and award its points in one atomic commit."""
        listing_id = generate_cuid()
        writes = [
            Write.create(listing_path(owner_id, listing_id), draft.to_fields(utc_now())),
            Write.increment(user_path(owner_id), "points", draft.points_earned),
        ]
        try:
            await self._store.commit(writes)
        except DocumentStoreException as e:
            self._failed("add listing", e)
            return None
        self._notifications.success("Listing added and points awarded!")
        return listing_id

    async def create_purchase(self, owner_id: str, draft: PurchaseDraft) -> str | None:
        purchase_id = generate_cuid()
        try:
            await self._store.commit(
                [Write.create(purchase_path(owner_id, purchase_id), draft.to_fields(utc_now()))]
            )
        except DocumentStoreException as e:
            self._failed("record purchase", e)
            return None
        self._notifications.success("Purchase recorded!")
        return purchase_id

    async def _delete(
        self,
        path: str,
        doc_id: str,
        action: str,
        success: str,
        live: LiveCollection | None,
    ) -> bool:
        try:
            await self._store.delete(path)
        except DocumentStoreException as e:
            self._failed(action, e)
            return False
        if live is not None:
            live.remove_local(doc_id)
        self._notifications.success(success)
        return True

    async def delete_listing(
        self, owner_id: str, listing_id: str, live: LiveCollection | None = None
    ) -> bool:
        """Delete a listing. Points already awarded are kept."""
        return await self._delete(
            listing_path(owner_id, listing_id), listing_id, "delete listing", "Listing deleted!", live
        )

    async def delete_purchase(
        self, owner_id: str, purchase_id: str, live: LiveCollection | None = None
    ) -> bool:
        return await self._delete(
            purchase_path(owner_id, purchase_id),
            purchase_id,
            "delete purchase",
            "Purchase deleted!",
            live,
        )

    async def update_user(self, user_id: str, display_name: str, role: Role) -> bool:
        """Patch displayName and role of a profile. Email is never written."""
        try:
            await self._store.patch(
                user_path(user_id), {"displayName": display_name, "role": Role(role).value}
            )
        except DocumentStoreException as e:
            self._failed("update user", e)
            return False
        self._notifications.success("User updated successfully")
        return True

    async def delete_user(self, user_id: str, live: LiveCollection | None = None) -> bool:
        """Delete the profile document only; the identity record is left alone."""
        return await self._delete(
            user_path(user_id), user_id, "delete user", "User deleted successfully", live
        )

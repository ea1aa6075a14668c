"""Role authorizer: decides whether an identity may open the admin view."""

from __future__ import annotations

import logging
from enum import Enum

from reware.application.interfaces import IDocumentStore
from reware.domain.entities import Identity, UserProfile
from reware.domain.enums import Role
from reware.domain.exceptions import DocumentStoreException
from reware.infrastructure.firebase.collections import user_path
from reware.views.notifications import NotificationCenter

logger = logging.getLogger(__name__)

ADMIN_DENIED_MESSAGE = "You do not have admin privileges"


class AuthorizationOutcome(str, Enum):
    GRANTED = "granted"
    DENIED = "denied"
    FAILED = "failed"


class RoleAuthorizer:
    """One point read of users/{id}; only role == admin is granted.

    Fails closed: a read error is reported and never grants access.
    """

    def __init__(self, store: IDocumentStore, notifications: NotificationCenter) -> None:
        self._store = store
        self._notifications = notifications

    async def check(self, identity: Identity) -> AuthorizationOutcome:
        try:
            doc = await self._store.get_one(user_path(identity.id))
        except DocumentStoreException as e:
            logger.warning("Admin check failed for %s: %s", identity.id, e.message)
            self._notifications.error(f"Failed to verify admin privileges: {e.message}")
            return AuthorizationOutcome.FAILED
        if doc is None or UserProfile.from_document(doc).role != Role.ADMIN:
            logger.info("Admin access denied for %s", identity.id)
            self._notifications.error(ADMIN_DENIED_MESSAGE)
            return AuthorizationOutcome.DENIED
        return AuthorizationOutcome.GRANTED

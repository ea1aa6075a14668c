"""Backend factory: creates the document store and identity providers from settings."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

import httpx

from reware.application.interfaces import IDocumentStore, IIdentityProvider

if TYPE_CHECKING:
    from reware.core.config import Settings

logger = logging.getLogger(__name__)


@dataclass
class Backend:
    """The shared document store plus a factory for per-session identity providers."""

    name: str
    store: IDocumentStore
    identity_factory: Callable[[], IIdentityProvider]

    def new_identity_provider(self) -> IIdentityProvider:
        return self.identity_factory()

    async def aclose(self) -> None:
        await self.store.aclose()


class BackendFactory:
    """Factory for backend instances based on configuration."""

    @staticmethod
    def create_backend(
        settings: "Settings | None" = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> Backend:
        """Create the configured backend.

        Args:
            settings: Application settings; if None, uses get_settings().
            http_client: Shared outbound client (firestore backend only).

        Returns:
            Backend wired for 'firestore' or 'memory'.

        Raises:
            ValueError: Unknown backend or Firestore could not be initialized.
        """
        from reware.core.config import get_settings

        s = settings or get_settings()
        backend = s.backend.lower()

        if backend == "memory":
            from reware.infrastructure.memory import (
                InMemoryAuthBackend,
                InMemoryDocumentStore,
                InMemoryIdentityProvider,
            )

            accounts = InMemoryAuthBackend()
            logger.info("Using in-memory backend (data is lost on restart)")
            return Backend(
                name="memory",
                store=InMemoryDocumentStore(),
                identity_factory=lambda: InMemoryIdentityProvider(accounts),
            )
        if backend == "firestore":
            from reware.infrastructure.firebase import (
                FirebaseIdentityProvider,
                FirestoreDocumentStore,
                get_firestore_client,
                init_firebase,
            )

            if not init_firebase(http_client):
                raise ValueError(
                    "Firestore could not be initialized; check FIREBASE_SERVICE_ACCOUNT_KEY "
                    "or FIREBASE_SERVICE_ACCOUNT_PATH"
                )
            client = get_firestore_client()
            assert client is not None
            auth_http = http_client if http_client is not None else client.http
            api_key = s.firebase_api_key.get_secret_value() if s.firebase_api_key else ""
            return Backend(
                name="firestore",
                store=FirestoreDocumentStore(
                    client, poll_interval=s.snapshot_poll_interval_seconds
                ),
                identity_factory=lambda: FirebaseIdentityProvider(api_key, auth_http),
            )
        raise ValueError(
            f"Unknown backend: {backend}. Supported: 'firestore', 'memory'"
        )

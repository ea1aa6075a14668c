"""Session gate: tri-state authentication status for one browser session.

The gate is the single reader of the identity provider's change stream.
Every view reads SessionState from here instead of asking the provider.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from reware.application.interfaces import IIdentityProvider, Unsubscribe
from reware.domain.entities import Identity
from reware.domain.enums import SessionStatus

logger = logging.getLogger(__name__)

SessionListener = Callable[["SessionState"], None]


@dataclass(frozen=True)
class SessionState:
    """Read-only snapshot of the session: status plus identity when authenticated."""

    status: SessionStatus
    identity: Identity | None = None

    @classmethod
    def loading(cls) -> SessionState:
        return cls(SessionStatus.LOADING)

    @classmethod
    def from_identity(cls, identity: Identity | None) -> SessionState:
        if identity is None:
            return cls(SessionStatus.ANONYMOUS)
        return cls(SessionStatus.AUTHENTICATED, identity)

    @property
    def is_loading(self) -> bool:
        return self.status == SessionStatus.LOADING

    @property
    def is_authenticated(self) -> bool:
        return self.status == SessionStatus.AUTHENTICATED

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "identity": self.identity.to_dict() if self.identity else None,
        }


class SessionGate:
    """Derives SessionState from identity notifications and fans it out to views."""

    def __init__(self, provider: IIdentityProvider) -> None:
        self._provider = provider
        self._state = SessionState.loading()
        self._unsubscribe: Unsubscribe | None = None
        self._stopped = False
        self._listeners: dict[int, SessionListener] = {}
        self._ids = itertools.count(1)
        self._resolved = asyncio.Event()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def started(self) -> bool:
        return self._unsubscribe is not None

    def start(self) -> None:
        """Subscribe to the identity provider. A second call is a no-op."""
        if self._unsubscribe is not None or self._stopped:
            return
        self._unsubscribe = self._provider.subscribe(self._on_identity)

    def stop(self) -> None:
        """Unsubscribe; notifications arriving afterwards are ignored."""
        self._stopped = True
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._listeners.clear()

    def subscribe(self, listener: SessionListener) -> Unsubscribe:
        """Register for state changes. Listeners run in registration order."""
        token = next(self._ids)
        self._listeners[token] = listener

        def unsubscribe() -> None:
            self._listeners.pop(token, None)

        return unsubscribe

    async def wait_resolved(self) -> SessionState:
        """Wait for the first authenticated or anonymous state."""
        await self._resolved.wait()
        return self._state

    def _on_identity(self, identity: Identity | None) -> None:
        if self._stopped:
            return
        self._state = SessionState.from_identity(identity)
        self._resolved.set()
        logger.debug("Session state: %s", self._state.status.value)
        for listener in list(self._listeners.values()):
            listener(self._state)

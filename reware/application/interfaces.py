"""Ports for the external collaborators (DIP).

Protocols define contracts the infrastructure implementations fulfill:
FirebaseIdentityProvider / InMemoryIdentityProvider and
FirestoreDocumentStore / InMemoryDocumentStore. Views depend only on these.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from reware.application.dtos.writes import Write
    from reware.domain.entities import Document, Identity

Unsubscribe = Callable[[], None]
IdentityListener = Callable[["Identity | None"], None]
SnapshotListener = Callable[[list["Document"]], None]
DocumentListener = Callable[["Document | None"], None]
ErrorListener = Callable[[Exception], None]


class IIdentityProvider(Protocol):
    """Identity provider for one browser session.

    subscribe() delivers every identity change (None = signed out) in order.
    """

    @property
    def refresh_token(self) -> str | None:
        """Token the browser persists to resume the session; None when signed out."""
        ...

    def subscribe(self, on_change: IdentityListener) -> Unsubscribe:
        """Register for identity changes; returns the function that unregisters."""
        ...

    async def restore(self, refresh_token: str | None) -> None:
        """Resume a persisted session, or resolve to signed out when token is None."""
        ...

    async def sign_in(self, email: str, password: str) -> Identity:
        """Sign in with email/password. Raises AuthenticationException when rejected."""
        ...

    async def sign_up(
        self, email: str, password: str, display_name: str | None = None
    ) -> Identity:
        """Create an account and sign in. Raises AuthenticationException when rejected."""
        ...

    async def sign_out(self) -> None:
        """Sign out; subscribers are notified with None."""
        ...

    async def aclose(self) -> None:
        """Release resources held for this session."""
        ...


class IDocumentStore(Protocol):
    """Remote document store shared by all sessions.

    Mutations raise DocumentStoreException subclasses on failure.
    """

    async def get_one(self, path: str) -> Document | None:
        """Point read; None when the document does not exist."""
        ...

    def subscribe_collection(
        self,
        path: str,
        on_snapshot: SnapshotListener,
        on_error: ErrorListener | None = None,
    ) -> Unsubscribe:
        """Deliver the full ordered snapshot of the collection on every change."""
        ...

    def subscribe_document(
        self,
        path: str,
        on_change: DocumentListener,
        on_error: ErrorListener | None = None,
    ) -> Unsubscribe:
        """Deliver the document (None when absent) on every change."""
        ...

    async def create(self, path: str, fields: dict[str, Any]) -> str:
        """Create a document with a generated id in the collection at path; return the id."""
        ...

    async def set(self, path: str, fields: dict[str, Any]) -> None:
        """Create or overwrite the document at path."""
        ...

    async def patch(self, path: str, fields: dict[str, Any]) -> None:
        """Update the given fields of an existing document."""
        ...

    async def delete(self, path: str) -> None:
        """Delete an existing document. Raises DocumentNotFoundException if absent."""
        ...

    async def increment(self, path: str, field_name: str, amount: int) -> None:
        """Atomically add amount to a numeric field of an existing document."""
        ...

    async def commit(self, writes: Sequence[Write]) -> None:
        """Apply all writes atomically: either every write succeeds or none does."""
        ...

    async def aclose(self) -> None:
        """Cancel live subscriptions and release connections."""
        ...

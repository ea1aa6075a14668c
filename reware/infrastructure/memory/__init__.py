"""In-process backends for development and tests (BACKEND=memory)."""

from reware.infrastructure.memory.document_store import InMemoryDocumentStore
from reware.infrastructure.memory.identity import (
    InMemoryAuthBackend,
    InMemoryIdentityProvider,
)

__all__ = [
    "InMemoryAuthBackend",
    "InMemoryDocumentStore",
    "InMemoryIdentityProvider",
]

"""Firebase backends: Firestore REST document store and Identity Toolkit sign-in."""

from reware.infrastructure.firebase.client import (
    close_firebase,
    get_firestore_client,
    init_firebase,
)
from reware.infrastructure.firebase.document_store import FirestoreDocumentStore
from reware.infrastructure.firebase.identity import FirebaseIdentityProvider

__all__ = [
    "FirebaseIdentityProvider",
    "FirestoreDocumentStore",
    "close_firebase",
    "get_firestore_client",
    "init_firebase",
]

"""Set the role of a user profile directly in Firestore (e.g. bootstrap the first admin).

Usage:
    python -m scripts.set_user_role <uid-or-email> <user|moderator|admin>
Requires BACKEND=firestore and the Firebase service account settings.
All imports use reware.*.
"""

import asyncio
import sys

from reware.core.config import get_settings
from reware.domain.entities import UserProfile
from reware.domain.enums import Role
from reware.domain.exceptions import DocumentStoreException
from reware.infrastructure.firebase import (
    FirestoreDocumentStore,
    close_firebase,
    get_firestore_client,
    init_firebase,
)
from reware.infrastructure.firebase.collections import COLLECTION_USERS, user_path


async def _resolve_uid(store: FirestoreDocumentStore, who: str) -> str | None:
    """Return the uid for a uid or an email (emails need a scan of users)."""
    if "@" not in who:
        return who if await store.get_one(user_path(who)) is not None else None
    for doc in await store.list_documents(COLLECTION_USERS):
        if UserProfile.from_document(doc).email.lower() == who.lower():
            return doc.id
    return None


async def main() -> None:
    """Patch users/{uid}.role."""
    if len(sys.argv) != 3 or sys.argv[2] not in Role.values():
        print(
            "Usage: python -m scripts.set_user_role <uid-or-email> <"
            + "|".join(Role.values())
            + ">",
            file=sys.stderr,
        )
        sys.exit(1)
    who, role = sys.argv[1], Role(sys.argv[2])

    settings = get_settings()
    if settings.backend != "firestore":
        print("BACKEND must be 'firestore' (the memory backend lives in the server process)", file=sys.stderr)
        sys.exit(1)
    if not init_firebase():
        print("Firestore could not be initialized; check the service account settings", file=sys.stderr)
        sys.exit(1)
    client = get_firestore_client()
    assert client is not None
    store = FirestoreDocumentStore(client)
    try:
        uid = await _resolve_uid(store, who)
        if uid is None:
            print(f"No profile found for {who} (the user must open the dashboard once)", file=sys.stderr)
            sys.exit(1)
        await store.patch(user_path(uid), {"role": role.value})
        print(f"Set role of {uid} to {role.value}")
    except DocumentStoreException as e:
        print(f"Failed: {e.message}", file=sys.stderr)
        sys.exit(1)
    finally:
        await store.aclose()
        await close_firebase()


if __name__ == "__main__":
    asyncio.run(main())

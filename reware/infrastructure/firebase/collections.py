"""Firestore collection names and document paths (schema-in-code).

Firestore has no DDL or migrations. Collections are created automatically
when the first document is written. Use these helpers so paths stay
consistent across the dashboard, admin view and scripts.

Layout:
    users/{uid}                      user profile (points, role)
    users/{uid}/listings/{id}        items the user listed
    users/{uid}/purchases/{id}       items the user bought
"""

COLLECTION_USERS = "users"
SUBCOLLECTION_LISTINGS = "listings"
SUBCOLLECTION_PURCHASES = "purchases"


def user_path(user_id: str) -> str:
    return f"{COLLECTION_USERS}/{user_id}"


def listings_path(user_id: str) -> str:
    return f"{user_path(user_id)}/{SUBCOLLECTION_LISTINGS}"


def listing_path(user_id: str, listing_id: str) -> str:
    return f"{listings_path(user_id)}/{listing_id}"


def purchases_path(user_id: str) -> str:
    return f"{user_path(user_id)}/{SUBCOLLECTION_PURCHASES}"


def purchase_path(user_id: str, purchase_id: str) -> str:
    return f"{purchases_path(user_id)}/{purchase_id}"


def split_path(path: str) -> tuple[str, str]:
    """Split a document path into (collection path, document id)."""
    parent, _, doc_id = path.rstrip("/").rpartition("/")
    if not parent or not doc_id:
        raise ValueError(f"Not a document path: {path!r}")
    return parent, doc_id

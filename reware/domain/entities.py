"""Domain entities: identities, profiles, listings and purchases.

Entities are read-models built from store documents (from_document) and,
for drafts, the field dicts written back (to_fields). Store field names stay
camelCase so documents written by other clients remain readable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from reware.domain.enums import Condition, Role
from reware.domain.exceptions import ValidationException
from reware.shared.utils.datetime import ensure_utc

POINTS_FOR_GOOD_CONDITION = 100
POINTS_FOR_OTHER_CONDITION = 50
DEFAULT_DISPLAY_NAME = "User"


def points_for_condition(condition: Condition | str) -> int:
    """Return the points a listing earns: 100 for good condition, 50 otherwise."""
    if Condition(condition) == Condition.GOOD:
        return POINTS_FOR_GOOD_CONDITION
    return POINTS_FOR_OTHER_CONDITION


@dataclass(frozen=True)
class Identity:
    """Authenticated principal as reported by the identity provider. Read-only."""

    id: str
    email: str
    display_name: str | None = None
    photo_url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "displayName": self.display_name,
            "photoURL": self.photo_url,
        }


@dataclass(frozen=True)
class Document:
    """A stored document as delivered by the document store (id + fields)."""

    id: str
    data: dict[str, Any] = field(default_factory=dict)


def _text(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    return "" if value is None else str(value)


def _timestamp(data: dict[str, Any]) -> datetime | None:
    value = data.get("createdAt")
    return ensure_utc(value) if isinstance(value, datetime) else None


@dataclass(frozen=True)
class UserProfile:
    """Profile document users/{id}: points balance and role."""

    id: str
    email: str
    display_name: str
    points: int = 0
    role: Role = Role.USER
    created_at: datetime | None = None
    photo_url: str | None = None

    @classmethod
    def from_document(cls, doc: Document) -> UserProfile:
        data = doc.data
        points = data.get("points") or 0
        return cls(
            id=doc.id,
            email=_text(data, "email"),
            display_name=_text(data, "displayName"),
            points=int(points),
            role=Role.parse(data.get("role")),
            created_at=_timestamp(data),
            photo_url=data.get("photoURL"),
        )

    @staticmethod
    def default_fields(identity: Identity, created_at: datetime) -> dict[str, Any]:
        """Fields of the profile created on a first dashboard visit."""
        return {
            "email": identity.email,
            "displayName": identity.display_name or DEFAULT_DISPLAY_NAME,
            "points": 0,
            "role": Role.USER.value,
            "createdAt": created_at,
        }

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def to_view(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "displayName": self.display_name,
            "points": self.points,
            "role": self.role.value,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "photoURL": self.photo_url,
        }


@dataclass(frozen=True)
class Listing:
    """Recycled item offered for sale, in users/{uid}/listings."""

    id: str
    title: str
    description: str
    price: str
    condition: str
    points_earned: int
    created_at: datetime | None = None

    @classmethod
    def from_document(cls, doc: Document) -> Listing:
        data = doc.data
        return cls(
            id=doc.id,
            title=_text(data, "title"),
            description=_text(data, "description"),
            price=_text(data, "price"),
            condition=_text(data, "condition"),
            points_earned=int(data.get("pointsEarned") or 0),
            created_at=_timestamp(data),
        )

    def to_view(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "price": self.price,
            "condition": self.condition,
            "pointsEarned": self.points_earned,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class Purchase:
    """Recycled item bought by the user, in users/{uid}/purchases."""

    id: str
    title: str
    price: str
    created_at: datetime | None = None

    @classmethod
    def from_document(cls, doc: Document) -> Purchase:
        data = doc.data
        return cls(
            id=doc.id,
            title=_text(data, "title"),
            price=_text(data, "price"),
            created_at=_timestamp(data),
        )

    def to_view(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "price": self.price,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


def _require(value: str, name: str) -> None:
    if not value or not value.strip():
        raise ValidationException(f"{name} is required", field=name)


@dataclass(frozen=True)
class ListingDraft:
    """Form input for a new listing. Only required-field checks apply."""

    title: str
    price: str
    condition: Condition = Condition.GOOD
    description: str = ""

    def __post_init__(self) -> None:
        _require(self.title, "title")
        _require(self.price, "price")

    @property
    def points_earned(self) -> int:
        return points_for_condition(self.condition)

    def to_fields(self, created_at: datetime) -> dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "price": self.price,
            "condition": Condition(self.condition).value,
            "pointsEarned": self.points_earned,
            "createdAt": created_at,
        }


@dataclass(frozen=True)
class PurchaseDraft:
    """Form input for a recorded purchase."""

    title: str
    price: str

    def __post_init__(self) -> None:
        _require(self.title, "title")
        _require(self.price, "price")

    def to_fields(self, created_at: datetime) -> dict[str, Any]:
        return {
            "title": self.title,
            "price": self.price,
            "createdAt": created_at,
        }

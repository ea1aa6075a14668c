"""DTOs for document store writes (single or committed together)."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class WriteKind(str, Enum):
    """Kind of write; preconditions follow the Firestore client semantics."""

    CREATE = "create"  # document must not exist
    SET = "set"  # create or overwrite
    PATCH = "patch"  # document must exist; only given fields change
    DELETE = "delete"  # document must exist
    INCREMENT = "increment"  # document must exist; server-side atomic add


@dataclass(frozen=True)
class Write:
    """One write in a commit. Paths are relative to the database root (e.g. users/u1)."""

    kind: WriteKind
    path: str
    fields: dict[str, Any] = field(default_factory=dict)
    field_name: str | None = None
    amount: int = 0

    @classmethod
    def create(cls, path: str, fields: dict[str, Any]) -> Write:
        return cls(WriteKind.CREATE, path, dict(fields))

    @classmethod
    def set(cls, path: str, fields: dict[str, Any]) -> Write:
        return cls(WriteKind.SET, path, dict(fields))

    @classmethod
    def patch(cls, path: str, fields: dict[str, Any]) -> Write:
        return cls(WriteKind.PATCH, path, dict(fields))

    @classmethod
    def delete(cls, path: str) -> Write:
        return cls(WriteKind.DELETE, path)

    @classmethod
    def increment(cls, path: str, field_name: str, amount: int) -> Write:
        return cls(WriteKind.INCREMENT, path, field_name=field_name, amount=amount)

"""Domain enumerations for REWARE.

Enums represent fixed sets of domain values (roles, item condition,
session status).
"""

from enum import Enum


class Role(str, Enum):
    """Access tier stored on a user profile.

    Only ADMIN opens the administrative view. Transitions are unconstrained:
    an admin may set any role to any other.
    """

    USER = "user"
    MODERATOR = "moderator"
    ADMIN = "admin"

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid role values as strings."""
        return [role.value for role in cls]

    @classmethod
    def parse(cls, value: object) -> "Role":
        """Return the Role for a stored value; unknown or missing values read as USER."""
        try:
            return cls(value)
        except ValueError:
            return cls.USER


class Condition(str, Enum):
    """Condition of a listed item; decides the points a listing earns."""

    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


class SessionStatus(str, Enum):
    """Tri-state authentication status of a browser session."""

    LOADING = "loading"
    AUTHENTICATED = "authenticated"
    ANONYMOUS = "anonymous"


class NotificationLevel(str, Enum):
    """Severity of a transient toast."""

    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"

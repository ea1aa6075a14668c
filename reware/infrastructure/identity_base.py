"""Shared listener bookkeeping for identity providers.

Mirrors onAuthStateChanged: a subscriber registered after the provider has
resolved (restore, sign-in or sign-out happened) gets the current identity
immediately; before that it waits for the first change.
"""

from __future__ import annotations

import itertools
import logging

from reware.application.interfaces import IdentityListener, Unsubscribe
from reware.domain.entities import Identity

logger = logging.getLogger(__name__)

# Provider error codes (Identity Toolkit) mapped to messages shown to the user.
_AUTH_ERROR_MESSAGES: dict[str, str] = {
    "EMAIL_EXISTS": "An account with this email already exists.",
    "EMAIL_NOT_FOUND": "Invalid email or password.",
    "INVALID_PASSWORD": "Invalid email or password.",
    "INVALID_LOGIN_CREDENTIALS": "Invalid email or password.",
    "INVALID_EMAIL": "The email address is badly formatted.",
    "WEAK_PASSWORD": "Password should be at least 6 characters.",
    "USER_DISABLED": "This account has been disabled.",
    "TOO_MANY_ATTEMPTS_TRY_LATER": "Too many attempts. Try again later.",
    "TOKEN_EXPIRED": "Your session has expired. Please sign in again.",
    "INVALID_REFRESH_TOKEN": "Your session has expired. Please sign in again.",
}


def describe_auth_error(code: str) -> str:
    """Return the user-facing message for a provider error code.

    Codes may carry a suffix ("WEAK_PASSWORD : Password should be ...").
    """
    key = code.split(":", 1)[0].strip()
    return _AUTH_ERROR_MESSAGES.get(key, "Authentication failed.")


class IdentityProviderBase:
    """Listener registry and current identity; subclasses call _emit on every change."""

    def __init__(self) -> None:
        self._listeners: dict[int, IdentityListener] = {}
        self._ids = itertools.count(1)
        self._identity: Identity | None = None
        self._resolved = False

    @property
    def current_identity(self) -> Identity | None:
        return self._identity

    def subscribe(self, on_change: IdentityListener) -> Unsubscribe:
        token = next(self._ids)
        self._listeners[token] = on_change
        if self._resolved:
            on_change(self._identity)

        def unsubscribe() -> None:
            self._listeners.pop(token, None)

        return unsubscribe

    def listener_count(self) -> int:
        return len(self._listeners)

    def _emit(self, identity: Identity | None) -> None:
        self._identity = identity
        self._resolved = True
        for listener in list(self._listeners.values()):
            listener(identity)

    async def aclose(self) -> None:
        self._listeners.clear()

"""In-memory identity provider (implements IIdentityProvider).

InMemoryAuthBackend is the shared account registry (one per process);
InMemoryIdentityProvider is the per-session view of it, like one browser's
Firebase Auth instance. Passwords are bcrypt-hashed (SHA-256 pre-hash).
"""

from __future__ import annotations

import asyncio
import base64
import hashlib
import secrets
from dataclasses import dataclass

import bcrypt

from reware.domain.entities import Identity
from reware.domain.exceptions import AuthenticationException
from reware.infrastructure.identity_base import IdentityProviderBase, describe_auth_error
from reware.shared.utils.generators import generate_cuid

MIN_PASSWORD_LENGTH = 6


def _prehash(password: str) -> bytes:
    """SHA-256 pre-hash to avoid bcrypt's 72-byte truncation."""
    return base64.b64encode(hashlib.sha256(password.encode("utf-8")).digest())


@dataclass
class _Account:
    identity: Identity
    password_hash: bytes


class InMemoryAuthBackend:
    """Accounts and issued refresh tokens, keyed by lower-cased email."""

    def __init__(self, bcrypt_rounds: int = 12) -> None:
        self._rounds = bcrypt_rounds
        self._accounts: dict[str, _Account] = {}
        self._tokens: dict[str, str] = {}

    def register(
        self, email: str, password: str, display_name: str | None = None
    ) -> tuple[Identity, str]:
        key = email.strip().lower()
        if "@" not in key:
            raise AuthenticationException(describe_auth_error("INVALID_EMAIL"))
        if key in self._accounts:
            raise AuthenticationException(describe_auth_error("EMAIL_EXISTS"))
        if len(password) < MIN_PASSWORD_LENGTH:
            raise AuthenticationException(describe_auth_error("WEAK_PASSWORD"))
        identity = Identity(id=generate_cuid(), email=key, display_name=display_name or None)
        hashed = bcrypt.hashpw(_prehash(password), bcrypt.gensalt(rounds=self._rounds))
        self._accounts[key] = _Account(identity, hashed)
        return identity, self._issue(identity)

    def authenticate(self, email: str, password: str) -> tuple[Identity, str]:
        account = self._accounts.get(email.strip().lower())
        if account is None or not bcrypt.checkpw(_prehash(password), account.password_hash):
            raise AuthenticationException(describe_auth_error("INVALID_LOGIN_CREDENTIALS"))
        return account.identity, self._issue(account.identity)

    def resolve(self, refresh_token: str) -> Identity | None:
        uid = self._tokens.get(refresh_token)
        if uid is None:
            return None
        for account in self._accounts.values():
            if account.identity.id == uid:
                return account.identity
        return None

    def revoke(self, refresh_token: str) -> None:
        self._tokens.pop(refresh_token, None)

    def _issue(self, identity: Identity) -> str:
        token = secrets.token_urlsafe(32)
        self._tokens[token] = identity.id
        return token


class InMemoryIdentityProvider(IdentityProviderBase):
    """One session's identity state backed by a shared InMemoryAuthBackend."""

    def __init__(self, backend: InMemoryAuthBackend) -> None:
        super().__init__()
        self._backend = backend
        self._refresh_token: str | None = None

    @property
    def refresh_token(self) -> str | None:
        return self._refresh_token

    async def restore(self, refresh_token: str | None) -> None:
        identity = self._backend.resolve(refresh_token) if refresh_token else None
        self._refresh_token = refresh_token if identity else None
        self._emit(identity)

    async def sign_in(self, email: str, password: str) -> Identity:
        identity, token = await asyncio.to_thread(self._backend.authenticate, email, password)
        self._refresh_token = token
        self._emit(identity)
        return identity

    async def sign_up(
        self, email: str, password: str, display_name: str | None = None
    ) -> Identity:
        identity, token = await asyncio.to_thread(
            self._backend.register, email, password, display_name
        )
        self._refresh_token = token
        self._emit(identity)
        return identity

    async def sign_out(self) -> None:
        if self._refresh_token:
            self._backend.revoke(self._refresh_token)
        self._refresh_token = None
        self._emit(None)

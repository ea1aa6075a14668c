"""Firebase Authentication identity provider (implements IIdentityProvider).

Talks to the Identity Toolkit and Secure Token REST APIs with the project's
Web API key, the same endpoints the browser SDK uses. One instance per
browser session; the HTTP client is shared and owned by the app lifespan.

Identity claims are read from the ID token without signature verification:
the token comes straight from Google's token endpoint over TLS and is never
accepted from the browser.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from jose import JWTError, jwt

from reware.domain.entities import Identity
from reware.domain.exceptions import AuthenticationException, IdentityProviderException
from reware.infrastructure.identity_base import IdentityProviderBase, describe_auth_error

logger = logging.getLogger(__name__)

_IDENTITY_TOOLKIT = "https://identitytoolkit.googleapis.com/v1"
_SECURE_TOKEN = "https://securetoken.googleapis.com/v1/token"


def identity_from_id_token(id_token: str) -> Identity:
    """Build an Identity from the claims of a Firebase ID token."""
    try:
        claims = jwt.get_unverified_claims(id_token)
    except JWTError as e:
        raise IdentityProviderException(f"Malformed ID token: {e!s}") from e
    uid = claims.get("user_id") or claims.get("sub")
    if not uid:
        raise IdentityProviderException("ID token missing user id")
    return Identity(
        id=str(uid),
        email=str(claims.get("email") or ""),
        display_name=claims.get("name") or None,
        photo_url=claims.get("picture") or None,
    )


class FirebaseIdentityProvider(IdentityProviderBase):
    """Email/password identity for one session, backed by Firebase Authentication."""

    def __init__(self, api_key: str, http_client: httpx.AsyncClient) -> None:
        super().__init__()
        self._api_key = api_key
        self._http = http_client
        self._refresh_token: str | None = None

    @property
    def refresh_token(self) -> str | None:
        return self._refresh_token

    async def _post(
        self,
        url: str,
        *,
        json_body: dict[str, Any] | None = None,
        form: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """POST to an auth endpoint; 400 answers become AuthenticationException."""
        try:
            resp = await self._http.post(
                url, params={"key": self._api_key}, json=json_body, data=form
            )
        except httpx.HTTPError as e:
            raise IdentityProviderException(str(e) or type(e).__name__) from e
        if resp.status_code == 400:
            try:
                code = resp.json()["error"]["message"]
            except (ValueError, KeyError, TypeError):
                code = ""
            raise AuthenticationException(describe_auth_error(code))
        if resp.status_code != 200:
            raise IdentityProviderException(f"HTTP {resp.status_code}")
        return resp.json()

    async def restore(self, refresh_token: str | None) -> None:
        """Exchange a persisted refresh token for a fresh ID token.

        A rejected or missing token resolves the session as signed out.
        Transport failures raise IdentityProviderException without resolving.
        """
        if not refresh_token:
            self._refresh_token = None
            self._emit(None)
            return
        try:
            out = await self._post(
                _SECURE_TOKEN,
                form={"grant_type": "refresh_token", "refresh_token": refresh_token},
            )
        except AuthenticationException as e:
            logger.info("Persisted session rejected: %s", e.message)
            self._refresh_token = None
            self._emit(None)
            return
        identity = identity_from_id_token(out["id_token"])
        self._refresh_token = out.get("refresh_token") or refresh_token
        self._emit(identity)

    async def sign_in(self, email: str, password: str) -> Identity:
        out = await self._post(
            f"{_IDENTITY_TOOLKIT}/accounts:signInWithPassword",
            json_body={"email": email, "password": password, "returnSecureToken": True},
        )
        return self._accept(out)

    async def sign_up(
        self, email: str, password: str, display_name: str | None = None
    ) -> Identity:
        out = await self._post(
            f"{_IDENTITY_TOOLKIT}/accounts:signUp",
            json_body={"email": email, "password": password, "returnSecureToken": True},
        )
        if display_name:
            # The update answer may omit tokens when they did not change.
            out |= await self._post(
                f"{_IDENTITY_TOOLKIT}/accounts:update",
                json_body={
                    "idToken": out["idToken"],
                    "displayName": display_name,
                    "returnSecureToken": True,
                },
            )
        return self._accept(out)

    def _accept(self, out: dict[str, Any]) -> Identity:
        identity = identity_from_id_token(out["idToken"])
        if identity.display_name is None and out.get("displayName"):
            identity = Identity(
                id=identity.id,
                email=identity.email,
                display_name=out["displayName"],
                photo_url=identity.photo_url,
            )
        self._refresh_token = out.get("refreshToken")
        self._emit(identity)
        return identity

    async def sign_out(self) -> None:
        """Forget this session's tokens; Firebase refresh tokens are revoked server-side only by admins."""
        self._refresh_token = None
        self._emit(None)

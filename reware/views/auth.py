"""Login and signup views (public routes)."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from reware.application.interfaces import IIdentityProvider
from reware.domain.exceptions import AuthenticationException, IdentityProviderException
from reware.views.notifications import NotificationCenter
from reware.views.routing import DASHBOARD_PATH

logger = logging.getLogger(__name__)


class _CredentialsView:
    name = ""

    def __init__(
        self,
        provider: IIdentityProvider,
        notifications: NotificationCenter,
        navigate: Callable[[str], None],
    ) -> None:
        self._provider = provider
        self._notifications = notifications
        self._navigate = navigate
        self._pending = False
        self._error: str | None = None

    def mount(self) -> None:
        self._error = None

    def unmount(self) -> None:
        self._pending = False

    def _rejected(self, exc: AuthenticationException | IdentityProviderException) -> None:
        self._error = exc.message
        self._notifications.error(exc.message)

    def render(self) -> dict[str, Any]:
        return {"pending": self._pending, "error": self._error}


class LoginView(_CredentialsView):
    name = "login"

    async def sign_in(self, email: str, password: str) -> bool:
        self._pending = True
        try:
            await self._provider.sign_in(email, password)
        except (AuthenticationException, IdentityProviderException) as e:
            logger.info("Sign-in rejected for %s: %s", email, e.message)
            self._rejected(e)
            return False
        finally:
            self._pending = False
        self._navigate(DASHBOARD_PATH)
        return True


class SignupView(_CredentialsView):
    name = "signup"

    async def sign_up(
        self, email: str, password: str, display_name: str | None = None
    ) -> bool:
        self._pending = True
        try:
            await self._provider.sign_up(email, password, display_name or None)
        except (AuthenticationException, IdentityProviderException) as e:
            logger.info("Sign-up rejected for %s: %s", email, e.message)
            self._rejected(e)
            return False
        finally:
            self._pending = False
        self._navigate(DASHBOARD_PATH)
        return True

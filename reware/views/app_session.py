"""Per-browser session: the composition root of gate, router and views.

One AppSession exists per WebSocket connection. It owns the session's identity
provider, resolves the current path through the Router on every navigation
and session change, mounts exactly one view at a time and produces the frames
the browser renders.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol

from reware.application.interfaces import IDocumentStore, IIdentityProvider, Unsubscribe
from reware.domain.exceptions import (
    IdentityProviderException,
    RewareException,
    ValidationException,
)
from reware.schemas.websocket import (
    BeginEditMessage,
    CancelEditMessage,
    ChangeEditMessage,
    ClientMessage,
    CreateListingMessage,
    CreatePurchaseMessage,
    CredentialsFrame,
    DeleteListingMessage,
    DeletePurchaseMessage,
    DeleteUserMessage,
    HelloMessage,
    NavigateMessage,
    RefreshUsersMessage,
    RenderFrame,
    SaveEditMessage,
    SignInMessage,
    SignOutMessage,
    SignUpMessage,
)
from reware.shared.utils.generators import generate_cuid
from reware.views.admin import AdminView
from reware.views.auth import LoginView, SignupView
from reware.views.dashboard import DashboardView
from reware.views.dispatcher import MutationDispatcher
from reware.views.notifications import NotificationCenter
from reware.views.routing import Outcome, RouteDecision, Router, normalize_path
from reware.views.session import SessionGate, SessionState

logger = logging.getLogger(__name__)

# Guards against redirect loops in a misconfigured route table.
_MAX_REDIRECTS = 5
LOADING_VIEW = "loading"


class View(Protocol):
    name: str

    def mount(self) -> None: ...

    def unmount(self) -> None: ...

    def render(self) -> dict[str, Any]: ...


class AppSession:
    """Server-side state of one connected browser."""

    def __init__(
        self,
        provider: IIdentityProvider,
        store: IDocumentStore,
        *,
        notification_history_size: int = 20,
        router: Router | None = None,
        session_id: str | None = None,
    ) -> None:
        self.id = session_id or generate_cuid()
        self._provider = provider
        self._store = store
        self._router = router or Router()
        self._changed = asyncio.Event()
        self.notifications = NotificationCenter(
            notification_history_size, on_push=self._mark_changed
        )
        self.gate = SessionGate(provider)
        self.dispatcher = MutationDispatcher(store, self.notifications)
        self._path = "/"
        self._decision: RouteDecision | None = None
        self._view: View | None = None
        self._unsubscribe_gate: Unsubscribe | None = None
        self._sent_token: str | None = None
        self._started = False
        self._closed = False

    # ---- lifecycle ----

    @property
    def path(self) -> str:
        return self._path

    @property
    def view(self) -> View | None:
        return self._view

    @property
    def view_name(self) -> str:
        if self._decision is None or self._decision.outcome == Outcome.LOADING:
            return LOADING_VIEW
        return self._decision.view or LOADING_VIEW

    @property
    def state(self) -> SessionState:
        return self.gate.state

    async def start(self, path: str = "/", refresh_token: str | None = None) -> None:
        """Resolve the persisted session (if any) and render the requested path."""
        if self._started:
            self.navigate(path)
            return
        self._started = True
        self._sent_token = refresh_token
        self._path = normalize_path(path)
        self._unsubscribe_gate = self.gate.subscribe(self._on_session)
        self.gate.start()
        self._apply_route()
        try:
            await self._provider.restore(refresh_token)
        except IdentityProviderException as e:
            logger.warning("Session %s: could not restore identity: %s", self.id, e.message)
            self.notifications.error("Could not restore your session. Please sign in again.")
            await self._provider.restore(None)

    async def close(self) -> None:
        """Release every subscription held by this session."""
        if self._closed:
            return
        self._closed = True
        self._unmount()
        if self._unsubscribe_gate is not None:
            self._unsubscribe_gate()
            self._unsubscribe_gate = None
        self.gate.stop()
        await self._provider.aclose()
        logger.debug("Session %s closed", self.id)

    # ---- routing ----

    def navigate(self, path: str) -> None:
        self._path = normalize_path(path)
        self._apply_route()

    def _on_session(self, state: SessionState) -> None:
        self._apply_route()

    def _apply_route(self) -> None:
        if self._closed:
            return
        decision = self._router.resolve(self._path, self.gate.state)
        hops = 0
        while decision.outcome == Outcome.REDIRECT and decision.redirect_to:
            hops += 1
            if hops > _MAX_REDIRECTS:
                raise RuntimeError(f"Redirect loop resolving {self._path}")
            self._path = decision.redirect_to
            decision = self._router.resolve(self._path, self.gate.state)
        self._decision = decision

        wanted = decision.view if decision.outcome == Outcome.RENDER else None
        current = self._view.name if self._view is not None else None
        if wanted != current:
            self._unmount()
            if wanted is not None:
                self._view = self._build_view(wanted)
                logger.debug("Session %s mounted %s", self.id, wanted)
                self._view.mount()
        self._mark_changed()

    def _unmount(self) -> None:
        if self._view is not None:
            view, self._view = self._view, None
            view.unmount()

    def _build_view(self, name: str) -> View:
        if name == "login":
            return LoginView(self._provider, self.notifications, self.navigate)
        if name == "signup":
            return SignupView(self._provider, self.notifications, self.navigate)
        if name == "dashboard":
            return DashboardView(
                self._store,
                self.gate,
                self._provider,
                self.dispatcher,
                self.notifications,
                self._mark_changed,
            )
        if name == "admin":
            return AdminView(
                self._store,
                self.gate,
                self.dispatcher,
                self.notifications,
                self.navigate,
                self._mark_changed,
            )
        raise ValueError(f"No view named {name!r}")

    def _current(self, view_type: type, action: str) -> Any:
        if not isinstance(self._view, view_type):
            raise ValidationException(f"'{action}' is not available on {self._path}")
        return self._view

    # ---- messages ----

    async def handle(self, message: ClientMessage) -> None:
        """Apply one client message. Domain errors become error notifications."""
        try:
            await self._dispatch(message)
        except RewareException as e:
            logger.info("Session %s: %s rejected: %s", self.id, message.type, e.message)
            self.notifications.error(e.message)
        self._mark_changed()

    async def _dispatch(self, message: ClientMessage) -> None:
        if isinstance(message, HelloMessage):
            await self.start(message.path, message.refresh_token)
        elif isinstance(message, NavigateMessage):
            self.navigate(message.path)
        elif isinstance(message, SignInMessage):
            view: LoginView = self._current(LoginView, message.type)
            await view.sign_in(message.email, message.password)
        elif isinstance(message, SignUpMessage):
            signup: SignupView = self._current(SignupView, message.type)
            await signup.sign_up(message.email, message.password, message.display_name)
        elif isinstance(message, SignOutMessage):
            if isinstance(self._view, DashboardView):
                await self._view.logout()
            else:
                await self._provider.sign_out()
        elif isinstance(message, CreateListingMessage):
            dashboard: DashboardView = self._current(DashboardView, message.type)
            await dashboard.add_listing(
                message.title, message.price, message.condition, message.description
            )
        elif isinstance(message, CreatePurchaseMessage):
            dashboard = self._current(DashboardView, message.type)
            await dashboard.add_purchase(message.title, message.price)
        elif isinstance(message, DeleteListingMessage):
            dashboard = self._current(DashboardView, message.type)
            await dashboard.delete_listing(message.listing_id)
        elif isinstance(message, DeletePurchaseMessage):
            dashboard = self._current(DashboardView, message.type)
            await dashboard.delete_purchase(message.purchase_id)
        elif isinstance(message, BeginEditMessage):
            admin: AdminView = self._current(AdminView, message.type)
            admin.begin_edit(message.user_id)
        elif isinstance(message, ChangeEditMessage):
            admin = self._current(AdminView, message.type)
            admin.change_edit(message.display_name, message.role, message.email)
        elif isinstance(message, SaveEditMessage):
            admin = self._current(AdminView, message.type)
            await admin.save_edit()
        elif isinstance(message, CancelEditMessage):
            admin = self._current(AdminView, message.type)
            admin.cancel_edit()
        elif isinstance(message, DeleteUserMessage):
            admin = self._current(AdminView, message.type)
            await admin.delete_user(message.user_id)
        elif isinstance(message, RefreshUsersMessage):
            admin = self._current(AdminView, message.type)
            admin.refresh()

    # ---- frames ----

    def _mark_changed(self) -> None:
        self._changed.set()

    async def wait_changed(self) -> None:
        """Wait until something worth re-rendering happened, then reset the flag."""
        await self._changed.wait()
        self._changed.clear()

    def render(self) -> RenderFrame:
        """Current view state plus the notifications not yet delivered."""
        return RenderFrame(
            path=self._path,
            view=self.view_name,
            session=self.gate.state.to_dict(),
            state=self._view.render() if self._view is not None else {},
            notifications=[n.to_dict() for n in self.notifications.drain()],
        )

    def frames(self) -> list[dict[str, Any]]:
        """Frames to send now: a credentials frame when the token changed, then a render."""
        out: list[dict[str, Any]] = []
        token = self._provider.refresh_token
        if not self.gate.state.is_loading and token != self._sent_token:
            self._sent_token = token
            out.append(CredentialsFrame(refresh_token=token).model_dump())
        out.append(self.render().model_dump())
        return out

    async def wait_idle(self) -> None:
        """Wait for background work started by the current view."""
        view = self._view
        wait = getattr(view, "wait_idle", None)
        if wait is not None:
            await wait()

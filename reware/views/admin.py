"""Admin view: role-gated user roster with inline editing.

The view re-runs the role check once per identity. A check still running
when the identity changes is cancelled; only the latest identity's result is
applied. The roster is bound only after access is granted.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from reware.application.interfaces import IDocumentStore, Unsubscribe
from reware.domain.entities import Identity, UserProfile
from reware.domain.enums import Role, SessionStatus
from reware.domain.exceptions import AuthorizationException, ValidationException
from reware.infrastructure.firebase.collections import COLLECTION_USERS
from reware.views.authorizer import AuthorizationOutcome, RoleAuthorizer
from reware.views.dispatcher import MutationDispatcher
from reware.views.notifications import NotificationCenter
from reware.views.routing import LOGIN_PATH
from reware.views.session import SessionGate, SessionState
from reware.views.sync import LiveCollection

logger = logging.getLogger(__name__)

DENIED_REDIRECT_PATH = "/"


class EditState(str, Enum):
    VIEWING = "viewing"
    EDITING = "editing"


@dataclass
class EditBuffer:
    """Form values of the row being edited."""

    user_id: str
    display_name: str
    email: str
    role: Role

    def to_dict(self) -> dict[str, Any]:
        return {
            "userId": self.user_id,
            "displayName": self.display_name,
            "email": self.email,
            "role": self.role.value,
        }


class AdminEditWorkflow:
    """viewing -> editing(user) -> viewing. At most one row is edited at a time."""

    def __init__(
        self,
        dispatcher: MutationDispatcher,
        roster: LiveCollection[UserProfile],
    ) -> None:
        self._dispatcher = dispatcher
        self._roster = roster
        self._buffer: EditBuffer | None = None

    @property
    def state(self) -> EditState:
        return EditState.EDITING if self._buffer is not None else EditState.VIEWING

    @property
    def editing_id(self) -> str | None:
        return self._buffer.user_id if self._buffer else None

    @property
    def buffer(self) -> EditBuffer | None:
        return self._buffer

    def begin(self, user: UserProfile) -> EditBuffer:
        """Start editing user; replaces any buffer of another row."""
        self._buffer = EditBuffer(
            user_id=user.id,
            display_name=user.display_name,
            email=user.email,
            role=user.role,
        )
        return self._buffer

    def change(
        self,
        *,
        display_name: str | None = None,
        role: Role | str | None = None,
        email: str | None = None,
    ) -> EditBuffer:
        if self._buffer is None:
            raise ValidationException("No user is being edited")
        if email is not None and email != self._buffer.email:
            raise ValidationException("Email cannot be changed here", field="email")
        if role is not None:
            try:
                self._buffer.role = Role(role)
            except ValueError as e:
                raise ValidationException(f"Unknown role: {role}", field="role") from e
        if display_name is not None:
            self._buffer.display_name = display_name
        return self._buffer

    def cancel(self) -> None:
        self._buffer = None

    async def save(self) -> bool:
        """Persist {displayName, role}; back to viewing whatever the outcome."""
        buffer = self._buffer
        if buffer is None:
            return False
        previous = self._roster.get(buffer.user_id)
        self._roster.patch_local(
            buffer.user_id, {"displayName": buffer.display_name, "role": buffer.role.value}
        )
        try:
            ok = await self._dispatcher.update_user(
                buffer.user_id, buffer.display_name, buffer.role
            )
            if not ok and previous is not None:
                # Only the patched fields of this row; snapshots delivered meanwhile stay.
                self._roster.revert_local(previous, ("displayName", "role"))
            return ok
        finally:
            if self._buffer is buffer:
                self._buffer = None


class AdminView:
    """Composition of authorizer, live roster and edit workflow for /admin."""

    name = "admin"

    def __init__(
        self,
        store: IDocumentStore,
        gate: SessionGate,
        dispatcher: MutationDispatcher,
        notifications: NotificationCenter,
        navigate: Callable[[str], None],
        on_change: Callable[[], None] | None = None,
    ) -> None:
        self._gate = gate
        self._dispatcher = dispatcher
        self._navigate = navigate
        self._on_change = on_change
        self._authorizer = RoleAuthorizer(store, notifications)
        self.roster: LiveCollection[UserProfile] = LiveCollection(
            store, UserProfile.from_document, "users", notifications, on_change
        )
        self.workflow = AdminEditWorkflow(dispatcher, self.roster)
        self._unsubscribe_gate: Unsubscribe | None = None
        self._checked_for: str | None = None
        self._check: asyncio.Task[None] | None = None
        self._access: AuthorizationOutcome | None = None

    @property
    def access(self) -> AuthorizationOutcome | None:
        return self._access

    def mount(self) -> None:
        if self._unsubscribe_gate is not None:
            return
        self._unsubscribe_gate = self._gate.subscribe(self._on_session)
        self._on_session(self._gate.state)

    def unmount(self) -> None:
        if self._unsubscribe_gate is not None:
            self._unsubscribe_gate()
            self._unsubscribe_gate = None
        self._cancel_check()
        self.roster.close()
        self.workflow.cancel()
        self._checked_for = None
        self._access = None

    async def wait_idle(self) -> None:
        """Wait for a pending role check (tests and first render)."""
        if self._check is not None and not self._check.done():
            with contextlib.suppress(asyncio.CancelledError):
                await self._check

    def _cancel_check(self) -> None:
        # A denied check navigates away from inside its own task; let it finish.
        if (
            self._check is not None
            and not self._check.done()
            and self._check is not asyncio.current_task()
        ):
            self._check.cancel()
        self._check = None

    def _on_session(self, state: SessionState) -> None:
        if self._unsubscribe_gate is None or state.status == SessionStatus.LOADING:
            return
        if state.identity is None:
            self._cancel_check()
            self.roster.close()
            self.workflow.cancel()
            self._checked_for = None
            self._access = None
            self._navigate(LOGIN_PATH)
            return
        if state.identity.id == self._checked_for:
            return
        self._cancel_check()
        self.roster.close()
        self.workflow.cancel()
        self._checked_for = state.identity.id
        self._access = None
        self._check = asyncio.get_running_loop().create_task(self._authorize(state.identity))

    async def _authorize(self, identity: Identity) -> None:
        outcome = await self._authorizer.check(identity)
        if identity.id != self._checked_for:
            return
        self._access = outcome
        if outcome == AuthorizationOutcome.GRANTED:
            self.roster.bind(COLLECTION_USERS)
        elif outcome == AuthorizationOutcome.DENIED:
            self._navigate(DENIED_REDIRECT_PATH)
        if self._on_change is not None:
            self._on_change()

    def _require_admin(self, action: str) -> None:
        if self._access != AuthorizationOutcome.GRANTED:
            raise AuthorizationException(resource="user", action=action)

    # ---- actions ----

    def begin_edit(self, user_id: str) -> None:
        self._require_admin("edit")
        doc = self.roster.get(user_id)
        if doc is None:
            raise ValidationException(f"Unknown user: {user_id}", field="user_id")
        self.workflow.begin(UserProfile.from_document(doc))
        self._changed()

    def change_edit(
        self,
        display_name: str | None = None,
        role: str | None = None,
        email: str | None = None,
    ) -> None:
        self._require_admin("edit")
        self.workflow.change(display_name=display_name, role=role, email=email)
        self._changed()

    def cancel_edit(self) -> None:
        self.workflow.cancel()
        self._changed()

    async def save_edit(self) -> bool:
        self._require_admin("update")
        ok = await self.workflow.save()
        self._changed()
        return ok

    async def delete_user(self, user_id: str) -> bool:
        self._require_admin("delete")
        if self.workflow.editing_id == user_id:
            self.workflow.cancel()
        return await self._dispatcher.delete_user(user_id, self.roster)

    def refresh(self) -> None:
        """Re-subscribe the roster."""
        self._require_admin("read")
        self.roster.bind(COLLECTION_USERS)

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()

    def render(self) -> dict[str, Any]:
        buffer = self.workflow.buffer
        return {
            "access": self._access.value if self._access else None,
            "loading": self._access is None or self.roster.loading,
            "users": [u.to_view() for u in self.roster.items],
            "editState": self.workflow.state.value,
            "editing": buffer.to_dict() if buffer else None,
            "roles": Role.values(),
        }

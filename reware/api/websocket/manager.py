"""WebSocket session manager.

Holds the AppSession of every connected browser. Use via app.state.session_manager
(set in lifespan). Closing the manager closes every session, which releases
their live subscriptions.
"""

from __future__ import annotations

import asyncio
import logging

from fastapi import WebSocket

from reware.views.app_session import AppSession

logger = logging.getLogger(__name__)


class SessionManager:
    """Tracks one AppSession per WebSocket.

    - connect accepts the socket and registers its session.
    - disconnect unregisters and closes the session.
    - session_count is lock-protected for concurrent access.
    """

    def __init__(self) -> None:
        """Initialize with no sessions."""
        self._sessions: dict[WebSocket, AppSession] = {}
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket, session: AppSession) -> None:
        """Accept and register a new connection with its session.

        Args:
            websocket: The WebSocket instance to accept and track.
            session: Session created for this browser.
        """
        await websocket.accept()
        async with self._lock:
            self._sessions[websocket] = session
        logger.info("Session %s connected", session.id)

    async def disconnect(self, websocket: WebSocket) -> None:
        """Remove a connection and close its session (call on disconnect).

        Args:
            websocket: The WebSocket instance to remove.
        """
        async with self._lock:
            session = self._sessions.pop(websocket, None)
        if session is not None:
            await session.close()
            logger.info("Session %s disconnected", session.id)

    async def get_session_count(self) -> int:
        """Return the number of active sessions (lock-safe)."""
        async with self._lock:
            return len(self._sessions)

    async def close_all(self) -> None:
        """Close every session. Call from app shutdown."""
        async with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            await session.close()

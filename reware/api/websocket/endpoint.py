"""WebSocket endpoint: single /ws carrying one browser session.

Uses the SessionManager and Backend from app.state (set in lifespan). The
receive loop applies client messages in order; a sender task pushes frames
whenever the session reports a change.
"""

import asyncio
import contextlib
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from reware.core.config import get_settings
from reware.schemas.websocket import parse_client_message
from reware.views.app_session import AppSession

logger = logging.getLogger(__name__)

router = APIRouter()

MALFORMED_MESSAGE = "Malformed message ignored."


async def _send_frames(websocket: WebSocket, session: AppSession) -> None:
    """Push render (and credentials) frames after every session change."""
    try:
        while True:
            await session.wait_changed()
            for frame in session.frames():
                await websocket.send_json(frame)
    except (WebSocketDisconnect, RuntimeError) as e:
        # The socket closed under us; the receive loop will notice too.
        logger.debug("Session %s: sender stopped: %s", session.id, e)


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    """Register a new AppSession, then process messages until disconnect.

    The browser opens with a hello message ({path, refresh_token}); every
    later message is an action or a navigation. Malformed messages produce an
    error notification and do not close the session.
    """
    manager = websocket.app.state.session_manager
    backend = websocket.app.state.backend
    settings = get_settings()
    session = AppSession(
        backend.new_identity_provider(),
        backend.store,
        notification_history_size=settings.notification_history_size,
    )
    await manager.connect(websocket, session)
    sender = asyncio.create_task(_send_frames(websocket, session))
    try:
        while True:
            raw = await websocket.receive_text()
            try:
                message = parse_client_message(raw)
            except ValidationError as e:
                logger.info("Session %s: malformed message: %s", session.id, e.error_count())
                session.notifications.error(MALFORMED_MESSAGE)
                continue
            await session.handle(message)
    except WebSocketDisconnect:
        pass
    finally:
        sender.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sender
        await manager.disconnect(websocket)

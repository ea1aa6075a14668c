"""Health check endpoints. Used for liveness probes and session diagnostics."""

from fastapi import APIRouter, Request

from reware.core.config import get_settings
from reware.schemas.health import HealthResponse
from reware.schemas.websocket import SessionCountResponse

router = APIRouter()


@router.get("", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Return simple ok status for liveness."""
    return HealthResponse(backend=get_settings().backend)


@router.get("/sessions", response_model=SessionCountResponse)
async def session_count(request: Request) -> SessionCountResponse:
    """Return the number of connected browser sessions."""
    manager = request.app.state.session_manager
    return SessionCountResponse(active_sessions=await manager.get_session_count())

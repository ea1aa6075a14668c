"""WebSocket session manager and endpoint.

Used by the /ws endpoint to register browser sessions.
"""

from reware.api.websocket.endpoint import router
from reware.api.websocket.manager import SessionManager

__all__ = ["SessionManager", "router"]

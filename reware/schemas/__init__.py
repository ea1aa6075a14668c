"""Pydantic schemas for HTTP responses and WebSocket messages."""

from reware.schemas.health import HealthResponse
from reware.schemas.websocket import (
    ClientMessage,
    CredentialsFrame,
    RenderFrame,
    SessionCountResponse,
    parse_client_message,
)

__all__ = [
    "ClientMessage",
    "CredentialsFrame",
    "HealthResponse",
    "RenderFrame",
    "SessionCountResponse",
    "parse_client_message",
]

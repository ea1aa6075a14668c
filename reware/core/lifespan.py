"""Application lifespan: startup and shutdown.

Single place for all startup/shutdown logic. Used by main.py; no business
logic here, only wiring of infrastructure (shared HTTP client, backend,
WebSocket session manager).
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx
from fastapi import FastAPI

from reware.core.config import get_settings
from reware.shared.telemetry import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup then yield; on exit run shutdown.

    Startup order: logging, shared HTTP client, backend, session manager.
    Shutdown order: sessions closed (live subscriptions released), backend
    closed, Firestore client closed, shared HTTP client closed.
    """
    settings = get_settings()
    setup_logging()

    # ---- Startup ----
    # Shared HTTP client for Firestore and Identity Toolkit calls (connection reuse).
    app.state.http_client = httpx.AsyncClient(timeout=settings.http_timeout_seconds)

    from reware.api.websocket import SessionManager
    from reware.infrastructure.factory import BackendFactory

    app.state.backend = BackendFactory.create_backend(settings, app.state.http_client)
    app.state.session_manager = SessionManager()
    logger.info("%s started with %s backend", settings.app_name, app.state.backend.name)

    yield

    # ---- Shutdown ----
    await app.state.session_manager.close_all()
    logger.info("Sessions closed")

    await app.state.backend.aclose()
    if app.state.backend.name == "firestore":
        from reware.infrastructure.firebase import close_firebase

        await close_firebase()

    if getattr(app.state, "http_client", None) is not None:
        await app.state.http_client.aclose()
        app.state.http_client = None
        logger.info("Shared HTTP client closed")

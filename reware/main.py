"""FastAPI application entry point.

Wiring only: lifespan, exception handlers, middleware, routers and the page
shell. No business logic here. See reware.core.lifespan and
reware.core.exception_handlers.

Settings are loaded inside create_app() so that tests can set env (and optionally
clear get_settings cache) before importing or calling create_app().
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from reware.api.v1 import api_router
from reware.api.websocket import router as ws_router
from reware.core.config import get_settings
from reware.core.exception_handlers import register_exception_handlers
from reware.core.lifespan import create_lifespan
from reware.middleware import SecurityHeadersMiddleware
from reware.pages import render_shell_page

# Every client-side route is served the same shell; the session decides what it shows.
PAGE_PATHS = ("/", "/login", "/signup", "/dashboard", "/admin")


def create_app() -> FastAPI:
    """Build and return the FastAPI application. Settings are resolved here (deferred from import)."""
    settings = get_settings()
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=create_lifespan,
    )

    register_exception_handlers(app)

    # Middleware: first added = innermost. CORS wraps the security headers.
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.allowed_origins.split(",") if o.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router, prefix="/api/v1")
    app.include_router(ws_router, tags=["websocket"])

    shell = render_shell_page(settings.app_name)

    def page() -> HTMLResponse:
        """HTML shell; the WebSocket session renders the view for this path."""
        return HTMLResponse(content=shell)

    for path in PAGE_PATHS:
        app.add_api_route(path, page, methods=["GET"], response_class=HTMLResponse, include_in_schema=False)

    @app.get("/{path:path}", response_class=HTMLResponse, include_in_schema=False)
    def unknown_page(path: str) -> HTMLResponse:
        """Unknown paths get the shell with 404; the session renders the not-found view."""
        if path.startswith("api/"):
            raise StarletteHTTPException(status_code=404, detail="Not Found")
        return HTMLResponse(content=shell, status_code=404)

    return app


app = create_app()

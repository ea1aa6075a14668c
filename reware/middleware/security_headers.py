"""Security headers middleware.

Adds security-related response headers (CSP, HSTS, X-Content-Type-Options, etc.).
Page responses get a CSP that admits the shell's inline script and its /ws
connection; JSON API responses get a deny-all CSP. Raw ASGI, so WebSocket
scopes pass straight through.
"""

from typing import Callable

PAGE_CSP = (
    "default-src 'none'; "
    "script-src 'self' 'unsafe-inline'; "
    "style-src 'self' 'unsafe-inline'; "
    "img-src 'self' data: https:; "
    "connect-src 'self' ws: wss:; "
    "base-uri 'none'; "
    "form-action 'none'; "
    "frame-ancestors 'none'"
)
API_CSP = "default-src 'none'; frame-ancestors 'none'"

DEFAULT_HEADERS = {
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "geolocation=(), microphone=(), camera=()",
}


def _encode(headers: dict[str, str]) -> list[tuple[bytes, bytes]]:
    return [(k.lower().encode(), v.encode()) for k, v in headers.items()]


def SecurityHeadersMiddleware(
    app: Callable,
    headers: dict[str, str] | None = None,
    api_prefix: str = "/api/",
) -> Callable:
    """Set security headers on all HTTP responses; CSP depends on the path."""
    common = DEFAULT_HEADERS if headers is None else headers
    page_headers = _encode({**common, "Content-Security-Policy": PAGE_CSP})
    api_headers = _encode({**common, "Content-Security-Policy": API_CSP})

    async def asgi_app(scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await app(scope, receive, send)
            return
        extra = api_headers if scope.get("path", "").startswith(api_prefix) else page_headers

        async def send_wrapper(message: dict) -> None:
            if message["type"] == "http.response.start":
                out = list(message.get("headers", []))
                present = {name.lower() for name, _ in out}
                out.extend(h for h in extra if h[0] not in present)
                message["headers"] = out
            await send(message)

        await app(scope, receive, send_wrapper)

    return asgi_app

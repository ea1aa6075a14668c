"""End-to-end tests for the /ws session protocol (memory backend)."""

from collections.abc import Callable, Iterator
from typing import Any

import pytest
from fastapi.testclient import TestClient
from starlette.testclient import WebSocketTestSession

from reware.main import app

Frame = dict[str, Any]


@pytest.fixture
def ws_client() -> Iterator[TestClient]:
    with TestClient(app) as client:
        yield client


def _receive_until(ws: WebSocketTestSession, done: Callable[[Frame], bool]) -> list[Frame]:
    frames: list[Frame] = []
    while True:
        frame = ws.receive_json()
        frames.append(frame)
        if done(frame):
            return frames


def _render_of(view: str) -> Callable[[Frame], bool]:
    return lambda f: f["type"] == "render" and f["view"] == view


def test_anonymous_hello_renders_login(ws_client: TestClient) -> None:
    with ws_client.websocket_connect("/ws") as ws:
        ws.send_json({"type": "hello", "path": "/dashboard"})
        frames = _receive_until(ws, _render_of("login"))
        assert frames[-1]["path"] == "/login"
        assert frames[-1]["session"]["status"] == "anonymous"


def test_malformed_message_keeps_session_alive(ws_client: TestClient) -> None:
    with ws_client.websocket_connect("/ws") as ws:
        ws.send_json({"type": "hello", "path": "/login"})
        _receive_until(ws, _render_of("login"))

        ws.send_text("{not json")
        frames = _receive_until(ws, lambda f: f["type"] == "render" and f["notifications"])
        assert frames[-1]["notifications"][0]["message"] == "Malformed message ignored."

        ws.send_json({"type": "teleport"})
        _receive_until(ws, lambda f: f["type"] == "render" and f["notifications"])

        ws.send_json({"type": "navigate", "path": "/signup"})
        _receive_until(ws, _render_of("signup"))


def test_sign_up_then_resume_with_refresh_token(ws_client: TestClient) -> None:
    with ws_client.websocket_connect("/ws") as ws:
        ws.send_json({"type": "hello", "path": "/signup"})
        _receive_until(ws, _render_of("signup"))
        ws.send_json({
            "type": "sign_up",
            "email": "ann@example.com",
            "password": "secret1",
            "display_name": "Ann",
        })
        frames = _receive_until(
            ws, lambda f: _render_of("dashboard")(f) and f["state"]["profile"] is not None
        )
        credentials = [f for f in frames if f["type"] == "credentials"]
        assert len(credentials) == 1
        token = credentials[0]["refresh_token"]
        assert token
        assert frames[-1]["state"]["profile"]["displayName"] == "Ann"

        sessions = ws_client.get("/api/v1/health/sessions").json()
        assert sessions == {"active_sessions": 1}

    with ws_client.websocket_connect("/ws") as ws:
        ws.send_json({"type": "hello", "path": "/", "refresh_token": token})
        frames = _receive_until(ws, _render_of("dashboard"))
        assert frames[-1]["path"] == "/dashboard"
        assert frames[-1]["session"]["identity"]["email"] == "ann@example.com"


def test_create_listing_over_websocket(ws_client: TestClient) -> None:
    with ws_client.websocket_connect("/ws") as ws:
        ws.send_json({"type": "hello", "path": "/signup"})
        _receive_until(ws, _render_of("signup"))
        ws.send_json({"type": "sign_up", "email": "bo@example.com", "password": "secret1"})
        _receive_until(ws, lambda f: _render_of("dashboard")(f) and f["state"]["profile"] is not None)

        ws.send_json({"type": "create_listing", "title": "Chair", "price": "20", "condition": "good"})
        frames = _receive_until(
            ws, lambda f: f["type"] == "render" and f["state"].get("stats", {}).get("points") == 100
        )
        assert frames[-1]["state"]["stats"]["listings"] == 1


def test_disconnect_closes_session(ws_client: TestClient) -> None:
    with ws_client.websocket_connect("/ws") as ws:
        ws.send_json({"type": "hello", "path": "/login"})
        _receive_until(ws, _render_of("login"))
    assert ws_client.get("/api/v1/health/sessions").json() == {"active_sessions": 0}

"""Tests for FirestoreDocumentStore against a mocked Firestore REST API."""

import asyncio
import json
from collections.abc import Callable
from types import SimpleNamespace

import httpx
import pytest
from google.auth.exceptions import RefreshError

from reware.application.dtos.writes import Write
from reware.domain.entities import Document, Identity
from reware.domain.exceptions import (
    DocumentAlreadyExistsException,
    DocumentNotFoundException,
    StoreUnavailableException,
)
from reware.infrastructure.firebase._rest_client import FirestoreRESTClient
from reware.infrastructure.firebase.document_store import FirestoreDocumentStore
from reware.views.authorizer import AuthorizationOutcome, RoleAuthorizer
from reware.views.dispatcher import MutationDispatcher
from reware.views.notifications import NotificationCenter

ROOT = "projects/demo/databases/(default)/documents"


def _doc(path: str, **fields: str) -> dict:
    return {
        "name": f"{ROOT}/{path}",
        "fields": {k: {"stringValue": v} for k, v in fields.items()},
    }


def _error(status: int, message: str) -> httpx.Response:
    return httpx.Response(status, json={"error": {"code": status, "message": message}})


def _store(handler: Callable[[httpx.Request], httpx.Response]) -> FirestoreDocumentStore:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    client = FirestoreRESTClient("demo", SimpleNamespace(valid=True, token="t"), http_client=http)
    return FirestoreDocumentStore(client, poll_interval=0.01)


class _RevokedCredentials:
    valid = False
    token = None

    def refresh(self, request: object) -> None:
        raise RefreshError("invalid_grant: account disabled")


def _revoked_store() -> FirestoreDocumentStore:
    http = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(200, json={})))
    client = FirestoreRESTClient("demo", _RevokedCredentials(), http_client=http)
    return FirestoreDocumentStore(client, poll_interval=0.01)


async def test_get_one_decodes_document() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["Authorization"] == "Bearer t"
        return httpx.Response(200, json=_doc("users/u1", email="a@b.c"))

    store = _store(handler)
    assert await store.get_one("users/u1") == Document("u1", {"email": "a@b.c"})


async def test_get_one_missing_is_none() -> None:
    store = _store(lambda request: _error(404, "not found"))
    assert await store.get_one("users/u1") is None


async def test_list_documents_follows_page_tokens_and_sorts() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.params.get("pageToken") == "next":
            return httpx.Response(200, json={"documents": [_doc("users/a", email="a")]})
        return httpx.Response(
            200, json={"documents": [_doc("users/b", email="b")], "nextPageToken": "next"}
        )

    store = _store(handler)
    docs = await store.list_documents("users")
    assert [d.id for d in docs] == ["a", "b"]


async def test_commit_sends_one_atomic_request_with_preconditions() -> None:
    bodies: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path.endswith("/documents:commit")
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"writeResults": [{}, {}]})

    store = _store(handler)
    await store.commit([
        Write.create("users/u1/listings/l1", {"title": "Chair"}),
        Write.increment("users/u1", "points", 50),
    ])
    assert len(bodies) == 1
    create, increment = bodies[0]["writes"]
    assert create["currentDocument"] == {"exists": False}
    assert create["update"]["name"] == f"{ROOT}/users/u1/listings/l1"
    assert increment["currentDocument"] == {"exists": True}
    assert increment["transform"]["fieldTransforms"] == [
        {"fieldPath": "points", "increment": {"integerValue": "50"}}
    ]


async def test_patch_uses_update_mask() -> None:
    bodies: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={})

    store = _store(handler)
    await store.patch("users/u1", {"displayName": "Ann", "role": "admin"})
    write = bodies[0]["writes"][0]
    assert write["updateMask"] == {"fieldPaths": ["displayName", "role"]}
    assert write["currentDocument"] == {"exists": True}


async def test_delete_missing_document_fails() -> None:
    store = _store(lambda request: _error(404, "No document to update"))
    with pytest.raises(DocumentNotFoundException) as exc_info:
        await store.delete("users/u1/listings/l1")
    assert exc_info.value.details == {"path": "users/u1/listings/l1"}


async def test_create_existing_document_fails() -> None:
    store = _store(lambda request: _error(409, "Document already exists"))
    with pytest.raises(DocumentAlreadyExistsException):
        await store.commit([Write.create("users/u1", {"points": 0})])


async def test_server_error_is_store_unavailable() -> None:
    store = _store(lambda request: _error(503, "The service is currently unavailable."))
    with pytest.raises(StoreUnavailableException) as exc_info:
        await store.set("users/u1", {"points": 0})
    assert "unavailable" in exc_info.value.message


async def test_transport_error_is_store_unavailable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    store = _store(handler)
    with pytest.raises(StoreUnavailableException):
        await store.get_one("users/u1")


async def test_credential_refresh_failure_is_store_unavailable() -> None:
    with pytest.raises(StoreUnavailableException) as exc_info:
        await _revoked_store().get_one("users/u1")
    assert "account disabled" in exc_info.value.message


async def test_credential_refresh_failure_is_reported_by_dispatcher_and_authorizer() -> None:
    store = _revoked_store()
    notifications = NotificationCenter()

    assert await MutationDispatcher(store, notifications).delete_listing("alice", "x") is False
    outcome = await RoleAuthorizer(store, notifications).check(Identity("alice", "alice@example.com"))
    assert outcome == AuthorizationOutcome.FAILED
    first, second = notifications.messages()
    assert first.startswith("Failed to delete listing:")
    assert second.startswith("Failed to verify admin privileges:")


async def test_watch_reports_credential_refresh_failure() -> None:
    errors: list[Exception] = []
    unsubscribe = _revoked_store().subscribe_collection("users", lambda docs: None, errors.append)
    await asyncio.sleep(0.1)
    unsubscribe()
    assert len(errors) == 1
    assert isinstance(errors[0], StoreUnavailableException)


async def test_watch_delivers_only_changes_and_stops_on_unsubscribe() -> None:
    requests = 0
    titles = ["Chair"]

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal requests
        requests += 1
        docs = [_doc(f"users/u1/listings/l{i}", title=t) for i, t in enumerate(titles)]
        return httpx.Response(200, json={"documents": docs})

    store = _store(handler)
    snapshots: list[list[Document]] = []
    unsubscribe = store.subscribe_collection("users/u1/listings", snapshots.append)
    await asyncio.sleep(0.1)
    # Several polls, one delivery: the contents did not change.
    assert len(snapshots) == 1
    assert requests > 1

    titles.append("Desk")
    await asyncio.sleep(0.1)
    assert [d.data["title"] for d in snapshots[-1]] == ["Chair", "Desk"]
    assert len(snapshots) == 2

    unsubscribe()
    assert store.active_watch_count() == 0
    await asyncio.sleep(0)
    seen = requests
    await asyncio.sleep(0.1)
    assert requests == seen


async def test_watch_reports_error_once_per_failure_streak() -> None:
    errors: list[Exception] = []
    store = _store(lambda request: _error(500, "internal"))
    unsubscribe = store.subscribe_document("users/u1", lambda doc: None, errors.append)
    await asyncio.sleep(0.1)
    unsubscribe()
    assert len(errors) == 1
    assert isinstance(errors[0], StoreUnavailableException)


async def test_aclose_cancels_every_watch() -> None:
    store = _store(lambda request: httpx.Response(200, json={}))
    store.subscribe_collection("users", lambda docs: None)
    store.subscribe_document("users/u1", lambda doc: None)
    assert store.active_watch_count() == 2
    await store.aclose()
    assert store.active_watch_count() == 0

"""Thin Firestore REST API client (no firebase-admin).

Uses google-auth for service account tokens and Firestore REST v1.
All HTTP calls use httpx.AsyncClient so they do not block the event loop.
Every write goes through documents:commit, so single writes and atomic
multi-document writes share one code path and the same preconditions.
"""

from __future__ import annotations

import asyncio
import json
import re
from collections.abc import AsyncIterator
from typing import Any

import httpx

from reware.infrastructure.firebase._rest_encoding import (
    decode_fields,
    encode_fields,
    encode_value,
)
from reware.shared.utils.generators import generate_cuid

_FIRESTORE_SCOPE = "https://www.googleapis.com/auth/datastore"
_BASE = "https://firestore.googleapis.com/v1"
_PAGE_SIZE = 300
_SIMPLE_FIELD_RE = re.compile(r"^[A-Za-z_][A-Za-z_0-9]*$")


def _get_credentials(key_dict: dict):
    """Return google.oauth2.service_account.Credentials for Firestore."""
    from google.oauth2 import service_account

    return service_account.Credentials.from_service_account_info(
        key_dict, scopes=[_FIRESTORE_SCOPE]
    )


def _get_access_token(credentials) -> str:
    from google.auth.transport.requests import Request

    if not credentials.valid:
        credentials.refresh(Request())
    return credentials.token


def _field_path(name: str) -> str:
    """Quote a field name for updateMask / fieldTransforms when it is not a plain identifier."""
    if _SIMPLE_FIELD_RE.match(name):
        return name
    return "`" + name.replace("\\", "\\\\").replace("`", "\\`") + "`"


class FirestoreRESTError(Exception):
    """Non-success response from the Firestore REST API."""

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f"{status_code}: {message}")


class DocumentMissingError(FirestoreRESTError):
    """A write precondition required an existing document (404 NOT_FOUND)."""


class DocumentExistsError(FirestoreRESTError):
    """A create precondition found an existing document (409 ALREADY_EXISTS)."""


def _error_message(resp: httpx.Response) -> str:
    try:
        payload = resp.json()
    except (json.JSONDecodeError, ValueError):
        return resp.text or resp.reason_phrase
    if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
        return str(payload["error"].get("message") or resp.reason_phrase)
    return resp.reason_phrase


async def _request_async(
    client: httpx.AsyncClient,
    url: str,
    method: str = "GET",
    body: dict | None = None,
    access_token: str | None = None,
    params: dict[str, Any] | None = None,
    not_found_ok: bool = False,
) -> Any:
    """Perform async HTTP request to Firestore REST API.

    404 returns None when not_found_ok, otherwise raises DocumentMissingError.
    """
    headers = {"Content-Type": "application/json"}
    if access_token:
        headers["Authorization"] = f"Bearer {access_token}"
    resp = await client.request(method, url, headers=headers, json=body, params=params)
    if resp.status_code == 404:
        if not_found_ok:
            return None
        raise DocumentMissingError(404, _error_message(resp))
    if resp.status_code == 409:
        raise DocumentExistsError(409, _error_message(resp))
    if resp.status_code not in (200, 204):
        raise FirestoreRESTError(resp.status_code, _error_message(resp))
    raw = resp.content
    return json.loads(raw.decode()) if raw else {}


class DocumentSnapshot:
    """Snapshot of a document (id + data)."""

    def __init__(self, id_: str, data: dict):
        self.id = id_
        self._data = data

    def to_dict(self) -> dict:
        return self._data


class DocumentReference:
    """Reference to a single document; matches firestore API style."""

    def __init__(self, client: FirestoreRESTClient, path: str):
        self._client = client
        self.path = path.strip("/")

    @property
    def id(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    @property
    def name(self) -> str:
        """Full resource name used in commit writes."""
        return f"{self._client.documents_root}/{self.path}"

    def collection(self, collection_id: str) -> CollectionReference:
        return CollectionReference(self._client, f"{self.path}/{collection_id}")

    async def get(self) -> DocumentSnapshot | None:
        """Fetch the document; returns None if not found."""
        out = await _request_async(
            self._client.http,
            f"{_BASE}/{self.name}",
            access_token=await self._client.get_token(),
            not_found_ok=True,
        )
        if not out:
            return None
        return DocumentSnapshot(self.id, decode_fields(out.get("fields")))

    async def set(self, data: dict[str, Any]) -> None:
        batch = self._client.batch()
        batch.set(self, data)
        await batch.commit()

    async def update(self, data: dict[str, Any]) -> None:
        batch = self._client.batch()
        batch.update(self, data)
        await batch.commit()

    async def delete(self) -> None:
        """Delete the document. Raises DocumentMissingError if it does not exist."""
        batch = self._client.batch()
        batch.delete(self)
        await batch.commit()


class CollectionReference:
    """Reference to a collection; matches firestore API style."""

    def __init__(self, client: FirestoreRESTClient, path: str):
        self._client = client
        self.path = path.strip("/")

    def document(self, document_id: str | None = None) -> DocumentReference:
        """Reference a document; a new CUID is generated when no id is given."""
        return DocumentReference(self._client, f"{self.path}/{document_id or generate_cuid()}")

    async def stream(self) -> AsyncIterator[DocumentSnapshot]:
        """List documents in the collection (shallow), following page tokens."""
        url = f"{_BASE}/{self._client.documents_root}/{self.path}"
        page_token: str | None = None
        while True:
            params: dict[str, Any] = {"pageSize": _PAGE_SIZE}
            if page_token:
                params["pageToken"] = page_token
            out = await _request_async(
                self._client.http,
                url,
                access_token=await self._client.get_token(),
                params=params,
                not_found_ok=True,
            )
            if not out:
                return
            for doc in out.get("documents", []):
                name = doc.get("name", "")
                doc_id = name.split("/")[-1] if name else ""
                yield DocumentSnapshot(doc_id, decode_fields(doc.get("fields")))
            page_token = out.get("nextPageToken")
            if not page_token:
                return


class WriteBatch:
    """Writes applied atomically by one documents:commit call."""

    def __init__(self, client: FirestoreRESTClient) -> None:
        self._client = client
        self._writes: list[dict[str, Any]] = []

    def __len__(self) -> int:
        return len(self._writes)

    def create(self, ref: DocumentReference, data: dict[str, Any]) -> WriteBatch:
        self._writes.append({
            "update": {"name": ref.name, "fields": encode_fields(data)},
            "currentDocument": {"exists": False},
        })
        return self

    def set(self, ref: DocumentReference, data: dict[str, Any]) -> WriteBatch:
        self._writes.append({"update": {"name": ref.name, "fields": encode_fields(data)}})
        return self

    def update(self, ref: DocumentReference, data: dict[str, Any]) -> WriteBatch:
        self._writes.append({
            "update": {"name": ref.name, "fields": encode_fields(data)},
            "updateMask": {"fieldPaths": [_field_path(k) for k in data]},
            "currentDocument": {"exists": True},
        })
        return self

    def delete(self, ref: DocumentReference) -> WriteBatch:
        self._writes.append({"delete": ref.name, "currentDocument": {"exists": True}})
        return self

    def increment(self, ref: DocumentReference, field: str, amount: int) -> WriteBatch:
        self._writes.append({
            "transform": {
                "document": ref.name,
                "fieldTransforms": [
                    {"fieldPath": _field_path(field), "increment": encode_value(amount)}
                ],
            },
            "currentDocument": {"exists": True},
        })
        return self

    async def commit(self) -> None:
        if not self._writes:
            return
        await _request_async(
            self._client.http,
            f"{_BASE}/{self._client.documents_root}:commit",
            method="POST",
            body={"writes": self._writes},
            access_token=await self._client.get_token(),
        )
        self._writes = []


class FirestoreRESTClient:
    """Lightweight Firestore client using REST API (no firebase-admin)."""

    def __init__(
        self,
        project_id: str,
        credentials,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._project_id = project_id
        self._credentials = credentials
        self.documents_root = f"projects/{project_id}/databases/(default)/documents"
        self.http = http_client if http_client is not None else httpx.AsyncClient(timeout=timeout)
        self._owns_http = http_client is None

    async def aclose(self) -> None:
        """Close the HTTP client only if we created it (do not close injected client)."""
        if self._owns_http:
            await self.http.aclose()

    async def get_token(self) -> str:
        """Return a valid access token; refreshes in thread pool to avoid blocking."""
        return await asyncio.to_thread(_get_access_token, self._credentials)

    def collection(self, path: str) -> CollectionReference:
        return CollectionReference(self, path)

    def document(self, path: str) -> DocumentReference:
        return DocumentReference(self, path)

    def batch(self) -> WriteBatch:
        return WriteBatch(self)

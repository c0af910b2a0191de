"""Shared fixtures: an in-process fake of the sync cloud."""

from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta

import httpx
import pytest
from pytest_httpx import HTTPXMock

from rmsync.config import SyncSettings
from rmsync.native import (
    CloudClient,
    Credential,
    MemoryCredentialStore,
    TokenManager,
)
from rmsync.native.auth import DEVICE_TOKEN_ENDPOINT, USER_TOKEN_ENDPOINT
from rmsync.native.folders import NODE_ENDPOINT
from rmsync.native.index import LIST_DOCS_ENDPOINT
from rmsync.native.transfer import DOWNLOAD_URL_ENDPOINT, UPLOAD_URL_ENDPOINT

AUTH_HOST = "https://auth.test"
SYNC_HOST = "https://sync.test"
BLOB_HOST = "blobs.test"

USER_ID = "alice"


class FakeCloud:
    """Routes requests the way the real auth, sync and blob hosts would."""

    def __init__(self) -> None:
        self.nodes: dict[str, dict] = {}
        self.blobs: dict[str, bytes] = {}
        self.requests: list[httpx.Request] = []
        self.device_token = "device-token"
        self.valid_codes = {"good-code"}
        self.issued: list[str] = []
        self.fail: dict[str, httpx.Response] = {}

    def add_folder(self, node_id: str, name: str, parent: str = "") -> None:
        self.nodes[node_id] = {
            "id": node_id,
            "version": 1,
            "name": name,
            "type": "CollectionType",
            "parent": parent,
            "lastModified": "2024-01-01T10:00:00.000Z",
            "pinned": False,
        }

    def add_document(
        self, node_id: str, name: str, parent: str = "", content: bytes = b"%PDF-1.4"
    ) -> None:
        self.nodes[node_id] = {
            "id": node_id,
            "version": 1,
            "name": name,
            "type": "DocumentType",
            "parent": parent,
            "lastModified": "2024-01-01T10:00:00.000Z",
            "pinned": False,
        }
        self.blobs[node_id] = content

    def count(self, route: str) -> int:
        return sum(1 for request in self.requests if self._route(request) == route)

    def created(self, kind: str = "CollectionType") -> list[dict]:
        return [
            json.loads(request.content)
            for request in self.requests
            if self._route(request) == "node"
            and json.loads(request.content)["type"] == kind
        ]

    def _route(self, request: httpx.Request) -> str:
        url = str(request.url)
        path = request.url.path
        if request.url.host == BLOB_HOST:
            return "blob_get" if request.method == "GET" else "blob_put"
        if url.startswith(AUTH_HOST):
            return {
                DEVICE_TOKEN_ENDPOINT: "register",
                USER_TOKEN_ENDPOINT: "exchange",
            }[path]
        return {
            ("GET", LIST_DOCS_ENDPOINT): "list",
            ("GET", DOWNLOAD_URL_ENDPOINT): "download_url",
            ("PUT", UPLOAD_URL_ENDPOINT): "upload_url",
            ("PUT", NODE_ENDPOINT): "node",
        }[(request.method, path)]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self._route(request)
        if route in self.fail:
            return self.fail[route]
        if route not in ("register", "exchange", "blob_get", "blob_put"):
            header = request.headers.get("Authorization", "")
            if header.removeprefix("Bearer ") not in self.issued:
                return httpx.Response(401, text="invalid token")
        return getattr(self, f"_{route}")(request)

    def _register(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        if body["code"] not in self.valid_codes:
            return httpx.Response(400, text="invalid code")
        return httpx.Response(200, text=self.device_token)

    def _exchange(self, request: httpx.Request) -> httpx.Response:
        if request.headers.get("Authorization") != f"Bearer {self.device_token}":
            return httpx.Response(401, text="unknown device")
        token = f"user-token-{len(self.issued) + 1}"
        self.issued.append(token)
        return httpx.Response(200, text=token)

    def _list(self, request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"docs": list(self.nodes.values())})

    def _download_url(self, request: httpx.Request) -> httpx.Response:
        doc_id = request.url.params["doc"]
        if doc_id not in self.blobs:
            return httpx.Response(404, json={"message": "not found"})
        return httpx.Response(200, json={"url": f"https://{BLOB_HOST}/{doc_id}?sig=get"})

    def _upload_url(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        assert body["docType"] == "pdf"
        return httpx.Response(
            200, json={"url": f"https://{BLOB_HOST}/{body['docID']}?sig=put"}
        )

    def _blob_get(self, request: httpx.Request) -> httpx.Response:
        content = self.blobs.get(request.url.path.lstrip("/"))
        if content is None:
            return httpx.Response(404)
        return httpx.Response(200, content=content)

    def _blob_put(self, request: httpx.Request) -> httpx.Response:
        if request.headers.get("Content-Type") != "application/pdf":
            return httpx.Response(400, text="bad content type")
        self.blobs[request.url.path.lstrip("/")] = request.content
        return httpx.Response(200)

    def _node(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.nodes[body["id"]] = body
        return httpx.Response(200, json=body)


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self) -> None:
        self.now = datetime(2024, 1, 1, 8, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


@pytest.fixture
def settings() -> SyncSettings:
    return SyncSettings(
        auth_host=AUTH_HOST,
        sync_host=SYNC_HOST,
        request_timeout=5.0,
        blob_timeout=5.0,
    )


@pytest.fixture
def fake_cloud(httpx_mock: HTTPXMock) -> FakeCloud:
    """Fake cloud answering every request made through httpx."""
    cloud = FakeCloud()
    httpx_mock.add_callback(cloud, is_reusable=True, is_optional=True)
    return cloud


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def store() -> MemoryCredentialStore:
    return MemoryCredentialStore()


@pytest.fixture
def token_manager(
    store: MemoryCredentialStore, settings: SyncSettings, clock: FrozenClock
) -> TokenManager:
    return TokenManager(store, settings, clock=clock)


@pytest.fixture
def connected(
    store: MemoryCredentialStore, fake_cloud: FakeCloud, clock: FrozenClock
) -> Credential:
    """Store a credential whose user token is still good for ten hours."""
    fake_cloud.issued.append("seed-token")
    credential = Credential(
        device_token=fake_cloud.device_token,
        user_token="seed-token",
        user_token_expires_at=clock.now + timedelta(hours=10),
    )
    store.put(USER_ID, credential)
    return credential


@pytest.fixture
def cloud_client(token_manager: TokenManager, connected: Credential) -> CloudClient:
    return CloudClient(token_manager, USER_ID)

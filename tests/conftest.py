"""Shared fixtures: a scripted Testafy server behind ``httpx.MockTransport``."""

import base64
import json
from collections import defaultdict
from typing import Any, Optional
from urllib.parse import parse_qs

import httpx
import pytest

from testafy.client.entity import Test
from testafy.config import TestConfig

BASE_URI = "https://app.testafy.test/api/v0/"
API_PREFIX = "/api/v0/"


class RecordedRequest:
    """One request as the mock server saw it."""

    def __init__(self, request: httpx.Request) -> None:
        self.method = request.method
        self.path = request.url.path[len(API_PREFIX):]
        self.url = str(request.url)
        self.authorization = request.headers.get("authorization")
        form = parse_qs(request.content.decode())
        self.form_fields = sorted(form)
        self.params: dict[str, Any] = json.loads(form["json"][0]) if "json" in form else {}

    @property
    def basic_auth(self) -> Optional[tuple[str, str]]:
        if not self.authorization:
            return None
        user, _, password = base64.b64decode(self.authorization.split()[1]).decode().partition(":")
        return user, password


class MockServer:
    """Replies to each path from a queue; the last reply of a queue repeats."""

    def __init__(self) -> None:
        self.replies: dict[str, list[dict[str, Any]]] = defaultdict(list)
        self.requests: list[RecordedRequest] = []

    def add(self, path: str, body: Any = None, status: int = 200, *, text: Optional[str] = None) -> None:
        if text is not None:
            self.replies[path].append({"text": text, "status_code": status})
        else:
            self.replies[path].append({"json": {} if body is None else body, "status_code": status})

    def handler(self, request: httpx.Request) -> httpx.Response:
        recorded = RecordedRequest(request)
        self.requests.append(recorded)
        queue = self.replies.get(recorded.path)
        if not queue:
            return httpx.Response(404, json={"error": f"no route {recorded.path}"})
        reply = queue.pop(0) if len(queue) > 1 else queue[0]
        return httpx.Response(**reply)

    def paths(self) -> list[str]:
        return [r.path for r in self.requests]

    def count(self, path: str) -> int:
        return self.paths().count(path)


@pytest.fixture
def server() -> MockServer:
    return MockServer()


@pytest.fixture
def http_client(server: MockServer) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(server.handler))


@pytest.fixture
def config() -> TestConfig:
    return TestConfig(
        login_name="alice",
        password="s3cret",
        base_uri=BASE_URI,
        script="For the url http://example.com\nthen pass this test",
        poll_interval=0,
        max_wait=5,
    )


@pytest.fixture
def entity(config: TestConfig, http_client: httpx.AsyncClient) -> Test:
    return Test(config, http_client=http_client)

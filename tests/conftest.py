"""Shared fixtures: a fake OpenCode server behind httpx.MockTransport."""

import inspect

import httpx
import pytest

from opencode_mcp.services.opencode_client import OpenCodeClient
from opencode_mcp.tools import ToolContext

BASE_URL = "http://opencode.test"


class FakeOpenCode:
    """Routes (method, path) to canned JSON or a handler, and records every request."""

    def __init__(self):
        self.routes = {("GET", "/session"): (200, [])}
        self.requests = []

    def on(self, method, path, json=None, status=200, handler=None):
        self.routes[(method, path)] = handler if handler is not None else (status, json)

    def calls(self, method, path):
        return [r for r in self.requests if r.method == method and r.url.path == path]

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"error": f"no route for {request.url.path}"})
        if callable(route):
            response = route(request)
            if inspect.isawaitable(response):
                response = await response
            return response
        status, payload = route
        if payload is None:
            return httpx.Response(status)
        return httpx.Response(status, json=payload)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("OPENCODE_DEFAULT_PROJECT", raising=False)
    # Keep every config write inside tmp_path
    monkeypatch.setenv("OPENCODE_CONFIG_PATH", str(tmp_path / "config" / "opencode.json"))
    return home


@pytest.fixture
def backend():
    return FakeOpenCode()


@pytest.fixture
async def client(backend):
    http = httpx.AsyncClient(transport=httpx.MockTransport(backend))
    opencode = OpenCodeClient(BASE_URL, timeout_ms=2000, http_client=http)
    yield opencode
    await http.aclose()


@pytest.fixture
def ctx(client):
    return ToolContext(client=client, default_model=None, poll_timeout_ms=200, poll_interval_ms=10)


@pytest.fixture
async def down_ctx():
    """Context whose server refuses every connection."""

    def refuse(request):
        raise httpx.ConnectError("Connection refused", request=request)

    http = httpx.AsyncClient(transport=httpx.MockTransport(refuse))
    opencode = OpenCodeClient(BASE_URL, timeout_ms=2000, http_client=http)
    yield ToolContext(client=opencode, default_model=None, poll_timeout_ms=200, poll_interval_ms=10)
    await http.aclose()

"""
Shared test fixtures for the Permit MCP server test suite.

Nothing here talks to the real Permit.io API. Instead, FakePermitAPI plays
the upstream service through httpx.MockTransport: tests register canned
responses per path and inspect the requests the client actually sent.

Key fixtures:
- make_settings: Factory for Settings objects (never reads .env)
- permit_api: A fresh FakePermitAPI per test
- permit_client: A PermitClient wired to permit_api with a default env "dev"
- make_client: Factory for clients with other settings (e.g. no default env)

Testing approach:
- test_client.py: PermitClient against the fake API (paths, headers, query
  strings, error mapping, the permission join)
- test_tools.py: Full MCP round trips through fastmcp.Client, which runs the
  server in-process (no subprocess, no network)
- test_config.py / test_errors.py: Settings loading and error rendering
- test_server.py: Entry point, logging and the health route
"""

import json
from typing import Any, Callable

import httpx
import pytest

from permit_mcp.client import PermitClient
from permit_mcp.config import Settings

TEST_API_KEY = "permit_key_test_123"
TEST_PROJECT = "acme"
TEST_ENV = "dev"


class FakePermitAPI:
    """
    In-memory stand-in for the Permit.io REST API.

    Routes map a request path to either a JSON-serializable body (served
    with status 200), a (status, body) tuple, or an exception to raise in
    place of a response. Unknown paths answer 404 like the real API.
    """

    def __init__(self):
        self.routes: dict[str, Any] = {}
        self.requests: list[httpx.Request] = []

    def add(self, path: str, body: Any, status: int = 200) -> None:
        self.routes[path] = (status, body)

    def fail(self, path: str, exc: Exception) -> None:
        self.routes[path] = exc

    @property
    def call_count(self) -> int:
        return len(self.requests)

    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(request.url.path)

        if route is None:
            return httpx.Response(
                404, text=json.dumps({"error_code": "NOT_FOUND", "message": "not found"})
            )
        if isinstance(route, Exception):
            raise route

        status, body = route
        if isinstance(body, str):
            return httpx.Response(status, text=body)
        return httpx.Response(status, json=body)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    """
    Factory fixture for Settings.

    Defaults point at the test project with "dev" as default environment.
    _env_file=None keeps a developer's local .env out of the tests.
    """

    def _make_settings(**overrides) -> Settings:
        values = {
            "api_key": TEST_API_KEY,
            "project_id": TEST_PROJECT,
            "env_id": TEST_ENV,
            "api_url": "https://api.permit.test",
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make_settings


@pytest.fixture
def permit_api() -> FakePermitAPI:
    return FakePermitAPI()


@pytest.fixture
def make_client(make_settings, permit_api) -> Callable[..., PermitClient]:
    """Factory for PermitClient instances backed by permit_api."""

    def _make_client(**overrides) -> PermitClient:
        return PermitClient(make_settings(**overrides), transport=permit_api.transport())

    return _make_client


@pytest.fixture
def permit_client(make_client) -> PermitClient:
    return make_client()


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Remove PERMIT_* variables and run from an empty directory (no .env)."""
    for name in (
        "PERMIT_API_KEY",
        "PERMIT_PROJECT_ID",
        "PERMIT_ENV_ID",
        "PERMIT_API_URL",
        "PERMIT_LOG_LEVEL",
        "PERMIT_TRANSPORT",
        "PERMIT_HOST",
        "PERMIT_PORT",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return monkeypatch


# ---------------------------------------------------------------------------
# Sample upstream data
# ---------------------------------------------------------------------------

ADMIN_ROLE = {
    "key": "admin",
    "id": "role-1",
    "name": "Admin",
    "permissions": ["document:read", "document:write"],
    "extends": ["viewer"],
}
VIEWER_ROLE = {
    "key": "viewer",
    "id": "role-2",
    "name": "Viewer",
    "permissions": ["document:read"],
}
ALICE = {
    "key": "alice",
    "id": "user-1",
    "email": "alice@example.com",
    "associated_tenants": [{"tenant": "t1", "roles": ["admin"], "status": "active"}],
}


def schema_path(*parts: str, env: str = TEST_ENV) -> str:
    return "/".join(["/v2/schema", TEST_PROJECT, env, *parts])


def facts_path(*parts: str, env: str = TEST_ENV) -> str:
    return "/".join(["/v2/facts", TEST_PROJECT, env, *parts])

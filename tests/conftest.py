# SPDX-License-Identifier: MIT
"""Shared pytest fixtures for fal.ai MCP server tests."""

from collections.abc import Callable
from typing import Any

import httpx
import pytest

from fal_mcp.client import FalClient
from fal_mcp.config import Settings

# Modules that obtain a FalClient via get_client()
TOOL_MODULES = (
    "fal_mcp.tools.models",
    "fal_mcp.tools.generate",
    "fal_mcp.tools.billing",
    "fal_mcp.tools.storage",
)

Responder = httpx.Response | Callable[[httpx.Request], Any]


class StubApi:
    """Stubbed fal.ai API: records every outgoing request, replies in FIFO order.

    Queue replies with :meth:`reply` (or a callable taking the request). When the
    queue is empty, requests get ``200 {}``.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.requests: list[httpx.Request] = []
        self._replies: list[Responder] = []

    def reply(self, status_code: int = 200, *, json: Any = None, text: str | None = None) -> None:
        if text is not None:
            self._replies.append(httpx.Response(status_code, text=text))
        else:
            self._replies.append(httpx.Response(status_code, json=json if json is not None else {}))

    def reply_with(self, responder: Callable[[httpx.Request], Any]) -> None:
        self._replies.append(responder)

    def handler(self, request: httpx.Request) -> Any:
        self.requests.append(request)
        if not self._replies:
            return httpx.Response(200, json={})
        responder = self._replies.pop(0)
        if isinstance(responder, httpx.Response):
            return responder
        return responder(request)

    def client(self) -> FalClient:
        return FalClient(self.settings, transport=httpx.MockTransport(self.handler))

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture
def settings() -> Settings:
    """Settings with a test credential and default endpoints."""
    return Settings(api_key="test-key")


@pytest.fixture
def stub_api(mocker, settings) -> StubApi:
    """Route every tool module's get_client() to a MockTransport-backed client.

    Replace ``stub_api.settings`` inside a test to change configuration.
    """
    api = StubApi(settings)
    for module in TOOL_MODULES:
        mocker.patch(f"{module}.get_client", side_effect=api.client)
    return api


@pytest.fixture
def catalog_row():
    """Factory for platform-v1 catalog rows."""

    def _row(endpoint_id: str, **metadata: Any) -> dict[str, Any]:
        meta = {
            "display_name": endpoint_id.split("/")[-1].upper(),
            "category": "text-to-image",
            "description": f"Model {endpoint_id}",
            "status": "active",
            "tags": [],
        }
        meta.update(metadata)
        return {"endpoint_id": endpoint_id, "metadata": meta}

    return _row

# SPDX-License-Identifier: MIT
"""Unit tests for FalClient with a MockTransport."""

import json

import httpx
import pytest

from fal_mcp.config import Settings
from fal_mcp.errors import ConfigurationError, DecodeError, HttpError, TransportError

URL = "https://api.fal.ai/v1/models"


@pytest.fixture
def api(stub_api):
    return stub_api


# ------------------------------------------------------------------
# Body and header policy
# ------------------------------------------------------------------


@pytest.mark.unit
@pytest.mark.parametrize("method", ["GET", "HEAD"])
async def test_bodyless_methods_never_send_body(api, method):
    """A body passed with GET/HEAD is dropped, and no Content-Type is sent."""
    async with api.client() as client:
        await client.request(method, URL, body={"leak": True}, headers={"Content-Type": "application/json"})

    sent = api.last
    assert sent.method == method
    assert sent.content == b""
    assert "content-type" not in sent.headers


@pytest.mark.unit
@pytest.mark.parametrize("method", ["POST", "PUT", "PATCH"])
async def test_body_methods_send_json(api, method):
    async with api.client() as client:
        await client.request(method, URL, body={"prompt": "fox"})

    sent = api.last
    assert sent.method == method
    assert sent.headers["content-type"] == "application/json"
    assert json.loads(sent.content) == {"prompt": "fox"}


@pytest.mark.unit
async def test_authorization_always_adapter_controlled(api):
    async with api.client() as client:
        await client.get(URL, headers={"Authorization": "Bearer evil", "X-Trace": "abc"})

    assert api.last.headers["authorization"] == "Key test-key"
    assert api.last.headers["x-trace"] == "abc"


@pytest.mark.unit
async def test_caller_header_overrides_default(api):
    async with api.client() as client:
        await client.send_json("POST", URL, {"a": 1}, headers={"content-type": "application/vnd.fal+json"})

    assert api.last.headers["content-type"] == "application/vnd.fal+json"


@pytest.mark.unit
async def test_unauthenticated_request_has_no_authorization(api):
    async with api.client() as client:
        await client.get(URL, authenticated=False)

    assert "authorization" not in api.last.headers


@pytest.mark.unit
async def test_missing_key_fails_before_request(api):
    api.settings = Settings()
    async with api.client() as client:
        with pytest.raises(ConfigurationError, match="FAL_KEY"):
            await client.get(URL)

    assert api.requests == []


# ------------------------------------------------------------------
# Query parameters
# ------------------------------------------------------------------


@pytest.mark.unit
async def test_params_repeat_lists_and_drop_none(api):
    async with api.client() as client:
        await client.get(
            URL,
            params={"endpoint_id": ["a/b", "c/d"], "cursor": None, "bound_to_timeframe": True, "limit": 10},
        )

    params = api.last.url.params
    assert params.get_list("endpoint_id") == ["a/b", "c/d"]
    assert "cursor" not in params
    assert params["bound_to_timeframe"] == "true"
    assert params["limit"] == "10"


# ------------------------------------------------------------------
# Response handling
# ------------------------------------------------------------------


@pytest.mark.unit
async def test_non_2xx_raises_http_error_with_body(api):
    api.reply(429, text="rate limited")
    async with api.client() as client:
        with pytest.raises(HttpError) as exc_info:
            await client.get(URL)

    assert exc_info.value.status == 429
    assert exc_info.value.body == "rate limited"
    assert "429" in str(exc_info.value)
    assert "rate limited" in str(exc_info.value)


@pytest.mark.unit
async def test_non_json_success_raises_decode_error(api):
    api.reply(200, text="<html>oops</html>")
    async with api.client() as client:
        with pytest.raises(DecodeError) as exc_info:
            await client.get(URL)

    assert exc_info.value.raw_body == "<html>oops</html>"


@pytest.mark.unit
async def test_network_failure_raises_transport_error(api):
    def _boom(request):
        raise httpx.ConnectError("connection refused", request=request)

    api.reply_with(_boom)
    async with api.client() as client:
        with pytest.raises(TransportError, match="connection refused"):
            await client.get(URL)


@pytest.mark.unit
async def test_put_bytes_unauthenticated_raw(api):
    api.reply(200, text="")
    async with api.client() as client:
        response = await client.put_bytes("https://upload.test/abc", b"\x89PNG", "image/png")

    assert response.status_code == 200
    sent = api.last
    assert sent.method == "PUT"
    assert sent.content == b"\x89PNG"
    assert sent.headers["content-type"] == "image/png"
    assert "authorization" not in sent.headers


@pytest.mark.unit
async def test_aclose_closes_httpx_client(api, mocker):
    client = api.client()
    mock_aclose = mocker.patch.object(client._http, "aclose")
    async with client:
        pass
    mock_aclose.assert_awaited_once()


@pytest.mark.unit
async def test_no_timeout_unless_configured(api):
    async with api.client() as client:
        assert client._http.timeout == httpx.Timeout(None)

    api.settings = Settings(api_key="test-key", timeout=12.5)
    async with api.client() as client:
        assert client._http.timeout == httpx.Timeout(12.5)

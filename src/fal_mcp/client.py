# SPDX-License-Identifier: MIT
"""HTTP transport for the fal.ai APIs.

One send path per method class:

- GET/HEAD go through ``httpx.AsyncClient.get``/``head``, which take no body
  argument at all, and never carry ``Content-Type``.
- POST/PUT/PATCH carry a JSON body and ``Content-Type: application/json``.
- Raw PUT (upload phase 2) and multipart POST (single-call upload) have their
  own entry points.

Non-2xx responses raise :class:`HttpError` with the body text verbatim; a 2xx
body that is not JSON raises :class:`DecodeError`. No retries.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any, Literal

import httpx

from .config import Settings, get_settings, logger
from .errors import DecodeError, HttpError, TransportError

Method = Literal["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE"]
QueryParams = Mapping[str, str | int | bool | list[str] | None]

_BODYLESS_METHODS = frozenset({"GET", "HEAD"})
_JSON_BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})


class FalClient:
    """Thin async wrapper over ``httpx.AsyncClient`` with fal.ai auth rules.

    Args:
        settings: Credential, base URLs and optional timeout (None waits indefinitely)
        transport: Optional httpx transport; tests pass ``httpx.MockTransport``
    """

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.settings = settings
        self._http = httpx.AsyncClient(transport=transport, timeout=settings.timeout)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> FalClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Headers
    # ------------------------------------------------------------------

    @property
    def has_api_key(self) -> bool:
        return self.settings.has_api_key

    def _headers(
        self,
        extra: Mapping[str, str] | None,
        authenticated: bool,
        *,
        content_type: str | None = None,
        bodyless: bool = False,
    ) -> dict[str, str]:
        headers: dict[str, str] = {"Accept": "application/json"}
        if content_type and not bodyless:
            headers["Content-Type"] = content_type
        for key, value in (extra or {}).items():
            if key.lower() == "authorization":
                continue
            if bodyless and key.lower() == "content-type":
                continue
            # Replace case-insensitively so a caller "content-type" overrides ours
            for existing in [k for k in headers if k.lower() == key.lower()]:
                del headers[existing]
            headers[key] = value
        if authenticated:
            headers["Authorization"] = f"Key {self.settings.require_api_key()}"
        return headers

    # ------------------------------------------------------------------
    # Request entry points
    # ------------------------------------------------------------------

    async def get(
        self,
        url: str,
        *,
        params: QueryParams | None = None,
        headers: Mapping[str, str] | None = None,
        authenticated: bool = True,
    ) -> Any:
        """GET returning parsed JSON. There is deliberately no body parameter."""
        request_headers = self._headers(headers, authenticated, bodyless=True)
        logger.debug("GET %s params=%s", url, params)
        response = await self._send(self._http.get, url, params=_clean_params(params), headers=request_headers)
        return _parse_json(response)

    async def head(
        self,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        authenticated: bool = True,
    ) -> httpx.Headers:
        """HEAD returning response headers."""
        request_headers = self._headers(headers, authenticated, bodyless=True)
        logger.debug("HEAD %s", url)
        response = await self._send(self._http.head, url, headers=request_headers)
        return response.headers

    async def send_json(
        self,
        method: Literal["POST", "PUT", "PATCH", "DELETE"],
        url: str,
        body: Any = None,
        *,
        params: QueryParams | None = None,
        headers: Mapping[str, str] | None = None,
        authenticated: bool = True,
    ) -> Any:
        """Send a state-changing request with an optional JSON body."""
        json_type = "application/json" if method in _JSON_BODY_METHODS else None
        request_headers = self._headers(headers, authenticated, content_type=json_type)
        content = json.dumps(body).encode() if body is not None else None
        logger.debug("%s %s", method, url)
        response = await self._send(
            self._http.request,
            method,
            url,
            params=_clean_params(params),
            headers=request_headers,
            content=content,
        )
        return _parse_json(response)

    async def request(
        self,
        method: Method,
        url: str,
        *,
        body: Any = None,
        params: QueryParams | None = None,
        headers: Mapping[str, str] | None = None,
        authenticated: bool = True,
    ) -> Any:
        """Generic entry point routing to the per-method send path.

        A body passed with GET/HEAD is dropped; the bodyless path cannot carry it.
        """
        method = method.upper()  # type: ignore[assignment]
        if method in _BODYLESS_METHODS:
            if body is not None:
                logger.debug("Dropping request body for %s %s", method, url)
            if method == "HEAD":
                return dict(await self.head(url, headers=headers, authenticated=authenticated))
            return await self.get(url, params=params, headers=headers, authenticated=authenticated)
        return await self.send_json(
            method,  # type: ignore[arg-type]
            url,
            body,
            params=params,
            headers=headers,
            authenticated=authenticated,
        )

    async def post_multipart(
        self,
        url: str,
        *,
        field: str,
        filename: str,
        content: bytes,
        content_type: str,
        authenticated: bool = True,
    ) -> Any:
        """POST multipart/form-data. httpx sets the boundary Content-Type itself."""
        request_headers = self._headers(None, authenticated)
        logger.debug("POST (multipart) %s file=%s (%d bytes)", url, filename, len(content))
        response = await self._send(
            self._http.post,
            url,
            headers=request_headers,
            files={field: (filename, content, content_type)},
        )
        return _parse_json(response)

    async def put_bytes(
        self,
        url: str,
        content: bytes,
        content_type: str,
        *,
        authenticated: bool = False,
    ) -> httpx.Response:
        """PUT raw bytes (e.g. to a pre-signed URL). The response body is not parsed."""
        request_headers = self._headers(None, authenticated, content_type=content_type)
        logger.debug("PUT %s (%d bytes, %s)", url, len(content), content_type)
        return await self._send(self._http.put, url, headers=request_headers, content=content)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _send(self, send: Any, *args: Any, **kwargs: Any) -> httpx.Response:
        try:
            response = await send(*args, **kwargs)
        except httpx.TimeoutException as e:
            logger.warning("Request timed out: %s", e)
            raise TransportError(f"Request timed out: {e}") from e
        except httpx.RequestError as e:
            logger.warning("Request failed: %s", e)
            raise TransportError(f"Request failed: {e}") from e

        if not response.is_success:
            logger.warning("%s %s -> HTTP %d", response.request.method, response.request.url, response.status_code)
            raise HttpError(response.status_code, response.text)
        return response


def _clean_params(params: QueryParams | None) -> list[tuple[str, str]] | None:
    """Flatten query params: drop None, repeat list values, lowercase booleans."""
    if params is None:
        return None
    cleaned: list[tuple[str, str]] = []
    for key, value in params.items():
        if value is None:
            continue
        values = value if isinstance(value, list) else [value]
        for item in values:
            if isinstance(item, bool):
                cleaned.append((key, "true" if item else "false"))
            else:
                cleaned.append((key, str(item)))
    return cleaned


def _parse_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError as e:
        # json.JSONDecodeError and UnicodeDecodeError are both ValueErrors
        raise DecodeError(response.text) from e


def get_client(transport: httpx.AsyncBaseTransport | None = None) -> FalClient:
    """Get a FalClient bound to the process settings.

    Use as an async context manager so the connection pool is closed::

        async with get_client() as client:
            ...
    """
    return FalClient(get_settings(), transport=transport)

# SPDX-License-Identifier: MIT
"""Endpoint identifier parsing and queue job addressing.

An endpoint identifier names a model as ``owner/alias`` or
``owner/alias/path`` (e.g. ``fal-ai/flux/dev``). The queue API addresses
requests by ``owner/alias`` only, so the trailing path is kept but not used
when building request URLs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal
from urllib.parse import quote, urlsplit

from .errors import FormatError, ValidationError

JobAction = Literal["result", "status", "cancel"]


@dataclass(frozen=True)
class EndpointId:
    """Parsed ``owner/alias[/path]`` identifier."""

    owner: str
    alias: str
    path: str | None = None

    @classmethod
    def parse(cls, endpoint_id: str) -> EndpointId:
        """Split an endpoint identifier into its segments.

        Examples::

            >>> EndpointId.parse("fal-ai/flux/dev")
            EndpointId(owner='fal-ai', alias='flux', path='dev')
            >>> EndpointId.parse("fal-ai/fast-sdxl")
            EndpointId(owner='fal-ai', alias='fast-sdxl', path=None)

        Raises:
            FormatError: If fewer than two non-empty segments are present
        """
        parts = endpoint_id.strip().split("/") if isinstance(endpoint_id, str) else []
        if len(parts) < 2 or not parts[0] or not parts[1]:
            raise FormatError(
                f"Invalid app_id format: {endpoint_id}. Expected format: owner/alias or owner/alias/path"
            )
        path = "/".join(parts[2:]) or None
        return cls(owner=parts[0], alias=parts[1], path=path)

    def __str__(self) -> str:
        base = f"{self.owner}/{self.alias}"
        return f"{base}/{self.path}" if self.path else base


# ------------------------------------------------------------------
# Job handles
# ------------------------------------------------------------------


@dataclass(frozen=True)
class ByUrl:
    """A platform-issued handle URL (``response_url``, ``status_url`` or ``cancel_url``)."""

    url: str


@dataclass(frozen=True)
class ByIdentifier:
    """A job addressed by endpoint identifier and request id."""

    endpoint_id: str
    request_id: str


JobHandle = ByUrl | ByIdentifier

_ACTION_SUFFIX: dict[str, str] = {
    "result": "",
    "status": "/status",
    "cancel": "/cancel",
}


def _origin(url: str) -> tuple[str, str | None, int | None]:
    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    port = parts.port or {"https": 443, "http": 80}.get(scheme)
    return scheme, parts.hostname, port


def _same_origin(url: str, queue_url: str) -> bool:
    try:
        return _origin(url) == _origin(queue_url)
    except ValueError:
        # Malformed port
        return False


def resolve_job_url(handle: JobHandle, action: JobAction, queue_url: str) -> str:
    """Produce the concrete queue URL for *action* on *handle*.

    A :class:`ByUrl` handle is used verbatim, but only when it points at the
    queue host; the request carries the API key. A :class:`ByIdentifier` handle
    is parsed first, so a malformed identifier fails before any request is made.

    Raises:
        FormatError: If the endpoint identifier is malformed
        ValidationError: If the request id is empty or the handle URL is off the queue host
    """
    if isinstance(handle, ByUrl):
        if not _same_origin(handle.url, queue_url):
            raise ValidationError(f"Handle URL must point at the queue host {queue_url}: {handle.url}")
        return handle.url

    endpoint = EndpointId.parse(handle.endpoint_id)
    if not handle.request_id:
        raise ValidationError("request_id must not be empty")
    request_id = quote(handle.request_id, safe="")
    base = f"{queue_url.rstrip('/')}/{endpoint.owner}/{endpoint.alias}/requests/{request_id}"
    return base + _ACTION_SUFFIX[action]


def validate_endpoint_ids(endpoint_ids: object, max_ids: int = 50) -> list[str]:
    """Check a list of 1..max_ids non-empty endpoint id strings.

    Raises:
        ValidationError: If the value is not a list, is empty, too long, or holds non-strings
    """
    if not isinstance(endpoint_ids, list):
        raise ValidationError("endpoint_ids parameter is required and must be an array")
    if not endpoint_ids:
        raise ValidationError("endpoint_ids must contain at least 1 endpoint ID")
    if len(endpoint_ids) > max_ids:
        raise ValidationError(f"endpoint_ids accepts at most {max_ids} endpoint IDs, got {len(endpoint_ids)}")
    for item in endpoint_ids:
        if not isinstance(item, str) or not item.strip():
            raise ValidationError(f"Invalid endpoint ID: {item!r}")
    return [item.strip() for item in endpoint_ids]

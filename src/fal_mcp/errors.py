# SPDX-License-Identifier: MIT
"""Error taxonomy for fal.ai tool operations.

Every failure a tool can report is a :class:`FalError`. The dispatch boundary
converts these into ``{"error": message}`` tool results; nothing here is
meant to terminate the process.
"""

from __future__ import annotations


class FalError(Exception):
    """Base class for all tool-level failures."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(FalError):
    """Required configuration (usually FAL_KEY) is missing or invalid."""


class ValidationError(FalError):
    """Tool arguments are missing or out of range. Raised before any network call."""


class FormatError(FalError):
    """An endpoint identifier is not of the form ``owner/alias[/path]``."""


class NotFoundError(FalError):
    """The platform returned no entry for the requested resource."""


class SchemaError(FalError):
    """The platform embedded an error object where a schema was expected."""


class DecodeError(FalError):
    """A 2xx response body was not valid JSON."""

    def __init__(self, raw_body: str) -> None:
        preview = raw_body if len(raw_body) <= 500 else raw_body[:500] + "..."
        super().__init__(f"Invalid JSON in response body: {preview}")
        self.raw_body = raw_body


class HttpError(FalError):
    """Non-2xx response. ``body`` holds the response text verbatim."""

    def __init__(self, status: int, body: str) -> None:
        super().__init__(f"HTTP {status}: {body}")
        self.status = status
        self.body = body


class UploadError(FalError):
    """Storage upload failure at phase 1 (initiate/multipart) or phase 2 (PUT)."""

    def __init__(self, phase: int, status: int, body: str) -> None:
        super().__init__(f"Upload failed (phase {phase}): HTTP {status}: {body}")
        self.phase = phase
        self.status = status
        self.body = body


class TransportError(FalError):
    """Network-level failure: DNS, connection refused, timeout."""


class RequestCancelledError(FalError):
    """The caller aborted an in-flight request."""

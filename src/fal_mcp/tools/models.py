# SPDX-License-Identifier: MIT
"""Model discovery tools against the fal.ai platform catalog.

This module contains:
- Listing models with category/status filters and cursor pagination
- Free-text search (server-side when enabled, otherwise a local filter)
- Exact lookup by endpoint id
- OpenAPI input/output schema extraction for a single endpoint
"""

from typing import Any

from ..client import FalClient, get_client
from ..config import logger
from ..endpoint_id import validate_endpoint_ids
from ..errors import NotFoundError, SchemaError, ValidationError
from ..types import (
    MAX_PAGE_SIZE,
    OPENAPI_EXPAND,
    ModelEntry,
    ModelPage,
    ModelStatus,
    SchemaResult,
    SearchPage,
)

# Metadata keys projected explicitly; everything else is passed through
_PROJECTED_KEYS = {"display_name", "title", "description", "shortDescription", "category", "status", "tags"}
_STRUCTURAL_KEYS = {"endpoint_id", "id", "metadata", "openapi", "thumbnailUrl"}
_SEARCH_FIELDS = ("id", "name", "description", "category")


def _models_url(client: FalClient) -> str:
    return f"{client.settings.api_url}/models"


def _clamp_limit(limit: int) -> int:
    if not isinstance(limit, int) or isinstance(limit, bool) or limit < 1:
        raise ValidationError(f"limit must be a positive integer, got {limit!r}")
    return min(limit, MAX_PAGE_SIZE)


def _project_entry(item: dict[str, Any]) -> ModelEntry:
    """Project a catalog row into the uniform ModelEntry shape.

    Handles current rows (``endpoint_id`` + nested ``metadata``) and legacy
    gallery rows (flat ``id``/``title``/``shortDescription``).
    """
    metadata = item.get("metadata")
    source: dict[str, Any] = metadata if isinstance(metadata, dict) else item
    endpoint_id = item.get("endpoint_id") or item.get("id") or source.get("endpoint_id")

    entry: dict[str, Any] = {}
    for row in (item, source):
        entry.update(
            {k: v for k, v in row.items() if k not in _PROJECTED_KEYS and k not in _STRUCTURAL_KEYS}
        )
    entry.update(
        {
            "id": endpoint_id,
            "name": source.get("display_name") or source.get("title") or endpoint_id,
            "description": source.get("description") or source.get("shortDescription"),
            "category": source.get("category"),
            "status": source.get("status"),
            "tags": source.get("tags") or [],
            "thumbnail_url": source.get("thumbnail_url") or source.get("thumbnailUrl"),
        }
    )
    if "openapi" in item:
        entry["openapi"] = item["openapi"]
    return entry  # type: ignore[return-value]


def _to_page(data: dict[str, Any], entries: list[ModelEntry]) -> ModelPage:
    next_cursor = data.get("next_cursor")
    return {
        "models": entries,
        "next_cursor": next_cursor,
        "has_more": bool(data.get("has_more", next_cursor is not None)),
    }


def _rows(data: Any) -> list[dict[str, Any]]:
    if not isinstance(data, dict):
        return []
    rows = data.get("models", data.get("items", []))
    return [row for row in rows if isinstance(row, dict)]


async def _fetch_catalog(client: FalClient, params: dict[str, Any]) -> dict[str, Any]:
    # Send the key when we have one (higher rate limits); discovery works without it
    data = await client.get(_models_url(client), params=params, authenticated=client.has_api_key)
    return data if isinstance(data, dict) else {}


async def list_models(
    category: str | None = None,
    cursor: str | None = None,
    limit: int = 100,
    status: ModelStatus | None = None,
    expand: list[str] | None = None,
) -> ModelPage:
    """List models in the fal.ai catalog.

    Args:
        category: Optional category filter (e.g. "text-to-image")
        cursor: Opaque cursor from a previous page's ``next_cursor``
        limit: Page size, capped at 100
        status: "active" or "deprecated" (omit for both)
        expand: Fields to expand, e.g. ["openapi-3.0"]

    Returns:
        ModelPage with models, next_cursor and has_more

    Raises:
        ValidationError: If limit is not a positive integer
        HttpError: If the catalog request fails
    """
    params = {
        "category": category,
        "status": status,
        "limit": _clamp_limit(limit),
        "cursor": cursor,
        "expand": list(expand) if expand else None,
    }
    async with get_client() as client:
        data = await _fetch_catalog(client, params)

    entries = [_project_entry(row) for row in _rows(data)]
    logger.info("Listed %d models (category=%s, has_more=%s)", len(entries), category, data.get("has_more"))
    return _to_page(data, entries)


def _matches(entry: ModelEntry, needle: str) -> bool:
    for field in _SEARCH_FIELDS:
        value = entry.get(field)
        if isinstance(value, str) and needle in value.lower():
            return True
    return False


async def search_models(
    query: str,
    cursor: str | None = None,
    limit: int = 50,
    category: str | None = None,
    status: ModelStatus | None = None,
    expand: list[str] | None = None,
) -> SearchPage:
    """Search the catalog by free text across id, name, description and category.

    When server-side search is disabled (the default), one catalog page is
    fetched and filtered locally with a case-insensitive substring match.
    The returned cursor still pages through the underlying catalog.

    Raises:
        ValidationError: If query is blank or limit invalid
        HttpError: If the catalog request fails
    """
    if not isinstance(query, str) or not query.strip():
        raise ValidationError("query parameter is required")

    params: dict[str, Any] = {
        "category": category,
        "status": status,
        "limit": _clamp_limit(limit),
        "cursor": cursor,
        "expand": list(expand) if expand else None,
    }
    async with get_client() as client:
        server_side = client.settings.server_side_search
        if server_side:
            params["q"] = query
        data = await _fetch_catalog(client, params)

    entries = [_project_entry(row) for row in _rows(data)]
    if not server_side:
        needle = query.strip().lower()
        entries = [e for e in entries if _matches(e, needle)]

    logger.info("Search %r matched %d models (server_side=%s)", query, len(entries), server_side)
    page = _to_page(data, entries)
    return {"query": query, **page}  # type: ignore[typeddict-item]


async def find_models(endpoint_ids: list[str], expand: list[str] | None = None) -> ModelPage:
    """Fetch specific models by endpoint id (1-50 ids).

    Raises:
        ValidationError: If zero or more than 50 ids are given
        HttpError: If the catalog request fails
    """
    ids = validate_endpoint_ids(endpoint_ids)
    params = {"endpoint_id": ids, "expand": list(expand) if expand else None}
    async with get_client() as client:
        data = await _fetch_catalog(client, params)

    entries = [_project_entry(row) for row in _rows(data)]
    logger.info("Found %d of %d requested models", len(entries), len(ids))
    return _to_page(data, entries)


# ------------------------------------------------------------------
# Schema extraction
# ------------------------------------------------------------------


def _resolve_ref(schema: Any, openapi: dict[str, Any]) -> Any:
    """Resolve a local ``#/components/schemas/...`` reference one level deep."""
    if not isinstance(schema, dict) or "$ref" not in schema:
        return schema
    ref = schema["$ref"]
    if not isinstance(ref, str) or not ref.startswith("#/"):
        return schema
    node: Any = openapi
    for part in ref[2:].split("/"):
        if not isinstance(node, dict) or part not in node:
            return schema
        node = node[part]
    return node


def _json_schema(container: Any) -> Any:
    if not isinstance(container, dict):
        return None
    content = container.get("content", {})
    return content.get("application/json", {}).get("schema") if isinstance(content, dict) else None


def _extract_schemas(openapi: dict[str, Any]) -> tuple[Any, Any]:
    input_schema = None
    output_schema = None
    paths = openapi.get("paths", {})
    if not isinstance(paths, dict):
        paths = {}

    for path, operations in paths.items():
        if not isinstance(operations, dict):
            continue
        post = operations.get("post")
        if input_schema is None and isinstance(post, dict) and "requestBody" in post:
            input_schema = _resolve_ref(_json_schema(post["requestBody"]), openapi)
        get = operations.get("get")
        if output_schema is None and path.endswith("/requests/{request_id}") and isinstance(get, dict):
            ok = get.get("responses", {}).get("200")
            output_schema = _resolve_ref(_json_schema(ok), openapi)

    # Fall back to conventional component names
    components = openapi.get("components", {}).get("schemas", {})
    if isinstance(components, dict):
        for name, schema in components.items():
            if input_schema is None and name.endswith("Input"):
                input_schema = schema
            if output_schema is None and name.endswith("Output"):
                output_schema = schema
    return input_schema, output_schema


async def get_model_schema(endpoint_id: str) -> SchemaResult:
    """Get the OpenAPI input/output schema for one endpoint.

    Returns:
        SchemaResult with input_schema, output_schema and the full openapi document

    Raises:
        NotFoundError: If the catalog has no such endpoint
        SchemaError: If the platform returned an error object instead of a schema
        HttpError: If the catalog request fails
    """
    if not isinstance(endpoint_id, str) or not endpoint_id.strip():
        raise ValidationError("endpoint_id parameter is required")

    params = {"endpoint_id": [endpoint_id], "expand": [OPENAPI_EXPAND]}
    async with get_client() as client:
        data = await _fetch_catalog(client, params)

    rows = _rows(data)
    if not rows:
        raise NotFoundError(f"Model not found: {endpoint_id}")

    openapi = rows[0].get("openapi")
    if isinstance(openapi, dict) and isinstance(openapi.get("error"), dict):
        err = openapi["error"]
        code = err.get("code")
        message = err.get("message") or "unknown error"
        raise SchemaError(f"Schema unavailable for {endpoint_id}: {message}" + (f" ({code})" if code else ""))
    if not isinstance(openapi, dict):
        openapi = {}

    input_schema, output_schema = _extract_schemas(openapi)
    return {
        "endpoint_id": endpoint_id,
        "input_schema": input_schema,
        "output_schema": output_schema,
        "openapi": openapi,
    }

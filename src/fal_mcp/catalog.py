# SPDX-License-Identifier: MIT
"""Tool catalog: one MCP Tool descriptor per tool name.

The dispatch boundary reads ``required`` from these input schemas, so the
declared shape and the runtime checks cannot drift apart.
"""

from typing import Any

from mcp import types

from . import descriptions

_STRING = {"type": "string"}
_CURSOR = {"type": "string", "description": "Pagination cursor from previous response (next_cursor)"}
_STATUS = {"type": "string", "enum": ["active", "deprecated"], "description": "Filter by model status"}
_EXPAND = {
    "type": "array",
    "items": _STRING,
    "description": "Fields to expand. Supported: 'openapi-3.0' (includes full OpenAPI schema)",
}
_ENDPOINT_IDS = {
    "type": "array",
    "items": _STRING,
    "minItems": 1,
    "maxItems": 50,
    "description": "Endpoint ID(s), e.g. ['fal-ai/flux/dev']. 1-50 entries.",
}
_APP_ID = {"type": "string", "description": "Model endpoint ID, e.g. 'fal-ai/flux/dev'"}
_REQUEST_ID = {"type": "string", "description": "request_id returned by generate"}
_START = {"type": "string", "description": "Start in ISO8601 (e.g. '2025-01-01T00:00:00Z'). Defaults to 24 hours ago."}
_END = {"type": "string", "description": "End in ISO8601. Defaults to now."}
_TIMEZONE = {"type": "string", "default": "UTC", "description": "Aggregation timezone, e.g. 'America/New_York'"}
_BOUND = {"type": "boolean", "default": True, "description": "Align start/end to timeframe boundaries"}
_LIMIT = {"type": "integer", "minimum": 1, "description": "Maximum number of items to return"}


def _tool(name: str, description: str, properties: dict[str, Any], required: list[str] | None = None) -> types.Tool:
    schema: dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    return types.Tool(name=name, description=description, inputSchema=schema)


TOOLS: list[types.Tool] = [
    # ==================== MODEL DISCOVERY ====================
    _tool(
        "models",
        descriptions.MODELS,
        {
            "category": {"type": "string", "description": "Category filter, e.g. 'text-to-image'"},
            "cursor": _CURSOR,
            "limit": {"type": "integer", "minimum": 1, "maximum": 100, "default": 100},
            "status": _STATUS,
            "expand": _EXPAND,
        },
    ),
    _tool(
        "search",
        descriptions.SEARCH,
        {
            "query": {"type": "string", "description": "Free-text query (name, description, category)"},
            "cursor": _CURSOR,
            "limit": {"type": "integer", "minimum": 1, "maximum": 100, "default": 50},
            "category": {"type": "string", "description": "Category filter"},
            "status": _STATUS,
            "expand": _EXPAND,
        },
        ["query"],
    ),
    _tool("find", descriptions.FIND, {"endpoint_ids": _ENDPOINT_IDS, "expand": _EXPAND}, ["endpoint_ids"]),
    _tool("schema", descriptions.SCHEMA, {"endpoint_id": _APP_ID}, ["endpoint_id"]),
    # ==================== GENERATION ====================
    _tool(
        "generate",
        descriptions.GENERATE,
        {
            "app_id": _APP_ID,
            "input_data": {"type": "object", "description": "Model-specific input parameters"},
            "webhook_url": {"type": "string", "description": "Optional webhook URL for result notification"},
        },
        ["app_id", "input_data"],
    ),
    _tool(
        "result",
        descriptions.RESULT,
        {
            "app_id": _APP_ID,
            "request_id": _REQUEST_ID,
            "url": {"type": "string", "description": "response_url from generate (optional)"},
        },
        ["app_id", "request_id"],
    ),
    _tool(
        "status",
        descriptions.STATUS,
        {
            "app_id": _APP_ID,
            "request_id": _REQUEST_ID,
            "logs": {"type": "boolean", "default": False, "description": "Include model logs"},
            "url": {"type": "string", "description": "status_url from generate (optional)"},
        },
        ["app_id", "request_id"],
    ),
    _tool(
        "cancel",
        descriptions.CANCEL,
        {
            "app_id": _APP_ID,
            "request_id": _REQUEST_ID,
            "url": {"type": "string", "description": "cancel_url from generate (optional)"},
        },
        ["app_id", "request_id"],
    ),
    # ==================== STORAGE ====================
    _tool(
        "upload",
        descriptions.UPLOAD,
        {
            "file_path": {"type": "string", "description": "Path to the file to upload"},
            "content_type": {"type": "string", "description": "MIME type (auto-detected if omitted)"},
        },
        ["file_path"],
    ),
    # ==================== BILLING ====================
    _tool("pricing", descriptions.PRICING, {"endpoint_ids": _ENDPOINT_IDS, "cursor": _CURSOR}, ["endpoint_ids"]),
    _tool(
        "estimate_cost",
        descriptions.ESTIMATE_COST,
        {
            "estimate_type": {"type": "string", "enum": ["historical_api_price", "unit_price"]},
            "endpoints": {
                "type": "object",
                "description": "Map of endpoint ID to {call_quantity} (historical_api_price) or {unit_quantity} (unit_price)",
                "additionalProperties": {"type": "object"},
            },
        },
        ["estimate_type", "endpoints"],
    ),
    _tool(
        "usage",
        descriptions.USAGE,
        {
            "endpoint_ids": _ENDPOINT_IDS,
            "start": _START,
            "end": _END,
            "timezone": _TIMEZONE,
            "timeframe": {"type": "string", "enum": ["minute", "hour", "day", "week", "month"]},
            "bound_to_timeframe": _BOUND,
            "expand": {
                "type": "array",
                "items": {"type": "string", "enum": ["time_series", "summary", "auth_method"]},
                "description": "Sections to include. Defaults to ['time_series'].",
            },
            "cursor": _CURSOR,
            "limit": _LIMIT,
        },
        ["endpoint_ids"],
    ),
    _tool(
        "analytics",
        descriptions.ANALYTICS,
        {
            "endpoint_ids": _ENDPOINT_IDS,
            "start": _START,
            "end": _END,
            "timezone": _TIMEZONE,
            "timeframe": {"type": "string", "enum": ["hour", "day", "week", "month"]},
            "bound_to_timeframe": _BOUND,
            "metric": {
                "type": "string",
                "enum": ["total_requests", "successful_requests", "failed_requests", "avg_latency_ms"],
                "description": "Return only this metric in each bucket",
            },
            "cursor": _CURSOR,
            "limit": _LIMIT,
        },
        ["endpoint_ids"],
    ),
]

TOOLS_BY_NAME: dict[str, types.Tool] = {tool.name: tool for tool in TOOLS}


def required_arguments(name: str) -> list[str]:
    """Required argument names declared for *name*'s input schema."""
    return list(TOOLS_BY_NAME[name].inputSchema.get("required", []))

# SPDX-License-Identifier: MIT
"""Tool dispatch boundary.

Maps ``(tool name, arguments)`` to an operation, checks the required
arguments declared in the catalog, and wraps the outcome in a tool result:
``{"content": [{"type": "text", "text": <json>}], "isError": bool}``.
Failures never escape as exceptions; they become ``{"error": message}``.
"""

import asyncio
import json
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from mcp import types

from .catalog import TOOLS_BY_NAME, required_arguments
from .config import logger
from .errors import FalError, RequestCancelledError, ValidationError
from .tools import billing, generate, models, storage

Handler = Callable[[Mapping[str, Any]], Awaitable[Any]]

_HANDLERS: dict[str, Handler] = {
    # ==================== MODEL DISCOVERY ====================
    "models": lambda a: models.list_models(
        category=a.get("category"),
        cursor=a.get("cursor"),
        limit=a.get("limit", 100),
        status=a.get("status"),
        expand=a.get("expand"),
    ),
    "search": lambda a: models.search_models(
        a["query"],
        cursor=a.get("cursor"),
        limit=a.get("limit", 50),
        category=a.get("category"),
        status=a.get("status"),
        expand=a.get("expand"),
    ),
    "find": lambda a: models.find_models(a["endpoint_ids"], expand=a.get("expand")),
    "schema": lambda a: models.get_model_schema(a["endpoint_id"]),
    # ==================== GENERATION ====================
    "generate": lambda a: generate.generate(a["app_id"], a["input_data"], webhook_url=a.get("webhook_url")),
    "result": lambda a: generate.get_result(a["app_id"], a["request_id"], url=a.get("url")),
    "status": lambda a: generate.get_status(
        a["app_id"], a["request_id"], url=a.get("url"), logs=bool(a.get("logs", False))
    ),
    "cancel": lambda a: generate.cancel_request(a["app_id"], a["request_id"], url=a.get("url")),
    # ==================== STORAGE ====================
    "upload": lambda a: storage.upload_file(a["file_path"], content_type=a.get("content_type")),
    # ==================== BILLING ====================
    "pricing": lambda a: billing.get_pricing(a["endpoint_ids"], cursor=a.get("cursor")),
    "estimate_cost": lambda a: billing.estimate_cost(a["estimate_type"], a["endpoints"]),
    "usage": lambda a: billing.get_usage(
        a["endpoint_ids"],
        start=a.get("start"),
        end=a.get("end"),
        timezone=a.get("timezone") or "UTC",
        timeframe=a.get("timeframe"),
        bound_to_timeframe=a.get("bound_to_timeframe", True),
        expand=a.get("expand"),
        cursor=a.get("cursor"),
        limit=a.get("limit"),
    ),
    "analytics": lambda a: billing.get_analytics(
        a["endpoint_ids"],
        start=a.get("start"),
        end=a.get("end"),
        timezone=a.get("timezone") or "UTC",
        timeframe=a.get("timeframe"),
        bound_to_timeframe=a.get("bound_to_timeframe", True),
        metric=a.get("metric"),
        cursor=a.get("cursor"),
        limit=a.get("limit"),
    ),
}


def _missing(arguments: Mapping[str, Any], required: list[str]) -> list[str]:
    return [name for name in required if arguments.get(name) is None or arguments.get(name) == ""]


def check_arguments(name: str, arguments: Mapping[str, Any]) -> None:
    """Validate the tool name and the presence of its required arguments.

    Raises:
        ValidationError: If the tool is unknown or a required argument is missing
    """
    if name not in TOOLS_BY_NAME or name not in _HANDLERS:
        raise ValidationError(f"Unknown tool: {name}")
    missing = _missing(arguments, required_arguments(name))
    if missing:
        verb = "is" if len(missing) == 1 else "are"
        raise ValidationError(f"{' and '.join(missing)} parameter{'s' if len(missing) > 1 else ''} {verb} required")


def text_result(payload: Any, is_error: bool = False) -> types.CallToolResult:
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=json.dumps(payload, indent=2, default=str))],
        isError=is_error,
    )


async def _run_cancellable(operation: Awaitable[Any], cancel_event: asyncio.Event | None) -> Any:
    """Await *operation*, aborting it if *cancel_event* fires first."""
    if cancel_event is None:
        return await operation

    op_task = asyncio.ensure_future(operation)
    cancel_task = asyncio.ensure_future(cancel_event.wait())
    try:
        await asyncio.wait({op_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        op_task.cancel()
        raise
    finally:
        cancel_task.cancel()

    if op_task.done():
        return op_task.result()

    op_task.cancel()
    try:
        await op_task
    except asyncio.CancelledError:
        pass
    raise RequestCancelledError("Request cancelled by caller")


async def call_tool(
    name: str,
    arguments: Mapping[str, Any] | None = None,
    cancel_event: asyncio.Event | None = None,
) -> types.CallToolResult:
    """Run one tool call and wrap the outcome in a tool result.

    Args:
        name: Tool name from the catalog
        arguments: Tool arguments (JSON object)
        cancel_event: Optional event; setting it aborts the in-flight request

    Returns:
        CallToolResult with JSON text content; ``isError`` set on failure
    """
    arguments = arguments or {}
    try:
        check_arguments(name, arguments)
        result = await _run_cancellable(_HANDLERS[name](arguments), cancel_event)
    except FalError as e:
        logger.warning("Tool %s failed: %s", name, e.message)
        return text_result({"error": e.message}, is_error=True)
    except Exception as e:
        logger.exception("Tool %s failed unexpectedly", name)
        return text_result({"error": str(e) or type(e).__name__}, is_error=True)

    return text_result(result)

# SPDX-License-Identifier: MIT
"""Billing and analytics tools for the fal.ai platform API.

All operations here require FAL_KEY and fail with ConfigurationError before
any request is built when it is missing. Listings are cursor-paginated; the
cursor is forwarded verbatim and never constructed locally.
"""

import datetime as dt
from typing import Any, get_args

import pydantic

from ..client import get_client
from ..config import logger
from ..endpoint_id import validate_endpoint_ids
from ..errors import ValidationError
from ..types import (
    AnalyticsMetric,
    AnalyticsPage,
    AnalyticsSeries,
    AnalyticsTimeframe,
    CostEstimate,
    EstimateRequest,
    PricingPage,
    UsageExpand,
    UsagePage,
    UsageTimeframe,
)

DEFAULT_WINDOW = dt.timedelta(hours=24)


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def _iso(when: dt.datetime) -> str:
    return when.isoformat(timespec="seconds").replace("+00:00", "Z")


def _default_range(start: str | None, end: str | None) -> tuple[str, str]:
    """Fill in the last-24-hours window for whichever bound is missing."""
    now = _utcnow()
    return start or _iso(now - DEFAULT_WINDOW), end or _iso(now)


def _check_choice(name: str, value: Any, choices: Any) -> None:
    allowed = get_args(choices)
    if value is not None and value not in allowed:
        raise ValidationError(f"{name} must be one of {', '.join(allowed)}; got {value!r}")


def _check_limit(limit: Any) -> None:
    if limit is not None and (not isinstance(limit, int) or isinstance(limit, bool) or limit < 1):
        raise ValidationError(f"limit must be a positive integer, got {limit!r}")


def _as_dict(data: Any) -> dict[str, Any]:
    return data if isinstance(data, dict) else {}


def _page_fields(data: dict[str, Any]) -> tuple[str | None, bool]:
    next_cursor = data.get("next_cursor")
    return next_cursor, bool(data.get("has_more", next_cursor is not None))


# ==================== PRICING ====================


async def get_pricing(endpoint_ids: list[str], cursor: str | None = None) -> PricingPage:
    """Get unit pricing for 1-50 endpoints.

    Raises:
        ConfigurationError: If FAL_KEY not set
        ValidationError: If endpoint_ids is empty or has more than 50 entries
        HttpError: If the pricing request fails
    """
    ids = validate_endpoint_ids(endpoint_ids)

    async with get_client() as client:
        client.settings.require_api_key()
        data = await client.get(
            f"{client.settings.api_url}/models/pricing",
            params={"endpoint_id": ids, "cursor": cursor},
        )

    data = _as_dict(data)
    next_cursor, has_more = _page_fields(data)
    prices = data.get("prices", [])
    logger.info("Fetched pricing for %d endpoints (%d prices)", len(ids), len(prices))
    return {"prices": prices, "next_cursor": next_cursor, "has_more": has_more}


async def estimate_cost(estimate_type: str, endpoints: dict[str, dict[str, Any]]) -> CostEstimate:
    """Estimate cost from historical API prices or unit prices.

    ``historical_api_price`` entries carry ``call_quantity``; ``unit_price``
    entries carry ``unit_quantity``. Mixing them is rejected locally.

    Raises:
        ConfigurationError: If FAL_KEY not set
        ValidationError: If the estimate type or quantity shape is invalid
        HttpError: If the estimate request fails
    """
    try:
        request = EstimateRequest(request={"estimate_type": estimate_type, "endpoints": endpoints}).request
    except pydantic.ValidationError as e:
        raise ValidationError(_describe_estimate_error(estimate_type, e)) from e

    async with get_client() as client:
        client.settings.require_api_key()
        data = await client.send_json(
            "POST",
            f"{client.settings.api_url}/models/pricing/estimate",
            request.model_dump(mode="json"),
        )
    data = _as_dict(data)

    logger.info("Estimated %s cost for %d endpoints", request.estimate_type, len(request.endpoints))
    return {
        "estimate_type": data.get("estimate_type", request.estimate_type),
        "total_cost": data.get("total_cost"),
        "currency": data.get("currency"),
    }


def _describe_estimate_error(estimate_type: str, error: pydantic.ValidationError) -> str:
    if estimate_type not in ("historical_api_price", "unit_price"):
        return "estimate_type must be 'historical_api_price' or 'unit_price'"
    field = "call_quantity" if estimate_type == "historical_api_price" else "unit_quantity"
    details = "; ".join(
        f"{'.'.join(str(p) for p in err['loc'][2:]) or 'endpoints'}: {err['msg']}" for err in error.errors()
    )
    return f"Invalid endpoints for {estimate_type}: each entry must be {{{field}: number > 0}} ({details})"


# ==================== USAGE ====================


async def get_usage(
    endpoint_ids: list[str],
    start: str | None = None,
    end: str | None = None,
    timezone: str = "UTC",
    timeframe: UsageTimeframe | None = None,
    bound_to_timeframe: bool = True,
    expand: list[UsageExpand] | None = None,
    cursor: str | None = None,
    limit: int | None = None,
) -> UsagePage:
    """Get usage records (time series and/or summary) for 1-50 endpoints.

    Args:
        endpoint_ids: Endpoints to report on
        start: ISO-8601 start; defaults to 24 hours ago
        end: ISO-8601 end; defaults to now
        timezone: Aggregation timezone
        timeframe: Bucket size; auto-detected by the platform when omitted
        bound_to_timeframe: Align start/end to bucket boundaries
        expand: Sections to include; defaults to ["time_series"]
        cursor: Opaque cursor from a previous page
        limit: Maximum items to return

    Raises:
        ConfigurationError: If FAL_KEY not set
        ValidationError: If arguments are out of range
        HttpError: If the usage request fails
    """
    ids = validate_endpoint_ids(endpoint_ids)
    _check_choice("timeframe", timeframe, UsageTimeframe)
    expand = list(expand) if expand else ["time_series"]
    for item in expand:
        _check_choice("expand", item, UsageExpand)
    _check_limit(limit)
    start, end = _default_range(start, end)

    async with get_client() as client:
        client.settings.require_api_key()
        data = await client.get(
            f"{client.settings.api_url}/models/usage",
            params={
                "endpoint_id": ids,
                "start": start,
                "end": end,
                "timezone": timezone,
                "timeframe": timeframe,
                "bound_to_timeframe": bound_to_timeframe,
                "expand": expand,
                "cursor": cursor,
                "limit": limit,
            },
        )

    data = _as_dict(data)
    next_cursor, has_more = _page_fields(data)
    result: UsagePage = {"next_cursor": next_cursor, "has_more": has_more}
    if "time_series" in data:
        result["time_series"] = data["time_series"]
    if "summary" in data:
        result["summary"] = data["summary"]
    logger.info("Fetched usage for %d endpoints (%s to %s)", len(ids), start, end)
    return result


# ==================== ANALYTICS ====================


def _normalize_bucket(bucket: dict[str, Any], metric: str | None) -> dict[str, Any]:
    start = bucket.get("start", bucket.get("bucket"))
    end = bucket.get("end")
    metrics = {k: v for k, v in bucket.items() if k not in ("start", "end", "bucket")}
    if metric is not None:
        metrics = {metric: metrics.get(metric)}
    return {"start": start, "end": end, **metrics}


def _normalize_series(data: dict[str, Any], metric: str | None) -> list[AnalyticsSeries]:
    raw = data.get("timeseries", data.get("time_series", []))
    series: list[AnalyticsSeries] = []
    for entry in raw if isinstance(raw, list) else []:
        if not isinstance(entry, dict):
            continue
        buckets = entry.get("buckets", entry.get("results", []))
        series.append(
            {
                "endpoint_id": entry.get("endpoint_id"),
                "buckets": [_normalize_bucket(b, metric) for b in buckets if isinstance(b, dict)],
            }
        )
    return series


async def get_analytics(
    endpoint_ids: list[str],
    start: str | None = None,
    end: str | None = None,
    timezone: str = "UTC",
    timeframe: AnalyticsTimeframe | None = None,
    bound_to_timeframe: bool = True,
    metric: AnalyticsMetric | None = None,
    cursor: str | None = None,
    limit: int | None = None,
) -> AnalyticsPage:
    """Get time-bucketed request counts, latency and success/error rates.

    When ``metric`` is given each bucket keeps only start, end and that metric.

    Raises:
        ConfigurationError: If FAL_KEY not set
        ValidationError: If endpoint_ids is empty or over 50, or an enum is invalid
        HttpError: If the analytics request fails
    """
    ids = validate_endpoint_ids(endpoint_ids)
    _check_choice("timeframe", timeframe, AnalyticsTimeframe)
    _check_choice("metric", metric, AnalyticsMetric)
    _check_limit(limit)
    start, end = _default_range(start, end)

    async with get_client() as client:
        client.settings.require_api_key()
        data = await client.get(
            f"{client.settings.api_url}/models/analytics",
            params={
                "endpoint_id": ids,
                "start": start,
                "end": end,
                "timezone": timezone,
                "timeframe": timeframe,
                "bound_to_timeframe": bound_to_timeframe,
                "cursor": cursor,
                "limit": limit,
            },
        )

    data = _as_dict(data)
    next_cursor, has_more = _page_fields(data)
    series = _normalize_series(data, metric)
    logger.info("Fetched analytics for %d endpoints (%d series)", len(ids), len(series))
    return {"timeseries": series, "next_cursor": next_cursor, "has_more": has_more}

# SPDX-License-Identifier: MIT
"""Result shapes returned by the tools, plus request models validated locally."""

from __future__ import annotations

from typing import Annotated, Any, Literal, TypedDict

from pydantic import BaseModel, ConfigDict, Field, PositiveFloat

ModelStatus = Literal["active", "deprecated"]
JobStatus = Literal["IN_QUEUE", "IN_PROGRESS", "COMPLETED"]
UsageExpand = Literal["time_series", "summary", "auth_method"]
UsageTimeframe = Literal["minute", "hour", "day", "week", "month"]
AnalyticsTimeframe = Literal["hour", "day", "week", "month"]
AnalyticsMetric = Literal["total_requests", "successful_requests", "failed_requests", "avg_latency_ms"]

OPENAPI_EXPAND = "openapi-3.0"
MAX_ENDPOINT_IDS = 50
MAX_PAGE_SIZE = 100


# ---------- Model discovery ----------
class ModelEntry(TypedDict, total=False):
    """One catalog entry projected into a uniform shape."""

    id: str
    name: str
    description: str | None
    category: str | None
    status: str | None
    tags: list[str]
    thumbnail_url: str | None
    openapi: dict[str, Any]


class ModelPage(TypedDict):
    """Cursor-paginated list of catalog entries."""

    models: list[ModelEntry]
    next_cursor: str | None
    has_more: bool


class SearchPage(ModelPage):
    query: str


class SchemaResult(TypedDict):
    endpoint_id: str
    input_schema: dict[str, Any] | None
    output_schema: dict[str, Any] | None
    openapi: dict[str, Any]


# ---------- Queue ----------
class GenerateResult(TypedDict, total=False):
    request_id: str
    status: str
    response_url: str | None
    status_url: str | None
    cancel_url: str | None
    queue_position: int | None


class QueueStatus(TypedDict, total=False):
    request_id: str
    status: str
    queue_position: int | None
    response_url: str | None
    logs: list[Any] | None


class QueueResult(TypedDict, total=False):
    request_id: str
    status: str
    result: Any
    error: Any
    logs: list[Any] | None
    metrics: dict[str, Any] | None


class CancelResult(TypedDict, total=False):
    request_id: str
    status: str


# ---------- Billing ----------
class PricingPage(TypedDict):
    prices: list[dict[str, Any]]
    next_cursor: str | None
    has_more: bool


class CostEstimate(TypedDict):
    estimate_type: str
    total_cost: float | None
    currency: str | None


class UsagePage(TypedDict, total=False):
    time_series: list[dict[str, Any]]
    summary: list[dict[str, Any]]
    next_cursor: str | None
    has_more: bool


class AnalyticsSeries(TypedDict):
    endpoint_id: str | None
    buckets: list[dict[str, Any]]


class AnalyticsPage(TypedDict):
    timeseries: list[AnalyticsSeries]
    next_cursor: str | None
    has_more: bool


# ---------- Storage ----------
class UploadResult(TypedDict):
    url: str
    content_type: str
    size: int
    file_name: str


# ---------- Cost estimate request (tagged union on estimate_type) ----------
class CallQuantity(BaseModel):
    model_config = ConfigDict(extra="forbid")

    call_quantity: PositiveFloat


class UnitQuantity(BaseModel):
    model_config = ConfigDict(extra="forbid")

    unit_quantity: PositiveFloat


class HistoricalPriceEstimate(BaseModel):
    """Estimate from historical per-call API prices."""

    model_config = ConfigDict(extra="forbid")

    estimate_type: Literal["historical_api_price"]
    endpoints: dict[str, CallQuantity] = Field(min_length=1)


class UnitPriceEstimate(BaseModel):
    """Estimate from billing-unit prices (images, video seconds, ...)."""

    model_config = ConfigDict(extra="forbid")

    estimate_type: Literal["unit_price"]
    endpoints: dict[str, UnitQuantity] = Field(min_length=1)


class EstimateRequest(BaseModel):
    request: Annotated[HistoricalPriceEstimate | UnitPriceEstimate, Field(discriminator="estimate_type")]

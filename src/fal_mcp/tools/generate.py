# SPDX-License-Identifier: MIT
"""Generation tools using the fal.ai queue API.

This module contains all queue-related operations:
- Submitting generation jobs (returns immediately with a request_id)
- Checking status and queue position
- Fetching completed results
- Cancelling queued or running jobs

Jobs move IN_QUEUE -> IN_PROGRESS -> COMPLETED on the platform side; these
functions only observe that progression, they never hold job state.
"""

import json
from typing import Any

from ..client import get_client
from ..config import logger
from ..endpoint_id import ByIdentifier, ByUrl, EndpointId, JobHandle, resolve_job_url
from ..errors import HttpError, ValidationError
from ..types import CancelResult, GenerateResult, QueueResult, QueueStatus


def _handle(app_id: str, request_id: str, url: str | None) -> JobHandle:
    EndpointId.parse(app_id)
    if url:
        return ByUrl(url)
    return ByIdentifier(endpoint_id=app_id, request_id=request_id)


async def generate(
    app_id: str,
    input_data: dict[str, Any],
    webhook_url: str | None = None,
) -> GenerateResult:
    """Submit a generation request to the queue.

    The payload envelope follows FAL_PAYLOAD_ENVELOPE: ``flat`` sends
    ``input_data`` as the body, ``wrapped`` sends ``{"input": input_data}``.

    Args:
        app_id: Endpoint identifier, e.g. "fal-ai/flux/dev"
        input_data: Model-specific input parameters
        webhook_url: Optional URL notified on completion

    Returns:
        GenerateResult with request_id, status and the response/status/cancel URLs

    Raises:
        FormatError: If app_id is malformed (before any request)
        ValidationError: If input_data is not an object
        ConfigurationError: If FAL_KEY not set
        HttpError: If the queue rejects the request
    """
    endpoint = EndpointId.parse(app_id)
    if not isinstance(input_data, dict):
        raise ValidationError("input_data must be an object")

    async with get_client() as client:
        client.settings.require_api_key()
        if client.settings.payload_envelope == "wrapped":
            payload: dict[str, Any] = {"input": input_data}
        else:
            payload = dict(input_data)
        if webhook_url:
            payload["webhook_url"] = webhook_url

        data = await client.send_json("POST", f"{client.settings.queue_url}/{endpoint}", payload)
        if not isinstance(data, dict):
            data = {}

    logger.info("Submitted %s to %s (%s)", data.get("request_id"), endpoint, data.get("status"))
    return {
        "request_id": data.get("request_id"),
        "status": data.get("status"),
        "response_url": data.get("response_url"),
        "status_url": data.get("status_url"),
        "cancel_url": data.get("cancel_url"),
        "queue_position": data.get("queue_position"),
    }


async def get_status(
    app_id: str,
    request_id: str,
    url: str | None = None,
    logs: bool = False,
) -> QueueStatus:
    """Poll the status of a queued request.

    Args:
        app_id: Endpoint identifier used at submission
        request_id: Request id returned by generate
        url: Optional status_url from generate; used verbatim when given
        logs: Include model logs in the response

    Raises:
        FormatError: If app_id is malformed (before any request)
        ConfigurationError: If FAL_KEY not set
        HttpError: If the queue request fails
    """
    async with get_client() as client:
        status_url = resolve_job_url(_handle(app_id, request_id, url), "status", client.settings.queue_url)
        data = await client.get(status_url, params={"logs": 1 if logs else None})
        if not isinstance(data, dict):
            data = {}

    return {
        "request_id": data.get("request_id", request_id),
        "status": data.get("status"),
        "queue_position": data.get("queue_position"),
        "response_url": data.get("response_url"),
        "logs": data.get("logs"),
    }


async def get_result(app_id: str, request_id: str, url: str | None = None) -> QueueResult:
    """Fetch the result of a completed request.

    The queue returns the model output directly; an envelope carrying
    ``response``/``logs``/``metrics`` is unpacked when present.

    Raises:
        FormatError: If app_id is malformed (before any request)
        ConfigurationError: If FAL_KEY not set
        HttpError: If the request is not complete or the call fails
    """
    async with get_client() as client:
        result_url = resolve_job_url(_handle(app_id, request_id, url), "result", client.settings.queue_url)
        data = await client.get(result_url)

    if isinstance(data, dict) and "response" in data and "status" in data:
        return {
            "request_id": data.get("request_id", request_id),
            "status": data["status"],
            "result": data["response"],
            "error": data.get("error"),
            "logs": data.get("logs"),
            "metrics": data.get("metrics"),
        }
    return {"request_id": request_id, "status": "COMPLETED", "result": data}


async def cancel_request(app_id: str, request_id: str, url: str | None = None) -> CancelResult:
    """Cancel a queued or running request.

    Cancelling a job that already completed is not an error: a 400 whose body
    reports a ``status`` (e.g. ALREADY_COMPLETED) is returned as the result.

    Raises:
        FormatError: If app_id is malformed (before any request)
        ConfigurationError: If FAL_KEY not set
        HttpError: If the cancel call fails for any other reason
    """
    async with get_client() as client:
        cancel_url = resolve_job_url(_handle(app_id, request_id, url), "cancel", client.settings.queue_url)
        try:
            data = await client.send_json(client.settings.cancel_method, cancel_url)
        except HttpError as e:
            reported = _reported_status(e)
            if reported is None:
                raise
            logger.info("Cancel %s: platform reported %s", request_id, reported)
            return {"request_id": request_id, "status": reported}

    if not isinstance(data, dict):
        data = {}
    logger.info("Cancel %s: %s", request_id, data.get("status"))
    return {**data, "request_id": data.get("request_id", request_id), "status": data.get("status")}


def _reported_status(error: HttpError) -> str | None:
    if error.status != 400:
        return None
    try:
        body = json.loads(error.body)
    except ValueError:
        return None
    status = body.get("status") if isinstance(body, dict) else None
    return status if isinstance(status, str) else None

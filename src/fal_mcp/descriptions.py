# SPDX-License-Identifier: MIT
"""Tool descriptions for MCP server. Optimized for token efficiency."""

# ==================== MODEL DISCOVERY TOOL DESCRIPTIONS ====================

MODELS = """List models in the fal.ai gallery. Cursor-paginated: pass next_cursor back as cursor while has_more is true.

Params: category (e.g. text-to-image, image-to-video), cursor, limit (max 100), status (active|deprecated), expand (["openapi-3.0"] embeds full schema)

Example: models(category="text-to-image", limit=20)"""

SEARCH = """Search models by free text across id, name, description and category. Same pagination as models.

Params: query (required), cursor, limit (default 50, max 100), category, status (active|deprecated), expand

Example: search("upscale", category="image-to-image")"""

FIND = """Look up specific models by endpoint id (1-50 ids).

Params: endpoint_ids (required), expand (["openapi-3.0"])

Example: find(["fal-ai/flux/dev", "fal-ai/flux-pro"])"""

SCHEMA = """Get the input/output schema of one model. Use before generate to learn model-specific input_data fields.

Params: endpoint_id (required)

Example: schema("fal-ai/flux/dev")"""


# ==================== GENERATION TOOL DESCRIPTIONS ====================

GENERATE = """Submit a generation job. Returns request_id immediately (async). Poll status() until COMPLETED, then result().

Params: app_id (e.g. fal-ai/flux/dev), input_data (model-specific, see schema), webhook_url (optional)

Returns: request_id, status (IN_QUEUE|IN_PROGRESS|COMPLETED), response_url, status_url, cancel_url, queue_position

Example: generate("fal-ai/flux/dev", {"prompt": "a red fox in snow"})"""

RESULT = """Get the output of a completed job. Only call after status='COMPLETED'.

Params: app_id, request_id, url (optional response_url from generate)"""

STATUS = """Poll job status. Call repeatedly until status='COMPLETED'.

Params: app_id, request_id, logs (include model logs), url (optional status_url from generate)

Returns: status (IN_QUEUE|IN_PROGRESS|COMPLETED), queue_position, logs"""

CANCEL = """Cancel a queued or running job. Cancelling a finished job is not an error; the platform status is returned.

Params: app_id, request_id, url (optional cancel_url from generate)"""


# ==================== STORAGE TOOL DESCRIPTIONS ====================

UPLOAD = """Upload a local file to the fal.ai CDN. Returns a URL usable in input_data (image_url, audio_url, ...).

Params: file_path (required), content_type (auto-detected from extension if omitted)

Example: upload("/tmp/photo.png")"""


# ==================== BILLING TOOL DESCRIPTIONS ====================

PRICING = """Get unit pricing for 1-50 endpoints. Requires FAL_KEY. Most models bill per output (image, video second).

Params: endpoint_ids (required), cursor"""

ESTIMATE_COST = """Estimate cost for planned usage. Requires FAL_KEY.

Params: estimate_type (historical_api_price|unit_price), endpoints
- historical_api_price: {"fal-ai/flux/dev": {"call_quantity": 100}}
- unit_price: {"fal-ai/flux/dev": {"unit_quantity": 50}}

Returns: estimate_type, total_cost, currency"""

USAGE = """Get billing usage for 1-50 endpoints. Requires FAL_KEY. Defaults to the last 24 hours.

Params: endpoint_ids (required), start/end (ISO8601), timezone (default UTC), timeframe (minute|hour|day|week|month), bound_to_timeframe (default true), expand (time_series|summary|auth_method, default ["time_series"]), cursor, limit"""

ANALYTICS = """Get request counts, latency and success/error rates per time bucket for 1-50 endpoints. Requires FAL_KEY. Defaults to the last 24 hours.

Params: endpoint_ids (required), start/end (ISO8601), timezone (default UTC), timeframe (hour|day|week|month), bound_to_timeframe (default true), metric (total_requests|successful_requests|failed_requests|avg_latency_ms), cursor, limit

Returns: timeseries [{endpoint_id, buckets: [{start, end, metrics...}]}], next_cursor, has_more"""

# SPDX-License-Identifier: MIT
"""Integration tests for model discovery tools against a stubbed catalog."""

import pytest

from fal_mcp.config import Settings
from fal_mcp.errors import NotFoundError, SchemaError, ValidationError
from fal_mcp.tools.models import find_models, get_model_schema, list_models, search_models

CATALOG_URL = "https://api.fal.ai/v1/models"


# ==================== list ====================


@pytest.mark.integration
async def test_list_projects_catalog_rows(stub_api, catalog_row):
    row = catalog_row(
        "fal-ai/flux/dev",
        display_name="FLUX.1 [dev]",
        tags=["fast"],
        thumbnail_url="https://cdn.test/flux.png",
        model_url="https://fal.run/fal-ai/flux/dev",
    )
    stub_api.reply(json={"models": [row], "next_cursor": None, "has_more": False})

    result = await list_models(category="text-to-image")

    assert result["has_more"] is False
    assert result["next_cursor"] is None
    entry = result["models"][0]
    assert entry["id"] == "fal-ai/flux/dev"
    assert entry["name"] == "FLUX.1 [dev]"
    assert entry["category"] == "text-to-image"
    assert entry["status"] == "active"
    assert entry["tags"] == ["fast"]
    assert entry["thumbnail_url"] == "https://cdn.test/flux.png"
    assert entry["model_url"] == "https://fal.run/fal-ai/flux/dev"

    sent = stub_api.last
    assert sent.method == "GET"
    assert str(sent.url).startswith(CATALOG_URL)
    assert sent.url.params["category"] == "text-to-image"
    assert sent.url.params["limit"] == "100"


@pytest.mark.integration
async def test_list_name_falls_back_to_id(stub_api):
    stub_api.reply(json={"models": [{"endpoint_id": "fal-ai/bare", "metadata": {}}]})

    result = await list_models()

    assert result["models"][0]["name"] == "fal-ai/bare"


@pytest.mark.integration
async def test_list_projects_legacy_gallery_rows(stub_api):
    stub_api.reply(
        json={"items": [{"id": "fal-ai/fast-sdxl", "title": "Fast SDXL", "shortDescription": "Quick", "category": "t2i"}]}
    )

    result = await list_models()

    entry = result["models"][0]
    assert entry["id"] == "fal-ai/fast-sdxl"
    assert entry["name"] == "Fast SDXL"
    assert entry["description"] == "Quick"


@pytest.mark.integration
async def test_list_forwards_cursor_verbatim(stub_api, catalog_row):
    stub_api.reply(json={"models": [catalog_row("fal-ai/a")], "next_cursor": "eyJwIjoyfQ==", "has_more": True})
    stub_api.reply(json={"models": [catalog_row("fal-ai/b")], "next_cursor": None, "has_more": False})

    first = await list_models(limit=1)
    assert first["has_more"] is True

    second = await list_models(cursor=first["next_cursor"], limit=1)

    assert stub_api.requests[0].url.params.get("cursor") is None
    assert stub_api.requests[1].url.params["cursor"] == "eyJwIjoyfQ=="
    assert second["models"][0]["id"] == "fal-ai/b"
    assert second["has_more"] is False


@pytest.mark.integration
async def test_list_clamps_limit_and_repeats_expand(stub_api):
    await list_models(limit=500, status="deprecated", expand=["openapi-3.0"])

    params = stub_api.last.url.params
    assert params["limit"] == "100"
    assert params["status"] == "deprecated"
    assert params.get_list("expand") == ["openapi-3.0"]


@pytest.mark.integration
async def test_list_rejects_non_positive_limit(stub_api):
    with pytest.raises(ValidationError, match="limit"):
        await list_models(limit=0)
    assert stub_api.requests == []


@pytest.mark.integration
async def test_list_without_key_is_unauthenticated(stub_api, catalog_row):
    stub_api.settings = Settings()
    stub_api.reply(json={"models": [catalog_row("fal-ai/flux/dev")]})

    result = await list_models()

    assert len(result["models"]) == 1
    assert "authorization" not in stub_api.last.headers


@pytest.mark.integration
async def test_list_with_key_is_authenticated(stub_api):
    await list_models()

    assert stub_api.last.headers["authorization"] == "Key test-key"


# ==================== search ====================


@pytest.mark.integration
async def test_search_filters_locally(stub_api, catalog_row):
    stub_api.reply(
        json={
            "models": [
                catalog_row("fal-ai/flux/dev", display_name="FLUX.1 [dev]"),
                catalog_row("fal-ai/whisper", display_name="Whisper", category="speech-to-text"),
                catalog_row("fal-ai/other", display_name="Other", description="Faster than flux"),
            ],
            "next_cursor": "next",
            "has_more": True,
        }
    )

    result = await search_models("FLUX")

    ids = [m["id"] for m in result["models"]]
    assert ids == ["fal-ai/flux/dev", "fal-ai/other"]
    assert result["query"] == "FLUX"
    assert result["next_cursor"] == "next"
    assert "q" not in stub_api.last.url.params
    assert stub_api.last.url.params["limit"] == "50"


@pytest.mark.integration
async def test_search_matches_category(stub_api, catalog_row):
    stub_api.reply(json={"models": [catalog_row("fal-ai/whisper", category="speech-to-text")]})

    result = await search_models("speech")

    assert [m["id"] for m in result["models"]] == ["fal-ai/whisper"]


@pytest.mark.integration
async def test_search_server_side_when_enabled(stub_api, catalog_row):
    stub_api.settings = Settings(api_key="test-key", server_side_search=True)
    stub_api.reply(json={"models": [catalog_row("fal-ai/unrelated")]})

    result = await search_models("flux")

    assert stub_api.last.url.params["q"] == "flux"
    assert [m["id"] for m in result["models"]] == ["fal-ai/unrelated"]


@pytest.mark.integration
async def test_search_blank_query_rejected(stub_api):
    with pytest.raises(ValidationError, match="query"):
        await search_models("   ")
    assert stub_api.requests == []


# ==================== find ====================


@pytest.mark.integration
@pytest.mark.parametrize("count", [0, 51])
async def test_find_rejects_out_of_range(stub_api, count):
    with pytest.raises(ValidationError):
        await find_models([f"fal-ai/m{i}" for i in range(count)])
    assert stub_api.requests == []


@pytest.mark.integration
@pytest.mark.parametrize("count", [1, 50])
async def test_find_accepts_bounds(stub_api, catalog_row, count):
    ids = [f"fal-ai/m{i}" for i in range(count)]
    stub_api.reply(json={"models": [catalog_row(i) for i in ids], "has_more": False})

    result = await find_models(ids)

    assert len(result["models"]) == count
    assert stub_api.last.url.params.get_list("endpoint_id") == ids


# ==================== schema ====================


OPENAPI = {
    "openapi": "3.0.4",
    "paths": {
        "/fal-ai/flux/dev": {
            "post": {
                "requestBody": {"content": {"application/json": {"schema": {"$ref": "#/components/schemas/FluxInput"}}}}
            }
        },
        "/fal-ai/flux/dev/requests/{request_id}": {
            "get": {
                "responses": {
                    "200": {"content": {"application/json": {"schema": {"$ref": "#/components/schemas/FluxOutput"}}}}
                }
            }
        },
    },
    "components": {
        "schemas": {
            "FluxInput": {"type": "object", "required": ["prompt"], "properties": {"prompt": {"type": "string"}}},
            "FluxOutput": {"type": "object", "properties": {"images": {"type": "array"}}},
        }
    },
}


@pytest.mark.integration
async def test_schema_extracts_input_and_output(stub_api):
    stub_api.reply(json={"models": [{"endpoint_id": "fal-ai/flux/dev", "metadata": {}, "openapi": OPENAPI}]})

    result = await get_model_schema("fal-ai/flux/dev")

    assert result["input_schema"]["required"] == ["prompt"]
    assert "images" in result["output_schema"]["properties"]
    params = stub_api.last.url.params
    assert params.get_list("endpoint_id") == ["fal-ai/flux/dev"]
    assert params.get_list("expand") == ["openapi-3.0"]


@pytest.mark.integration
async def test_schema_not_found(stub_api):
    stub_api.reply(json={"models": []})

    with pytest.raises(NotFoundError, match="fal-ai/missing"):
        await get_model_schema("fal-ai/missing")


@pytest.mark.integration
async def test_schema_embedded_error(stub_api):
    embedded = {"error": {"code": "schema_unavailable", "message": "Schema generation failed"}}
    stub_api.reply(json={"models": [{"endpoint_id": "fal-ai/broken", "metadata": {}, "openapi": embedded}]})

    with pytest.raises(SchemaError, match="Schema generation failed"):
        await get_model_schema("fal-ai/broken")


@pytest.mark.integration
async def test_schema_empty_is_not_an_error(stub_api):
    stub_api.reply(json={"models": [{"endpoint_id": "fal-ai/empty", "metadata": {}, "openapi": {}}]})

    result = await get_model_schema("fal-ai/empty")

    assert result["input_schema"] is None
    assert result["output_schema"] is None

"""OpenAPI document and docs page for the HTTP API."""

from __future__ import annotations

from functools import lru_cache
from typing import Any

from pydantic.json_schema import models_json_schema

from audiolab import __version__
from audiolab.transport.schemas import (
    ErrorResponse,
    ScriptCreateRequest,
    ScriptCreateResponse,
    ScriptListResponse,
)

TITLE = "audiolab-api"
DESCRIPTION = "API for generating audio scripts from articles."
_REF_TEMPLATE = "#/components/schemas/{model}"

DOCS_HTML = """<!DOCTYPE html>
<html>
<head>
  <title>{title}</title>
  <link rel="stylesheet" href="https://cdn.jsdelivr.net/npm/swagger-ui-dist@5/swagger-ui.css">
</head>
<body>
  <div id="swagger-ui"></div>
  <script src="https://cdn.jsdelivr.net/npm/swagger-ui-dist@5/swagger-ui-bundle.js"></script>
  <script>SwaggerUIBundle({{url: "{schema_url}", dom_id: "#swagger-ui"}});</script>
</body>
</html>
"""


def _json_body(ref: dict[str, Any], description: str) -> dict[str, Any]:
    return {"description": description, "content": {"application/json": {"schema": ref}}}


@lru_cache(maxsize=1)
def build_openapi() -> dict[str, Any]:
    refs, definitions = models_json_schema(
        [
            (ScriptCreateRequest, "validation"),
            (ScriptCreateResponse, "serialization"),
            (ScriptListResponse, "serialization"),
            (ErrorResponse, "serialization"),
        ],
        ref_template=_REF_TEMPLATE,
    )
    error = refs[(ErrorResponse, "serialization")]

    create = {
        "tags": ["Scripts"],
        "summary": "Create a new Script from a PDF URL",
        "operationId": "createScript",
        "requestBody": {
            "required": True,
            "content": {
                "application/json": {"schema": refs[(ScriptCreateRequest, "validation")]}
            },
        },
        "responses": {
            "201": _json_body(
                refs[(ScriptCreateResponse, "serialization")], "Returns the created script"
            ),
            "400": _json_body(
                error, "Bad Request - e.g., invalid URL or PDF processing failed"
            ),
            "500": _json_body(
                error, "Internal Server Error - e.g., AI model or blob storage failed"
            ),
            "503": _json_body(error, "Script generation is not configured"),
        },
    }
    listing = {
        "tags": ["Scripts"],
        "summary": "List all Scripts",
        "operationId": "listScripts",
        "responses": {
            "200": _json_body(
                refs[(ScriptListResponse, "serialization")], "Returns a list of scripts"
            ),
            "500": _json_body(error, "Internal Server Error"),
        },
    }
    health = {
        "summary": "Service health",
        "operationId": "health",
        "responses": {"200": {"description": "Service is up"}},
    }

    return {
        "openapi": "3.1.0",
        "info": {"title": TITLE, "version": __version__, "description": DESCRIPTION},
        "paths": {
            "/scripts": {"get": listing, "post": create},
            "/health": {"get": health},
        },
        "components": {"schemas": definitions.get("$defs", {})},
    }


def docs_page(schema_url: str) -> str:
    return DOCS_HTML.format(title=TITLE, schema_url=schema_url)

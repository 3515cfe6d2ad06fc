"""Starlette HTTP server for the scripts API."""

from __future__ import annotations

import asyncio
import json
import logging

from pydantic import ValidationError
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import HTMLResponse, JSONResponse, Response
from starlette.routing import Route

from audiolab import __version__
from audiolab.app import AppContext, get_app_context
from audiolab.pdf import PdfExtractionError, extract_text_from_url
from audiolab.storage.coordinator import BlobWriteFailed, MetadataWriteFailed, script_metadata
from audiolab.storage.keys import build_storage_key
from audiolab.transport.openapi import build_openapi, docs_page
from audiolab.transport.schemas import (
    CODE_BLOB_WRITE,
    CODE_GENERATION_DISABLED,
    CODE_INTERNAL,
    CODE_METADATA_WRITE,
    CODE_PDF,
    CODE_VALIDATION,
    ApiError,
    ScriptCreateRequest,
    error_body,
    validation_error,
)

logger = logging.getLogger(__name__)


def _context(request: Request) -> AppContext:
    context = request.app.state.context
    if context is None:
        context = get_app_context()
        request.app.state.context = context
    return context


async def _read_json(request: Request) -> object:
    try:
        return await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ApiError(f"Request body is not valid JSON: {exc}", 400, CODE_VALIDATION) from exc


async def create_script(request: Request) -> Response:
    context = _context(request)
    body = await _read_json(request)
    try:
        payload = ScriptCreateRequest.model_validate(body)
    except ValidationError as exc:
        raise validation_error(exc) from exc

    if context.generator is None:
        raise ApiError("Script generation is not configured.", 503, CODE_GENERATION_DISABLED)

    pdf_settings = context.settings.pdf
    try:
        article_text = await extract_text_from_url(
            str(payload.url),
            timeout=pdf_settings.fetch_timeout_seconds,
            max_bytes=pdf_settings.max_bytes,
        )
    except PdfExtractionError as exc:
        raise ApiError(str(exc), 400, CODE_PDF) from exc

    script = await context.generator.generate(article_text, payload.personas)
    if script.truncated:
        logger.warning(
            "Script %r stopped after %d of the planned turns",
            payload.name,
            script.turns_completed,
        )

    storage_key = build_storage_key(payload.name)
    try:
        record = await context.committer.commit_async(
            script.to_bytes(),
            storage_key,
            script_metadata(payload.name, payload.personas),
        )
    except BlobWriteFailed as exc:
        raise ApiError("Failed to store generated script.", 500, CODE_BLOB_WRITE) from exc
    except MetadataWriteFailed as exc:
        if exc.orphaned:
            logger.error("Blob %s is orphaned and needs manual cleanup", exc.storage_key)
        raise ApiError(
            "Failed to save script metadata to the database.", 500, CODE_METADATA_WRITE
        ) from exc

    headers = {"X-Script-Turns": str(script.turns_completed)}
    if script.truncated:
        headers["X-Script-Truncated"] = "true"
    return JSONResponse(
        {"success": True, "result": record.to_dict()},
        status_code=201,
        headers=headers,
    )


async def list_scripts(request: Request) -> Response:
    context = _context(request)
    records = await asyncio.to_thread(context.records.list_scripts)
    return JSONResponse({"success": True, "result": [r.to_dict() for r in records]})


async def health_handler(request: Request) -> Response:
    return JSONResponse({"status": "healthy", "version": __version__})


async def openapi_handler(request: Request) -> Response:
    return JSONResponse(build_openapi())


async def docs_handler(request: Request) -> Response:
    return HTMLResponse(docs_page(str(request.url_for("openapi"))))


async def _api_error_handler(request: Request, exc: ApiError) -> Response:
    if exc.status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(error_body(exc.build_response()), status_code=exc.status)


async def _unhandled_error_handler(request: Request, exc: Exception) -> Response:
    logger.exception("Global error handler caught: %s", exc)
    return JSONResponse(
        error_body([{"code": CODE_INTERNAL, "message": "Internal Server Error"}]),
        status_code=500,
    )


def create_http_app(context: AppContext | None = None) -> Starlette:
    """Create the HTTP application.

    Without an explicit ``context`` the cached application context is built
    on the first request.
    """
    routes = [
        Route("/scripts", list_scripts, methods=["GET"]),
        Route("/scripts", create_script, methods=["POST"]),
        Route("/health", health_handler, methods=["GET"]),
        Route("/openapi.json", openapi_handler, methods=["GET"], name="openapi"),
        Route("/", docs_handler, methods=["GET"]),
    ]
    app = Starlette(
        routes=routes,
        exception_handlers={
            ApiError: _api_error_handler,
            Exception: _unhandled_error_handler,
        },
    )
    app.state.context = context
    return app

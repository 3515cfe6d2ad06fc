"""Download a PDF and extract its text."""

from __future__ import annotations

import asyncio
import io
import logging

import httpx
from pypdf import PdfReader
from pypdf.errors import PyPdfError

logger = logging.getLogger(__name__)


class PdfExtractionError(Exception):
    """Raised when a PDF cannot be fetched or parsed."""


def _too_large(max_bytes: int) -> PdfExtractionError:
    return PdfExtractionError(f"PDF exceeds size limit of {max_bytes} bytes")


async def fetch_pdf(url: str, timeout: float = 30.0, max_bytes: int | None = None) -> bytes:
    """Stream the document body, stopping as soon as it passes ``max_bytes``."""
    data = bytearray()
    try:
        async with httpx.AsyncClient(follow_redirects=True) as client:
            async with client.stream("GET", url, timeout=timeout) as resp:
                resp.raise_for_status()
                declared = resp.headers.get("content-length", "")
                if max_bytes is not None and declared.isdigit() and int(declared) > max_bytes:
                    raise _too_large(max_bytes)
                async for chunk in resp.aiter_bytes():
                    data += chunk
                    if max_bytes is not None and len(data) > max_bytes:
                        raise _too_large(max_bytes)
    except httpx.HTTPStatusError as exc:
        raise PdfExtractionError(
            f"Failed to fetch PDF: {exc.response.status_code} {exc.response.reason_phrase}"
        ) from exc
    except httpx.HTTPError as exc:
        raise PdfExtractionError(f"Failed to fetch PDF: {exc}") from exc
    return bytes(data)


def extract_text(data: bytes) -> str:
    """Merge the text of every page into one string."""
    try:
        reader = PdfReader(io.BytesIO(data))
        pages = [page.extract_text() or "" for page in reader.pages]
    except (PyPdfError, ValueError) as exc:
        raise PdfExtractionError(f"Failed to parse PDF: {exc}") from exc
    return "\n".join(pages).strip()


async def extract_text_from_url(
    url: str,
    timeout: float = 30.0,
    max_bytes: int | None = None,
) -> str:
    try:
        data = await fetch_pdf(url, timeout=timeout, max_bytes=max_bytes)
        text = await asyncio.to_thread(extract_text, data)
    except PdfExtractionError as exc:
        logger.error("Error extracting text from PDF %s: %s", url, exc)
        raise PdfExtractionError(f"Failed to process PDF from url: {url}. {exc}") from exc

    if not text:
        raise PdfExtractionError("Could not extract text from the provided PDF.")
    logger.info("Extracted %d characters from %s", len(text), url)
    return text

"""Text generation via the Cloudflare Workers AI REST API."""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "@cf/mistral/mistral-7b-instruct-v0.1"


class LLMError(Exception):
    """Raised when the model endpoint fails or returns an error payload."""


class TextGenerator(Protocol):
    async def generate(self, prompt: str, max_tokens: int) -> str: ...


class WorkersAIClient:
    def __init__(
        self,
        account_id: str,
        api_token: str,
        model: str = DEFAULT_MODEL,
        base_url: str = "https://api.cloudflare.com/client/v4",
        timeout: float = 60.0,
    ) -> None:
        self._account_id = account_id
        self._api_token = api_token
        self.model = model
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    @property
    def endpoint(self) -> str:
        return f"{self._base_url}/accounts/{self._account_id}/ai/run/{self.model}"

    async def generate(self, prompt: str, max_tokens: int) -> str:
        payload = {"prompt": prompt, "stream": False, "max_tokens": max_tokens}
        headers = {"Authorization": f"Bearer {self._api_token}"}

        async with httpx.AsyncClient() as client:
            try:
                resp = await client.post(
                    self.endpoint, json=payload, headers=headers, timeout=self._timeout
                )
                resp.raise_for_status()
                body: dict[str, Any] = resp.json()
            except httpx.HTTPError as exc:
                raise LLMError(f"Workers AI request failed: {exc}") from exc
            except ValueError as exc:
                raise LLMError(f"Workers AI returned invalid JSON: {exc}") from exc

        if body.get("success") is False:
            raise LLMError(f"Workers AI error: {body.get('errors')}")

        result = body.get("result") or {}
        logger.debug("Workers AI response: %s", result)
        return str(result.get("response") or "")

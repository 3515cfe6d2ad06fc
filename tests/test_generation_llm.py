from __future__ import annotations

import asyncio
from unittest.mock import patch

import httpx
import pytest

from audiolab.generation.llm import DEFAULT_MODEL, LLMError, WorkersAIClient


def _client() -> WorkersAIClient:
    return WorkersAIClient(
        account_id="acct",
        api_token="secret-token",
        base_url="https://api.example.com/client/v4/",
        timeout=12.0,
    )


def _response(status_code: int = 200, json_body: object | None = None, text: str = ""):
    request = httpx.Request("POST", "https://api.example.com")
    if json_body is not None:
        return httpx.Response(status_code, json=json_body, request=request)
    return httpx.Response(status_code, text=text, request=request)


def test_endpoint_includes_account_and_model() -> None:
    assert _client().endpoint == (
        f"https://api.example.com/client/v4/accounts/acct/ai/run/{DEFAULT_MODEL}"
    )


def test_generate_returns_response_text() -> None:
    body = {"success": True, "result": {"response": "<voice name=\"Ana\">Hi</voice>"}}
    with patch("httpx.AsyncClient.post", return_value=_response(json_body=body)) as mock_post:
        text = asyncio.run(_client().generate("prompt", 256))

    assert text == '<voice name="Ana">Hi</voice>'
    kwargs = mock_post.call_args.kwargs
    assert kwargs["json"] == {"prompt": "prompt", "stream": False, "max_tokens": 256}
    assert kwargs["headers"]["Authorization"] == "Bearer secret-token"
    assert kwargs["timeout"] == 12.0


def test_generate_missing_response_is_empty() -> None:
    with patch("httpx.AsyncClient.post", return_value=_response(json_body={"result": {}})):
        assert asyncio.run(_client().generate("prompt", 10)) == ""


def test_generate_http_error() -> None:
    with patch("httpx.AsyncClient.post", return_value=_response(status_code=500, text="bad")):
        with pytest.raises(LLMError, match="request failed"):
            asyncio.run(_client().generate("prompt", 10))


def test_generate_invalid_json() -> None:
    with patch("httpx.AsyncClient.post", return_value=_response(text="not json")):
        with pytest.raises(LLMError, match="invalid JSON"):
            asyncio.run(_client().generate("prompt", 10))


def test_generate_unsuccessful_payload() -> None:
    body = {"success": False, "errors": [{"code": 5007, "message": "No such model"}]}
    with patch("httpx.AsyncClient.post", return_value=_response(json_body=body)):
        with pytest.raises(LLMError, match="No such model"):
            asyncio.run(_client().generate("prompt", 10))

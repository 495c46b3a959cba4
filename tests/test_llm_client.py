"""
Tests for the provider clients, with the network replaced by fakes.
"""

import asyncio
from types import SimpleNamespace

import httpx
import pytest
from tenacity import wait_none

from app.core import config
from app.utils import llm_client
from app.utils.llm_client import ProviderError, generate_with_deepseek, generate_with_gemini, is_retryable

GEMINI_REPLY = {
    "candidates": [{"content": {"parts": [{"text": "gemini prompt"}]}}],
    "usageMetadata": {"promptTokenCount": 11, "candidatesTokenCount": 22},
}


def fake_openai_client(reply="deepseek prompt", error=None, calls=None):
    async def create(**kwargs):
        if calls is not None:
            calls.append(kwargs)
        if error:
            raise error
        return SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=reply))],
            usage=SimpleNamespace(prompt_tokens=12, completion_tokens=34),
        )

    return SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))


@pytest.fixture
def fresh_deepseek_client():
    llm_client.get_deepseek_client.cache_clear()
    yield
    llm_client.get_deepseek_client.cache_clear()


@pytest.fixture
def gemini_transport(monkeypatch):
    """Route Gemini HTTP calls through `handler` and record every request."""
    real_client = httpx.AsyncClient
    monkeypatch.setattr(llm_client._post_json.retry, "wait", wait_none())

    def _install(handler):
        requests = []

        def record(request):
            requests.append(request)
            return handler(request)

        monkeypatch.setattr(
            llm_client.httpx,
            "AsyncClient",
            lambda **kwargs: real_client(transport=httpx.MockTransport(record)),
        )
        return requests

    return _install


class TestDeepSeek:

    def test_client_targets_deepseek(self, fresh_deepseek_client):
        client = llm_client.get_deepseek_client()
        assert str(client.base_url).startswith(config.DEEPSEEK_API_URL)
        assert client.max_retries == 1

    def test_missing_key(self, fresh_deepseek_client, monkeypatch):
        monkeypatch.setattr(config, "DEEPSEEK_API_KEY", "")
        with pytest.raises(ProviderError):
            asyncio.run(generate_with_deepseek("system", "task"))

    def test_chat_completion(self, monkeypatch):
        calls = []
        monkeypatch.setattr(llm_client, "get_deepseek_client", lambda: fake_openai_client(calls=calls))

        completion = asyncio.run(generate_with_deepseek("system", "task"))

        assert completion.provider == "deepseek"
        assert completion.text == "deepseek prompt"
        assert (completion.input_tokens, completion.output_tokens) == (12, 34)
        assert calls[0]["model"] == config.DEEPSEEK_MODEL
        assert calls[0]["messages"][0] == {"role": "system", "content": "system"}
        assert calls[0]["max_tokens"] == config.GENERATION_MAX_TOKENS

    def test_sdk_error_becomes_provider_error(self, monkeypatch):
        client = fake_openai_client(error=RuntimeError("connection reset"))
        monkeypatch.setattr(llm_client, "get_deepseek_client", lambda: client)

        with pytest.raises(ProviderError) as exc:
            asyncio.run(generate_with_deepseek("system", "task"))
        assert exc.value.provider == "deepseek"

    def test_empty_reply(self, monkeypatch):
        monkeypatch.setattr(llm_client, "get_deepseek_client", lambda: fake_openai_client(reply="  "))
        with pytest.raises(ProviderError):
            asyncio.run(generate_with_deepseek("system", "task"))


class TestRankingCompletion:

    def test_json_mode(self, monkeypatch):
        calls = []
        monkeypatch.setattr(llm_client, "get_openai_client", lambda: fake_openai_client('{"winner": "A"}', calls=calls))

        completion = asyncio.run(llm_client.run_json_completion("judge", "candidates"))

        assert completion.provider == "openai"
        assert completion.text == '{"winner": "A"}'
        assert calls[0]["response_format"] == {"type": "json_object"}


class TestGeminiRetry:

    def test_server_error_is_retried(self, gemini_transport):
        replies = iter([httpx.Response(503), httpx.Response(200, json=GEMINI_REPLY)])
        requests = gemini_transport(lambda request: next(replies))

        completion = asyncio.run(generate_with_gemini("system", "task"))

        assert completion.text == "gemini prompt"
        assert completion.input_tokens == 11
        assert len(requests) == 2

    def test_client_error_is_not_retried(self, gemini_transport):
        requests = gemini_transport(lambda request: httpx.Response(401, json={"error": "bad key"}))

        with pytest.raises(ProviderError):
            asyncio.run(generate_with_gemini("system", "task"))
        assert len(requests) == 1

    def test_transport_error_is_retried_once(self, gemini_transport):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        requests = gemini_transport(refuse)

        with pytest.raises(ProviderError):
            asyncio.run(generate_with_gemini("system", "task"))
        assert len(requests) == 2


class TestIsRetryable:
    request = httpx.Request("POST", "https://example.test")

    def status_error(self, code):
        response = httpx.Response(code, request=self.request)
        return httpx.HTTPStatusError("failed", request=self.request, response=response)

    def test_status_codes(self):
        assert is_retryable(self.status_error(500))
        assert is_retryable(self.status_error(503))
        assert not is_retryable(self.status_error(400))
        assert not is_retryable(self.status_error(401))
        assert not is_retryable(self.status_error(429))

    def test_transport_errors(self):
        assert is_retryable(httpx.ReadTimeout("slow", request=self.request))
        assert not is_retryable(ValueError("not http"))

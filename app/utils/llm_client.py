import logging
from dataclasses import dataclass
from functools import lru_cache

import httpx
from anthropic import AsyncAnthropic
from openai import AsyncOpenAI
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from app.core import config

logger = logging.getLogger(__name__)


class ProviderError(Exception):
    """A single upstream model call failed."""

    def __init__(self, provider: str, message: str):
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.message = message


@dataclass
class Completion:
    provider: str
    model: str
    text: str
    input_tokens: int = 0
    output_tokens: int = 0


# --- Clients (created on first use so missing keys only fail the provider that needs them) ---
@lru_cache(maxsize=1)
def get_openai_client() -> AsyncOpenAI:
    if not config.OPENAI_API_KEY:
        raise ProviderError("openai", "OPENAI_API_KEY is not set")
    return AsyncOpenAI(api_key=config.OPENAI_API_KEY, timeout=config.PROVIDER_TIMEOUT_SECONDS)


@lru_cache(maxsize=1)
def get_deepseek_client() -> AsyncOpenAI:
    if not config.DEEPSEEK_API_KEY:
        raise ProviderError("deepseek", "DEEPSEEK_API_KEY is not set")
    return AsyncOpenAI(
        api_key=config.DEEPSEEK_API_KEY,
        base_url=config.DEEPSEEK_API_URL,
        timeout=config.PROVIDER_TIMEOUT_SECONDS,
        max_retries=1,
    )


@lru_cache(maxsize=1)
def get_anthropic_client() -> AsyncAnthropic:
    if not config.CLAUDE_API_KEY:
        raise ProviderError("claude", "CLAUDE_API_KEY is not set")
    return AsyncAnthropic(api_key=config.CLAUDE_API_KEY, timeout=config.PROVIDER_TIMEOUT_SECONDS)


def is_retryable(exc: BaseException) -> bool:
    """Retry transport errors and 5xx responses only."""
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500
    return isinstance(exc, httpx.TransportError)


# --- Raw HTTP calls, retried once on transport errors and 5xx ---
@retry(
    stop=stop_after_attempt(2),
    wait=wait_exponential(multiplier=1, max=8),
    retry=retry_if_exception(is_retryable),
    reraise=True,
)
async def _post_json(url: str, headers: dict, payload: dict) -> dict:
    async with httpx.AsyncClient() as client:
        res = await client.post(url, headers=headers, json=payload, timeout=config.PROVIDER_TIMEOUT_SECONDS)
        res.raise_for_status()
        return res.json()


# --- Gemini ---
async def generate_with_gemini(system_prompt: str, user_message: str, model: str | None = None) -> Completion:
    model = model or config.GEMINI_MODEL
    if not config.GEMINI_API_KEY:
        raise ProviderError("gemini", "GEMINI_API_KEY is not set")

    try:
        data = await _post_json(
            f"{config.GEMINI_API_URL}/{model}:generateContent",
            headers={"x-goog-api-key": config.GEMINI_API_KEY, "Content-Type": "application/json"},
            payload={
                "systemInstruction": {"parts": [{"text": system_prompt}]},
                "contents": [{"role": "user", "parts": [{"text": user_message}]}],
                "generationConfig": {"maxOutputTokens": config.GENERATION_MAX_TOKENS},
            },
        )
    except httpx.HTTPError as e:
        raise ProviderError("gemini", str(e)) from e

    candidates = data.get("candidates") or []
    parts = candidates[0].get("content", {}).get("parts", []) if candidates else []
    text = "".join(part.get("text", "") for part in parts).strip()
    if not text:
        raise ProviderError("gemini", "empty response")

    usage = data.get("usageMetadata") or {}
    return Completion(
        provider="gemini",
        model=model,
        text=text,
        input_tokens=int(usage.get("promptTokenCount", 0)),
        output_tokens=int(usage.get("candidatesTokenCount", 0)),
    )


# --- OpenAI-compatible chat completions (DeepSeek and the OpenAI ranking model) ---
async def _chat_completion(client: AsyncOpenAI, provider: str, model: str, messages: list[dict], **options) -> Completion:
    try:
        response = await client.chat.completions.create(model=model, messages=messages, **options)
    except ProviderError:
        raise
    except Exception as e:
        raise ProviderError(provider, str(e)) from e

    content = (response.choices[0].message.content or "").strip() if response.choices else ""
    usage = response.usage
    return Completion(
        provider=provider,
        model=model,
        text=content,
        input_tokens=usage.prompt_tokens if usage else 0,
        output_tokens=usage.completion_tokens if usage else 0,
    )


# --- DeepSeek ---
async def generate_with_deepseek(system_prompt: str, user_message: str, model: str | None = None) -> Completion:
    completion = await _chat_completion(
        get_deepseek_client(),
        "deepseek",
        model or config.DEEPSEEK_MODEL,
        [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_message},
        ],
        max_tokens=config.GENERATION_MAX_TOKENS,
    )
    if not completion.text:
        raise ProviderError("deepseek", "empty response")
    return completion


# --- Claude ---
async def chat_with_claude(
    system_prompt: str,
    messages: list[dict],
    model: str | None = None,
    max_tokens: int | None = None,
) -> Completion:
    model = model or config.CLAUDE_MODEL
    try:
        response = await get_anthropic_client().messages.create(
            model=model,
            max_tokens=max_tokens or config.GENERATION_MAX_TOKENS,
            system=system_prompt,
            messages=messages,
        )
    except ProviderError:
        raise
    except Exception as e:
        raise ProviderError("claude", str(e)) from e

    text = "".join(
        block.text for block in response.content if getattr(block, "type", None) == "text"
    ).strip()
    if not text:
        raise ProviderError("claude", "empty response")

    return Completion(
        provider="claude",
        model=model,
        text=text,
        input_tokens=response.usage.input_tokens,
        output_tokens=response.usage.output_tokens,
    )


async def generate_with_claude(system_prompt: str, user_message: str, model: str | None = None) -> Completion:
    return await chat_with_claude(system_prompt, [{"role": "user", "content": user_message}], model=model)


# --- OpenAI (JSON mode, used for ranking) ---
async def run_json_completion(system_prompt: str, user_message: str, model: str | None = None) -> Completion:
    return await _chat_completion(
        get_openai_client(),
        "openai",
        model or config.RANKING_MODEL,
        [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_message},
        ],
        response_format={"type": "json_object"},
    )

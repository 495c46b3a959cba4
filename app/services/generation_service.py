"""
Fan-out of one master context to the three generation providers.

All three calls are started together and joined with a wait-for-all policy:
one slow or failing provider never cancels the others. Each failure is
replaced with a null prompt, zero cost and an error marker.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, List, Optional

from app.ai.prompt_engine import PROVIDER_DISPLAY_NAMES, build_generation_system_prompt
from app.core import config
from app.services.pricing import PriceRow, calculate_cost, resolve_price
from app.utils.llm_client import (
    Completion,
    generate_with_claude,
    generate_with_deepseek,
    generate_with_gemini,
)

logger = logging.getLogger(__name__)

Generator = Callable[[str, str, Optional[str]], Awaitable[Completion]]

# Results are reported in this provider order
GENERATORS: Dict[str, Generator] = {
    "gemini": generate_with_gemini,
    "claude": generate_with_claude,
    "deepseek": generate_with_deepseek,
}


def configured_model(provider: str) -> str:
    return {
        "gemini": config.GEMINI_MODEL,
        "claude": config.CLAUDE_MODEL,
        "deepseek": config.DEEPSEEK_MODEL,
    }[provider]


class AllProvidersFailedError(Exception):
    pass


@dataclass
class ProviderResult:
    provider: str
    model: str
    prompt: Optional[str] = None
    cost: float = 0.0
    input_tokens: int = 0
    output_tokens: int = 0
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.prompt is None

    def to_dict(self) -> dict:
        return {
            "provider": self.provider,
            "model": self.model,
            "prompt": self.prompt,
            "cost": self.cost,
            "tokens": {"input": self.input_tokens, "output": self.output_tokens},
            "error": self.error,
        }


@dataclass
class GenerationResult:
    results: Dict[str, ProviderResult] = field(default_factory=dict)

    @property
    def failed_providers(self) -> List[str]:
        return [p for p, r in self.results.items() if r.failed]

    @property
    def all_failed(self) -> bool:
        return bool(self.results) and all(r.failed for r in self.results.values())

    @property
    def prompts(self) -> Dict[str, Optional[str]]:
        return {p: r.prompt for p, r in self.results.items()}

    @property
    def costs(self) -> Dict[str, float]:
        return {p: r.cost for p, r in self.results.items()}

    def to_dict(self) -> dict:
        return {p: r.to_dict() for p, r in self.results.items()}


def settle(provider: str, outcome, prices: Dict[str, PriceRow]) -> ProviderResult:
    """Turn one gathered outcome (Completion or exception) into a ProviderResult."""
    model = configured_model(provider)

    if isinstance(outcome, BaseException):
        logger.warning(f"⚠️ {PROVIDER_DISPLAY_NAMES[provider]} generation failed: {outcome}")
        return ProviderResult(
            provider=provider,
            model=model,
            error=f"{PROVIDER_DISPLAY_NAMES[provider]} generation failed",
        )

    price = resolve_price(prices, outcome.model, provider)
    return ProviderResult(
        provider=provider,
        model=outcome.model,
        prompt=outcome.text,
        cost=calculate_cost(price, outcome.input_tokens, outcome.output_tokens),
        input_tokens=outcome.input_tokens,
        output_tokens=outcome.output_tokens,
    )


async def generate_all(master_context: str, framework: str, prices: Dict[str, PriceRow]) -> GenerationResult:
    system_prompt = build_generation_system_prompt(framework)
    providers = list(GENERATORS)

    outcomes = await asyncio.gather(
        *(GENERATORS[p](system_prompt, master_context, configured_model(p)) for p in providers),
        return_exceptions=True,
    )

    result = GenerationResult({
        provider: settle(provider, outcome, prices)
        for provider, outcome in zip(providers, outcomes)
    })

    if result.failed_providers:
        logger.info(f"🔁 Partial generation, failed providers: {', '.join(result.failed_providers)}")
    return result

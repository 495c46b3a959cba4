import logging
from dataclasses import dataclass
from typing import Dict, Sequence

from app.ai.prompt_engine import READY_SENTINEL, build_clarify_messages, build_clarify_system_prompt
from app.core import config
from app.services.pricing import PriceRow, calculate_cost, resolve_price
from app.utils.llm_client import chat_with_claude

logger = logging.getLogger(__name__)


@dataclass
class ClarifyResult:
    question: str
    ready: bool
    input_tokens: int
    output_tokens: int
    cost: float

    def to_dict(self) -> dict:
        return {
            "question": self.question,
            "ready": self.ready,
            "input_tokens": self.input_tokens,
            "output_tokens": self.output_tokens,
            "cost": self.cost,
        }


async def clarify(
    framework: str,
    user_question: str,
    previous_qa: Sequence[dict],
    prices: Dict[str, PriceRow],
) -> ClarifyResult:
    """Ask the clarify model for the next question, or the ready sentinel."""
    completion = await chat_with_claude(
        build_clarify_system_prompt(framework),
        build_clarify_messages(user_question, previous_qa),
        model=config.CLARIFY_MODEL,
        max_tokens=config.CLARIFY_MAX_TOKENS,
    )

    price = resolve_price(prices, completion.model, "claude")
    ready = READY_SENTINEL in completion.text
    if ready:
        logger.info(f"✅ Clarification complete after {len(previous_qa)} answers")

    return ClarifyResult(
        question=completion.text,
        ready=ready,
        input_tokens=completion.input_tokens,
        output_tokens=completion.output_tokens,
        cost=calculate_cost(price, completion.input_tokens, completion.output_tokens),
    )

import logging
from dataclasses import dataclass
from typing import Dict

from sqlalchemy.orm import Session

from app.models.llm_pricing import LLMPricing

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PriceRow:
    provider: str
    model: str
    cost_per_1k_input: float
    cost_per_1k_output: float


ZERO_PRICE = PriceRow(provider="", model="", cost_per_1k_input=0.0, cost_per_1k_output=0.0)


def load_price_table(db: Session) -> Dict[str, PriceRow]:
    return {
        row.model: PriceRow(
            provider=row.provider,
            model=row.model,
            cost_per_1k_input=float(row.cost_per_1k_input or 0),
            cost_per_1k_output=float(row.cost_per_1k_output or 0),
        )
        for row in db.query(LLMPricing).all()
    }


def resolve_price(table: Dict[str, PriceRow], model: str, provider: str) -> PriceRow:
    """Exact model row, else any row for the same provider, else zero."""
    if model in table:
        return table[model]
    for row in table.values():
        if row.provider == provider:
            logger.warning(f"⚠️ No price for {model}, using {row.model} ({provider})")
            return row
    logger.warning(f"⚠️ No price for {model} ({provider}), counting it as free")
    return ZERO_PRICE


def calculate_cost(price: PriceRow, input_tokens: int, output_tokens: int) -> float:
    return (
        (input_tokens / 1000) * price.cost_per_1k_input
        + (output_tokens / 1000) * price.cost_per_1k_output
    )

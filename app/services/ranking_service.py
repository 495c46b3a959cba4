import json
import logging
from dataclasses import dataclass
from typing import Dict, Optional

from pydantic import ValidationError

from app.ai.prompt_engine import RANKING_SYSTEM_PROMPT, assign_labels, build_ranking_message
from app.core import config
from app.schemas.prompt import CriterionScores, RankingVerdict
from app.services.pricing import PriceRow, calculate_cost, resolve_price
from app.utils.llm_client import ProviderError, run_json_completion

logger = logging.getLogger(__name__)


class RankingError(Exception):
    pass


@dataclass
class RankingResult:
    verdict: RankingVerdict
    cost: float = 0.0
    input_tokens: int = 0
    output_tokens: int = 0

    def to_dict(self) -> dict:
        return {
            "evaluation": self.verdict.model_dump(),
            "cost": self.cost,
            "tokens": {"input": self.input_tokens, "output": self.output_tokens},
        }


def parse_verdict(raw: str, labels: Dict[str, str]) -> RankingVerdict:
    """Parse the judge's JSON reply and translate A/B/C labels back to provider names."""
    try:
        data = json.loads(raw or "{}")
    except json.JSONDecodeError as e:
        raise RankingError(f"Ranking reply is not JSON: {e}") from e

    if not isinstance(data, dict):
        raise RankingError("Ranking reply is not a JSON object")

    def to_provider(label) -> str:
        key = str(label).strip().upper()
        if key not in labels:
            raise RankingError(f"Ranking referenced unknown candidate {label!r}")
        return labels[key]

    raw_ranking = data.get("ranking") or []
    raw_scores = data.get("scores") or {}
    if not isinstance(raw_ranking, list):
        raise RankingError("Ranking reply has a non-list \"ranking\"")
    if not isinstance(raw_scores, dict):
        raise RankingError("Ranking reply has a non-object \"scores\"")

    try:
        ranking = [to_provider(label) for label in raw_ranking]
        winner_label = data.get("winner") or (raw_ranking or [None])[0]
        if winner_label is None:
            raise RankingError("Ranking reply has no winner")
        winner = to_provider(winner_label)
        scores = {
            to_provider(label): CriterionScores(**(value or {}))
            for label, value in raw_scores.items()
        }
        verdict = RankingVerdict(
            ranking=ranking or [winner],
            scores=scores,
            explanation=str(data.get("explanation", "")),
            winner=winner,
        )
    except (TypeError, AttributeError, ValidationError) as e:
        raise RankingError(f"Ranking reply has an unexpected shape: {e}") from e

    return verdict


async def rank_prompts(
    framework: str,
    user_question: str,
    prompts: Dict[str, Optional[str]],
    prices: Dict[str, PriceRow],
) -> RankingResult:
    labels = assign_labels(prompts)

    if not labels:
        raise RankingError("No prompts to rank")

    if len(labels) == 1:
        # Nothing to compare against
        only = next(iter(labels.values()))
        return RankingResult(
            verdict=RankingVerdict(
                ranking=[only],
                explanation="Only one prompt was generated, so it wins by default.",
                winner=only,
            )
        )

    message = build_ranking_message(framework, user_question, prompts, labels)
    try:
        completion = await run_json_completion(RANKING_SYSTEM_PROMPT, message, config.RANKING_MODEL)
    except ProviderError as e:
        logger.warning(f"⚠️ Ranking call failed: {e}")
        raise RankingError("Ranking provider failed") from e

    verdict = parse_verdict(completion.text, labels)
    price = resolve_price(prices, completion.model, "openai")
    return RankingResult(
        verdict=verdict,
        cost=calculate_cost(price, completion.input_tokens, completion.output_tokens),
        input_tokens=completion.input_tokens,
        output_tokens=completion.output_tokens,
    )

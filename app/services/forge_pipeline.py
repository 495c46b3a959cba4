"""
Full clarify-generate-rank-save cycle in a single request.

Generation failing for every provider is fatal. Ranking failures and
ranking rate-limit rejections degrade to an unranked result. Saving is
best-effort: errors are logged and the generated prompts are still returned.
"""

import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.ai.prompt_engine import build_master_context
from app.schemas.prompt import ForgeRequest, PromptSet
from app.schemas.transaction import CostBreakdown, SaveTransactionRequest
from app.services.generation_service import AllProvidersFailedError, generate_all
from app.services.pricing import load_price_table
from app.services.rate_limit import enforce_rate_limit
from app.services.ranking_service import RankingError, rank_prompts
from app.services.transaction_service import save_transaction

logger = logging.getLogger(__name__)


async def run_forge_cycle(db: Session, user: dict, request: ForgeRequest) -> dict:
    prices = load_price_table(db)
    qa_history = [qa.model_dump() for qa in request.qa_history]

    # === 1. Generate
    context = build_master_context(request.framework, request.user_question, qa_history)
    generation = await generate_all(context, request.framework, prices)
    if generation.all_failed:
        raise AllProvidersFailedError("All providers failed to generate a prompt")

    # === 2. Rank (non-fatal)
    ranking = None
    ranking_error = None
    try:
        enforce_rate_limit("rank", user["id"])
        ranking = await rank_prompts(request.framework, request.user_question, generation.prompts, prices)
    except HTTPException as e:
        ranking_error = "Ranking rate limit reached"
        logger.warning(f"⚠️ Ranking skipped for {user['id']}: {e.detail}")
    except RankingError as e:
        ranking_error = "Ranking failed"
        logger.warning(f"⚠️ Ranking failed for {user['id']}: {e}")

    costs = CostBreakdown(
        clarify=request.clarify_cost,
        ranking=ranking.cost if ranking else 0.0,
        **generation.costs,
    )

    # === 3. Save (best-effort)
    transaction_id = None
    try:
        record = save_transaction(db, user["id"], SaveTransactionRequest(
            framework=request.framework,
            user_question=request.user_question,
            qa_history=request.qa_history,
            prompts=PromptSet(**generation.prompts),
            ranking=ranking.verdict if ranking else {},
            costs=costs,
        ))
        transaction_id = record.id
    except Exception:
        logger.exception(f"❌ Failed to save transaction for user {user['id']}")
        db.rollback()

    return {
        "prompts": generation.to_dict(),
        "ranking": ranking.verdict.model_dump() if ranking else None,
        "ranking_failed": ranking is None,
        "ranking_error": ranking_error,
        "costs": costs.model_dump(),
        "total_cost": costs.total,
        "failed_providers": generation.failed_providers,
        "transaction_id": transaction_id,
        "saved": transaction_id is not None,
    }

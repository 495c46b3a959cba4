import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.ai.prompt_engine import FRAMEWORKS, build_master_context
from app.core.db import get_db
from app.dependencies.auth import get_current_user
from app.schemas.prompt import (
    ClarifyRequest,
    ClarifyResponse,
    ForgeRequest,
    ForgeResponse,
    GenerateRequest,
    GenerateResponse,
    RankRequest,
    RankResponse,
)
from app.services.clarify_service import clarify
from app.services.forge_pipeline import run_forge_cycle
from app.services.generation_service import AllProvidersFailedError, generate_all
from app.services.pricing import load_price_table
from app.services.rate_limit import rate_limited
from app.services.ranking_service import RankingError, rank_prompts
from app.utils.llm_client import ProviderError

router = APIRouter()
logger = logging.getLogger(__name__)


# === GET /frameworks
@router.get("/frameworks")
def list_frameworks(user=Depends(get_current_user)):
    return FRAMEWORKS


# === POST /clarify
@router.post("/clarify", response_model=ClarifyResponse)
async def clarify_question(
    body: ClarifyRequest,
    user=Depends(rate_limited("clarify")),
    db: Session = Depends(get_db)
):
    try:
        result = await clarify(
            body.framework,
            body.user_question,
            [qa.model_dump() for qa in body.previous_qa],
            load_price_table(db),
        )
    except ProviderError:
        logger.exception("[CLARIFY] Claude call failed")
        raise HTTPException(status_code=502, detail="Internal AI Error. Please try again.")

    return result.to_dict()


# === POST /generate
@router.post("/generate", response_model=GenerateResponse)
async def generate_prompts(
    body: GenerateRequest,
    user=Depends(rate_limited("generate")),
    db: Session = Depends(get_db)
):
    context = build_master_context(
        body.framework,
        body.user_question,
        [qa.model_dump() for qa in body.qa_history],
    )
    result = await generate_all(context, body.framework, load_price_table(db))

    if result.all_failed:
        logger.error(f"❌ All providers failed for user {user['id']}")
        raise HTTPException(status_code=502, detail="All providers failed to generate a prompt. Please try again.")

    return result.to_dict()


# === POST /rank
@router.post("/rank", response_model=RankResponse)
async def rank(
    body: RankRequest,
    user=Depends(rate_limited("rank")),
    db: Session = Depends(get_db)
):
    try:
        result = await rank_prompts(
            body.framework,
            body.user_question,
            body.prompts.as_dict(),
            load_price_table(db),
        )
    except RankingError as e:
        logger.warning(f"⚠️ Ranking failed for user {user['id']}: {e}")
        raise HTTPException(status_code=502, detail="Ranking failed. Please try again.")

    return result.to_dict()


# === POST /forge  (generate + rank + save in one call)
@router.post("/forge", response_model=ForgeResponse)
async def forge(
    body: ForgeRequest,
    user=Depends(rate_limited("generate")),
    db: Session = Depends(get_db)
):
    try:
        return await run_forge_cycle(db, user, body)
    except AllProvidersFailedError:
        logger.error(f"❌ All providers failed for user {user['id']}")
        raise HTTPException(status_code=502, detail="All providers failed to generate a prompt. Please try again.")

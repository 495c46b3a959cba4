import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.core.db import get_db
from app.dependencies.auth import get_current_user
from app.schemas.transaction import SaveTransactionRequest, TransactionOut, TransactionPage
from app.services.transaction_service import get_transaction, list_transactions, save_transaction

router = APIRouter()
logger = logging.getLogger(__name__)


# === POST /transactions/save
@router.post("/transactions/save")
def save(
    body: SaveTransactionRequest,
    user=Depends(get_current_user),
    db: Session = Depends(get_db)
):
    try:
        record = save_transaction(db, user["id"], body)
    except Exception:
        logger.exception("Transaction save failed")
        db.rollback()
        raise HTTPException(status_code=500, detail="Failed to save transaction.")

    return {"success": True, "id": record.id, "total_cost": record.total_cost}


# === GET /transactions
@router.get("/transactions", response_model=TransactionPage)
def history(
    page: int = Query(1, ge=1),
    framework: Optional[str] = Query(None, max_length=50),
    user=Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return list_transactions(db, user_id=user["id"], framework=framework, page=page)


# === GET /transactions/{id}
@router.get("/transactions/{transaction_id}", response_model=TransactionOut)
def detail(
    transaction_id: str,
    user=Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return get_transaction(db, transaction_id, user["id"])

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from app.core.db import get_db
from app.dependencies.auth import require_admin
from app.schemas.transaction import TransactionPage
from app.schemas.user import UserCreate, UserOut, UserUpdate
from app.services import analytics_service
from app.services.transaction_service import (
    export_filename,
    export_range,
    fetch_export_rows,
    iter_export_csv,
    list_transactions,
)
from app.services.user_service import create_user, list_users, update_user

router = APIRouter(prefix="/admin")


# === Users
@router.get("/users", response_model=List[UserOut])
def get_users(admin=Depends(require_admin), db: Session = Depends(get_db)):
    return list_users(db)


@router.post("/users", response_model=UserOut, status_code=201)
def post_user(body: UserCreate, admin=Depends(require_admin), db: Session = Depends(get_db)):
    return create_user(db, body)


@router.patch("/users/{user_id}", response_model=UserOut)
def patch_user(user_id: str, body: UserUpdate, admin=Depends(require_admin), db: Session = Depends(get_db)):
    return update_user(db, user_id, body)


# === Transactions
@router.get("/transactions", response_model=TransactionPage)
def get_transactions(
    user_id: Optional[str] = None,
    page: int = Query(1, ge=1),
    admin=Depends(require_admin),
    db: Session = Depends(get_db)
):
    return list_transactions(db, user_id=user_id, page=page)


@router.get("/transactions/export")
def export_transactions(
    date_from: Optional[date] = Query(None, alias="from"),
    date_to: Optional[date] = Query(None, alias="to"),
    admin=Depends(require_admin),
    db: Session = Depends(get_db)
):
    start, end = export_range(date_from, date_to)
    # Rows are loaded before streaming; the session closes with the request
    rows = fetch_export_rows(db, start, end)
    return StreamingResponse(
        iter_export_csv(rows),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{export_filename(start, end)}"'},
    )


# === Analytics
@router.get("/analytics/summary")
def analytics_summary(admin=Depends(require_admin), db: Session = Depends(get_db)):
    return analytics_service.get_summary(db)


@router.get("/analytics/by-user")
def analytics_by_user(admin=Depends(require_admin), db: Session = Depends(get_db)):
    return analytics_service.get_usage_by_user(db)


@router.get("/analytics/by-framework")
def analytics_by_framework(admin=Depends(require_admin), db: Session = Depends(get_db)):
    return analytics_service.get_usage_by_framework(db)


@router.get("/analytics/daily")
def analytics_daily(admin=Depends(require_admin), db: Session = Depends(get_db)):
    return analytics_service.get_daily_usage(db)

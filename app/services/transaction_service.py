import csv
import io
import math
import logging
from datetime import date, datetime, time, timedelta
from typing import Iterator, Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.models.transaction import Transaction
from app.models.user import User
from app.schemas.prompt import RankingVerdict
from app.schemas.transaction import SaveTransactionRequest

logger = logging.getLogger(__name__)

PAGE_SIZE = 10
EXPORT_COLUMNS = ["user_email", "framework", "question", "winner", "total_cost", "created_at"]


def save_transaction(db: Session, user_id: str, payload: SaveTransactionRequest) -> Transaction:
    costs = payload.costs
    ranking = payload.ranking.model_dump() if isinstance(payload.ranking, RankingVerdict) else dict(payload.ranking)
    prompts = payload.prompts

    record = Transaction(
        user_id=user_id,
        framework_used=payload.framework,
        user_question=payload.user_question,
        clarifying_qa=[qa.model_dump() for qa in payload.qa_history],
        gemini_prompt=prompts.gemini,
        claude_prompt=prompts.claude,
        deepseek_prompt=prompts.deepseek,
        ranking_result=ranking,
        clarify_cost=costs.clarify,
        gemini_cost=costs.gemini,
        claude_cost=costs.claude,
        deepseek_cost=costs.deepseek,
        openai_cost=costs.ranking,
        total_cost=costs.total,
        created_at=datetime.utcnow(),
    )
    db.add(record)
    db.commit()
    db.refresh(record)

    logger.info(f"✅ Saved transaction {record.id} for user {user_id} (total ${costs.total:.5f})")
    return record


def list_transactions(
    db: Session,
    user_id: Optional[str] = None,
    framework: Optional[str] = None,
    page: int = 1,
    limit: int = PAGE_SIZE,
) -> dict:
    page = max(page, 1)
    query = db.query(Transaction)
    if user_id:
        query = query.filter(Transaction.user_id == user_id)
    if framework:
        query = query.filter(Transaction.framework_used == framework)

    total = query.count()
    rows = (
        query.order_by(Transaction.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    return {
        "transactions": rows,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": math.ceil(total / limit) if limit else 0,
        },
    }


def get_transaction(db: Session, transaction_id: str, user_id: str) -> Transaction:
    record = db.query(Transaction).filter(
        Transaction.id == transaction_id,
        Transaction.user_id == user_id,
    ).first()
    if not record:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return record


def export_range(date_from: Optional[date], date_to: Optional[date]) -> tuple[datetime, datetime]:
    """Default to the last 30 days; the end date is inclusive to end of day."""
    today = datetime.utcnow().date()
    start = date_from or (today - timedelta(days=30))
    end = date_to or today
    return datetime.combine(start, time.min), datetime.combine(end, time.max)


def export_filename(start: datetime, end: datetime) -> str:
    return f"promptforge-export-{start.date().isoformat()}-to-{end.date().isoformat()}.csv"


def fetch_export_rows(db: Session, start: datetime, end: datetime) -> list:
    return (
        db.query(Transaction, User.email)
        .outerjoin(User, Transaction.user_id == User.id)
        .filter(Transaction.created_at >= start, Transaction.created_at <= end)
        .order_by(Transaction.created_at.desc())
        .all()
    )


def iter_export_csv(rows: list) -> Iterator[str]:
    """Yield the CSV header, then one line per (Transaction, email) row."""
    buffer = io.StringIO()
    writer = csv.writer(buffer)

    def flush() -> str:
        value = buffer.getvalue()
        buffer.seek(0)
        buffer.truncate(0)
        return value

    writer.writerow(EXPORT_COLUMNS)
    yield flush()

    for record, email in rows:
        writer.writerow([
            email or "",
            record.framework_used,
            record.user_question or "",
            record.winner or "N/A",
            f"{record.total_cost or 0}",
            record.created_at.isoformat() if record.created_at else "",
        ])
        yield flush()

from datetime import datetime, timedelta

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.transaction import Transaction
from app.models.user import User

WINDOW_DAYS = 30


def get_summary(db: Session) -> dict:
    total_runs = db.query(func.count(Transaction.id)).scalar() or 0
    total_cost = db.query(func.coalesce(func.sum(Transaction.total_cost), 0)).scalar() or 0

    since = datetime.utcnow() - timedelta(days=WINDOW_DAYS)
    active_users = (
        db.query(func.count(func.distinct(Transaction.user_id)))
        .filter(Transaction.created_at >= since)
        .scalar()
        or 0
    )

    top = (
        db.query(Transaction.framework_used, func.count(Transaction.id).label("runs"))
        .group_by(Transaction.framework_used)
        .order_by(func.count(Transaction.id).desc())
        .first()
    )

    return {
        "total_runs": total_runs,
        "total_cost": f"{float(total_cost):.2f}",
        "active_users": active_users,
        "most_popular_framework": top.framework_used if top else "N/A",
    }


def get_usage_by_user(db: Session) -> list[dict]:
    cost = func.coalesce(func.sum(Transaction.total_cost), 0)
    rows = (
        db.query(
            User.id,
            User.name,
            User.email,
            User.is_active,
            func.count(Transaction.id).label("total_runs"),
            cost.label("total_cost"),
            func.max(Transaction.created_at).label("last_active"),
        )
        .outerjoin(Transaction, Transaction.user_id == User.id)
        .group_by(User.id, User.name, User.email, User.is_active)
        .order_by(cost.desc())
        .all()
    )

    return [
        {
            "user_id": row.id,
            "name": row.name,
            "email": row.email,
            "is_active": row.is_active,
            "total_runs": row.total_runs,
            "total_cost": f"{float(row.total_cost or 0):.4f}",
            "last_active": _isoformat(row.last_active),
        }
        for row in rows
    ]


def get_usage_by_framework(db: Session) -> list[dict]:
    rows = (
        db.query(Transaction.framework_used, func.count(Transaction.id).label("runs"))
        .group_by(Transaction.framework_used)
        .order_by(func.count(Transaction.id).desc())
        .all()
    )
    return [{"framework": row.framework_used, "runs": row.runs} for row in rows]


def get_daily_usage(db: Session, today=None) -> list[dict]:
    """Runs and cost per day for the last 30 days, oldest first, zero-filled."""
    today = today or datetime.utcnow().date()
    start = today - timedelta(days=WINDOW_DAYS - 1)

    day = func.date(Transaction.created_at)
    rows = (
        db.query(
            day.label("day"),
            func.count(Transaction.id).label("runs"),
            func.coalesce(func.sum(Transaction.total_cost), 0).label("cost"),
        )
        .filter(Transaction.created_at >= datetime.combine(start, datetime.min.time()))
        .group_by(day)
        .all()
    )
    # SQLite returns DATE() as text, Postgres as a date
    by_day = {str(row.day): row for row in rows}

    filled = []
    for offset in range(WINDOW_DAYS):
        key = (start + timedelta(days=offset)).isoformat()
        found = by_day.get(key)
        filled.append({
            "date": key,
            "runs": int(found.runs) if found else 0,
            "cost": float(found.cost or 0) if found else 0.0,
        })
    return filled


def _isoformat(value):
    if value is None:
        return None
    if isinstance(value, str):
        # SQLite hands back aggregate datetimes as strings
        return datetime.fromisoformat(value).isoformat()
    return value.isoformat()

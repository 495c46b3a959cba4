import os
import logging

from sqlalchemy.orm import Session

from app.core import config
from app.core.db import SessionLocal, init_db
from app.models.llm_pricing import LLMPricing
from app.models.user import User
from app.services.security import get_password_hash

logger = logging.getLogger(__name__)

# USD per 1k tokens
DEFAULT_PRICING = [
    {"provider": "gemini", "model": "gemini-2.0-flash", "cost_per_1k_input": 0.0001, "cost_per_1k_output": 0.0004},
    {"provider": "gemini", "model": "gemini-1.5-flash", "cost_per_1k_input": 0.00035, "cost_per_1k_output": 0.00105},
    {"provider": "claude", "model": "claude-3-haiku-20240307", "cost_per_1k_input": 0.00025, "cost_per_1k_output": 0.00125},
    {"provider": "claude", "model": "claude-3-5-haiku", "cost_per_1k_input": 0.0008, "cost_per_1k_output": 0.004},
    {"provider": "deepseek", "model": "deepseek-chat", "cost_per_1k_input": 0.00014, "cost_per_1k_output": 0.00028},
    {"provider": "openai", "model": "gpt-4o", "cost_per_1k_input": 0.005, "cost_per_1k_output": 0.015},
]


def seed_admin(db: Session, email: str, password: str, name: str = "Admin User") -> bool:
    email = email.lower()
    if db.query(User).filter(User.email == email).first():
        logger.info("Admin user already exists.")
        return False

    db.add(User(
        email=email,
        name=name,
        hashed_password=get_password_hash(password),
        role="admin",
        is_active=True,
    ))
    db.commit()
    logger.info(f"✅ Admin user seeded: {email}")
    return True


def seed_pricing(db: Session, rows: list[dict] = DEFAULT_PRICING) -> int:
    inserted = 0
    for row in rows:
        if db.query(LLMPricing).filter(LLMPricing.model == row["model"]).first():
            continue
        db.add(LLMPricing(**row))
        inserted += 1
    db.commit()
    logger.info(f"✅ Seeded pricing for {inserted} models")
    return inserted


def main():
    init_db()
    db = SessionLocal()
    try:
        seed_admin(
            db,
            email=os.getenv("ADMIN_EMAIL", "admin@promptforge.com"),
            password=os.getenv("ADMIN_PASSWORD", "Admin123!"),
        )
        seed_pricing(db)
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    logger.info(f"Seeding database at {config.DATABASE_URL.split('@')[-1]}")
    main()

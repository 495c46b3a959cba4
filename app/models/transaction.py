from sqlalchemy import Column, String, Text, DateTime, Numeric, ForeignKey, JSON
from sqlalchemy.orm import relationship
from datetime import datetime
from uuid import uuid4

from app.core.db import Base

COST = Numeric(14, 8, asdecimal=False)


class Transaction(Base):
    """One clarify -> generate -> rank cycle. Rows are never updated."""

    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True, index=True, default=lambda: str(uuid4()))
    user_id = Column(String(36), ForeignKey("users.id"), index=True)

    framework_used = Column(String(50), nullable=False, index=True)
    user_question = Column(Text, nullable=False)
    clarifying_qa = Column(JSON, default=list)  # [{question, answer}]

    gemini_prompt = Column(Text, nullable=True)
    claude_prompt = Column(Text, nullable=True)
    deepseek_prompt = Column(Text, nullable=True)

    ranking_result = Column(JSON, default=dict)  # {ranking, scores, explanation, winner} or {}

    clarify_cost = Column(COST, default=0)
    gemini_cost = Column(COST, default=0)
    claude_cost = Column(COST, default=0)
    deepseek_cost = Column(COST, default=0)
    openai_cost = Column(COST, default=0)
    total_cost = Column(COST, default=0)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    user = relationship("User", back_populates="transactions")

    @property
    def winner(self) -> str | None:
        if isinstance(self.ranking_result, dict):
            return self.ranking_result.get("winner")
        return None

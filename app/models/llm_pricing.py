from sqlalchemy import Column, String, DateTime, Numeric
from datetime import datetime
from uuid import uuid4

from app.core.db import Base


class LLMPricing(Base):
    __tablename__ = "llm_pricing"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    provider = Column(String(50), nullable=False, index=True)  # gemini, claude, deepseek, openai
    model = Column(String(100), nullable=False, unique=True)
    cost_per_1k_input = Column(Numeric(12, 8, asdecimal=False), nullable=False, default=0)
    cost_per_1k_output = Column(Numeric(12, 8, asdecimal=False), nullable=False, default=0)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

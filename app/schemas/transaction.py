from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

from app.schemas.prompt import PromptSet, QAPair, RankingVerdict


class CostBreakdown(BaseModel):
    gemini: float = Field(0.0, ge=0)
    claude: float = Field(0.0, ge=0)
    deepseek: float = Field(0.0, ge=0)
    ranking: float = Field(0.0, ge=0)
    clarify: float = Field(0.0, ge=0)

    @property
    def total(self) -> float:
        return self.clarify + self.gemini + self.claude + self.deepseek + self.ranking


class SaveTransactionRequest(BaseModel):
    framework: str = Field(..., min_length=1, max_length=50)
    user_question: str = Field(..., min_length=1, max_length=2000)
    qa_history: List[QAPair] = Field(default_factory=list)
    prompts: PromptSet
    # An empty object records a cycle whose ranking step failed
    ranking: Union[RankingVerdict, Dict[str, Any]] = Field(default_factory=dict)
    costs: CostBreakdown


class TransactionOut(BaseModel):
    id: str
    user_id: Optional[str] = None
    framework_used: str
    user_question: str
    clarifying_qa: List[Dict[str, Any]] = Field(default_factory=list)
    gemini_prompt: Optional[str] = None
    claude_prompt: Optional[str] = None
    deepseek_prompt: Optional[str] = None
    ranking_result: Dict[str, Any] = Field(default_factory=dict)
    clarify_cost: float = 0.0
    gemini_cost: float = 0.0
    claude_cost: float = 0.0
    deepseek_cost: float = 0.0
    openai_cost: float = 0.0
    total_cost: float = 0.0
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class TransactionPage(BaseModel):
    transactions: List[TransactionOut]
    pagination: Pagination

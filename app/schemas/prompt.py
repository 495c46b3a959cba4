from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from app.services.validation import ensure_no_injection

PROVIDERS = ("gemini", "claude", "deepseek")


class QAPair(BaseModel):
    question: str = Field(..., max_length=2000)
    answer: str = Field(..., max_length=1000, description="Answer must be under 1000 characters")

    @field_validator("answer")
    @classmethod
    def answer_is_clean(cls, value: str) -> str:
        return ensure_no_injection(value, "Answer")


class PromptRequestBase(BaseModel):
    framework: str = Field(..., min_length=1, max_length=50)
    user_question: str = Field(..., min_length=1, max_length=2000)

    @field_validator("user_question")
    @classmethod
    def question_is_clean(cls, value: str) -> str:
        return ensure_no_injection(value, "Question")


class ClarifyRequest(PromptRequestBase):
    previous_qa: List[QAPair] = Field(default_factory=list)


class ClarifyResponse(BaseModel):
    question: str
    ready: bool
    input_tokens: int
    output_tokens: int
    cost: float


class GenerateRequest(PromptRequestBase):
    qa_history: List[QAPair] = Field(default_factory=list)


class TokenCount(BaseModel):
    input: int = 0
    output: int = 0


class ProviderPrompt(BaseModel):
    provider: str
    model: Optional[str] = None
    prompt: Optional[str] = None
    cost: float = 0.0
    tokens: TokenCount = Field(default_factory=TokenCount)
    error: Optional[str] = None


class GenerateResponse(BaseModel):
    gemini: ProviderPrompt
    claude: ProviderPrompt
    deepseek: ProviderPrompt


class PromptSet(BaseModel):
    """Generated prompt text per provider; None where the provider failed."""
    gemini: Optional[str] = None
    claude: Optional[str] = None
    deepseek: Optional[str] = None

    def as_dict(self) -> Dict[str, Optional[str]]:
        return {provider: getattr(self, provider) for provider in PROVIDERS}


class RankRequest(BaseModel):
    framework: str = Field(..., min_length=1, max_length=50)
    user_question: str = Field(..., min_length=1, max_length=2000)
    prompts: PromptSet


class CriterionScores(BaseModel):
    clarity: float = 0
    completeness: float = 0
    adherence: float = 0
    usability: float = 0


class RankingVerdict(BaseModel):
    ranking: List[str]
    scores: Dict[str, CriterionScores] = Field(default_factory=dict)
    explanation: str = ""
    winner: str


class RankResponse(BaseModel):
    evaluation: RankingVerdict
    cost: float
    tokens: TokenCount


class ForgeRequest(GenerateRequest):
    clarify_cost: float = Field(0.0, ge=0)


class ForgeResponse(BaseModel):
    prompts: GenerateResponse
    ranking: Optional[RankingVerdict] = None
    ranking_failed: bool = False
    ranking_error: Optional[str] = None
    costs: Dict[str, float]
    total_cost: float
    failed_providers: List[str]
    transaction_id: Optional[str] = None
    saved: bool = False

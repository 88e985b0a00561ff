from pydantic import BaseModel, Field


class RecommendRequest(BaseModel):
    amount: float = Field(gt=0)
    category: str | None = None
    url: str | None = None


class EvaluateRequest(BaseModel):
    url: str
    html: str = ""


class TransactionRequest(BaseModel):
    merchant_name: str
    category: str
    amount: float = Field(gt=0)
    recommended_card: str
    card_used: str | None = None
    potential_savings: float = 0.0

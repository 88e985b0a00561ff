from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

MerchantCategory = Literal[
    "general",
    "groceries",
    "gas",
    "travel",
    "dining",
    "online",
    "department_stores",
    "electronics",
    "pharmacy",
    "warehouse_clubs",
]

CapPeriod = Literal["monthly", "quarterly", "yearly"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StoredModel(BaseModel):
    """Persisted shape uses camelCase keys; Python code uses snake_case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Cap(StoredModel):
    amount: float = Field(gt=0)
    period: CapPeriod
    current_usage: float = Field(default=0, ge=0)


class RewardRule(StoredModel):
    category: str
    reward_rate: float = Field(ge=0, le=1)
    cap: Cap | None = None


class CreditCard(StoredModel):
    id: str
    name: str
    reward_structure: list[RewardRule] = Field(default_factory=list)
    is_active: bool = True
    created_at: datetime = Field(default_factory=_utcnow)


class Merchant(StoredModel):
    model_config = ConfigDict(frozen=True)

    name: str
    domain: str
    category: MerchantCategory
    checkout_selectors: tuple[str, ...] = ()


class Transaction(StoredModel):
    id: str
    merchant_name: str
    category: str
    amount: float = Field(gt=0)
    card_used: str | None = None
    recommended_card: str
    potential_savings: float = 0
    timestamp: datetime = Field(default_factory=_utcnow)


class UserSettings(StoredModel):
    enable_notifications: bool = True
    track_spending: bool = True
    dark_mode: bool = False


class CachedCartAmount(StoredModel):
    amount: float = Field(gt=0)
    timestamp: float  # epoch milliseconds
    url: str


class Recommendation(BaseModel):
    card: CreditCard
    category: str
    reward_rate: float
    effective_amount: float
    reward_amount: float
    reasoning: str
    is_cap_reached: bool = False
    remaining_cap: float | None = None


class CardComparison(BaseModel):
    best: Recommendation | None
    alternatives: list[Recommendation]
    potential_savings: float

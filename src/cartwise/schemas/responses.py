from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel

from cartwise.domain.models import Merchant, Recommendation

if TYPE_CHECKING:
    from cartwise.agents.orchestrator import PageEvaluation


class RecommendResponse(BaseModel):
    category: str
    amount: float
    best: Recommendation | None
    alternatives: list[Recommendation]
    potential_savings: float


class EvaluateResponse(BaseModel):
    url: str
    is_checkout: bool
    is_cart_view: bool
    reason: str
    merchant: Merchant | None
    category: str
    amount: float | None
    best: Recommendation | None = None
    alternatives: list[Recommendation] = []
    potential_savings: float = 0.0

    @classmethod
    def from_evaluation(cls, evaluation: PageEvaluation) -> EvaluateResponse:
        verdict = evaluation.verdict
        comparison = evaluation.comparison
        return cls(
            url=evaluation.url,
            is_checkout=verdict.is_checkout,
            is_cart_view=verdict.is_cart_view,
            reason=verdict.reason,
            merchant=verdict.merchant,
            category=evaluation.category,
            amount=evaluation.amount,
            best=comparison.best if comparison else None,
            alternatives=comparison.alternatives if comparison else [],
            potential_savings=comparison.potential_savings if comparison else 0.0,
        )

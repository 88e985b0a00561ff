from functools import lru_cache

from fastapi import APIRouter, Depends, HTTPException

from cartwise.agents.orchestrator import CheckoutOrchestrator
from cartwise.config import settings
from cartwise.domain.models import Transaction
from cartwise.page.snapshot import PageSnapshot
from cartwise.repository.card_repository import CardRepository
from cartwise.repository.store import JsonFileStore
from cartwise.schemas.requests import EvaluateRequest, RecommendRequest, TransactionRequest
from cartwise.schemas.responses import EvaluateResponse, RecommendResponse

router = APIRouter(tags=["recommend"])


@lru_cache(maxsize=1)
def get_orchestrator() -> CheckoutOrchestrator:
    repository = CardRepository(JsonFileStore(settings.store_file), max_transactions=settings.max_transactions)
    return CheckoutOrchestrator(repository)


@router.post("/recommend", response_model=RecommendResponse)
def recommend(
    request: RecommendRequest, orchestrator: CheckoutOrchestrator = Depends(get_orchestrator)
) -> RecommendResponse:
    try:
        return orchestrator.recommend(request)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.post("/evaluate", response_model=EvaluateResponse)
def evaluate(
    request: EvaluateRequest, orchestrator: CheckoutOrchestrator = Depends(get_orchestrator)
) -> EvaluateResponse:
    try:
        evaluation = orchestrator.evaluate(PageSnapshot.from_html(request.url, request.html))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return EvaluateResponse.from_evaluation(evaluation)


@router.post("/transactions", response_model=Transaction, status_code=201)
def record_transaction(
    request: TransactionRequest, orchestrator: CheckoutOrchestrator = Depends(get_orchestrator)
) -> Transaction:
    return orchestrator.record_transaction(**request.model_dump())

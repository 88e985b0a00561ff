from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass

from cartwise.checkout.classifier import CheckoutClassifier, CheckoutVerdict
from cartwise.domain.merchants import MerchantResolver, default_resolver
from cartwise.domain.models import CardComparison, Recommendation, Transaction
from cartwise.engine.evaluator import find_best_rule
from cartwise.engine.selectors import compare_cards
from cartwise.estimator.estimator import AmountEstimator
from cartwise.page.snapshot import PageSnapshot
from cartwise.page.source import PageSource
from cartwise.repository.card_repository import CardRepository
from cartwise.schemas.requests import RecommendRequest
from cartwise.schemas.responses import RecommendResponse

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PageEvaluation:
    url: str
    verdict: CheckoutVerdict
    category: str
    amount: float | None = None
    comparison: CardComparison | None = None
    has_cards: bool = True

    @property
    def recommendation(self) -> Recommendation | None:
        return self.comparison.best if self.comparison else None


class CheckoutOrchestrator:
    def __init__(
        self,
        repository: CardRepository,
        resolver: MerchantResolver = default_resolver,
        classifier: CheckoutClassifier | None = None,
        estimator: AmountEstimator | None = None,
    ):
        self.repository = repository
        self.resolver = resolver
        self.classifier = classifier or CheckoutClassifier(resolver)
        self.estimator = estimator or AmountEstimator(repository)

    def category_for(self, snapshot: PageSnapshot, verdict: CheckoutVerdict) -> str:
        if verdict.merchant is not None:
            return verdict.merchant.category
        return self.resolver.category_of(snapshot.hostname)

    def compare(self, category: str, amount: float) -> tuple[CardComparison, bool]:
        cards = self.repository.get_cards()
        return compare_cards(cards, category, amount), bool(cards)

    def _pre_checkout(self, snapshot: PageSnapshot) -> tuple[CheckoutVerdict, str, PageEvaluation | None]:
        verdict = self.classifier.classify(snapshot)
        category = self.category_for(snapshot, verdict)
        if verdict.is_cart_view:
            rule = self.classifier.site_rule(verdict.merchant)
            cached = self.estimator.remember_cart_amount(snapshot, rule)
            return verdict, category, PageEvaluation(snapshot.url, verdict, category, amount=cached)
        if not verdict.is_checkout:
            return verdict, category, PageEvaluation(snapshot.url, verdict, category)
        return verdict, category, None

    def _finish(self, snapshot: PageSnapshot, verdict: CheckoutVerdict, category: str, amount: float) -> PageEvaluation:
        comparison, has_cards = self.compare(category, amount)
        best = comparison.best
        if best is not None:
            logger.info(
                "recommend %s for %s (%s, $%.2f): %s",
                best.card.name, snapshot.hostname, category, amount, best.reasoning,
            )
        return PageEvaluation(snapshot.url, verdict, category, amount, comparison, has_cards)

    def evaluate(self, snapshot: PageSnapshot) -> PageEvaluation:
        """Single-shot pipeline over one snapshot."""
        verdict, category, early = self._pre_checkout(snapshot)
        if early is not None:
            return early
        amount = self.estimator.estimate(snapshot, self.classifier.site_rule(verdict.merchant))
        return self._finish(snapshot, verdict, category, amount)

    async def recommend_for_page(self, page: PageSource, snapshot: PageSnapshot | None = None) -> PageEvaluation:
        """Same pipeline against a live page, with the merchant's amount retries."""
        snapshot = snapshot or page.snapshot()
        verdict, category, early = self._pre_checkout(snapshot)
        if early is not None:
            return early
        amount = await self.estimator.estimate_with_retry(page, self.classifier.site_rule(verdict.merchant))
        return self._finish(snapshot, verdict, category, amount)

    def record_transaction(
        self,
        *,
        merchant_name: str,
        category: str,
        amount: float,
        recommended_card: str,
        card_used: str | None = None,
        potential_savings: float = 0.0,
    ) -> Transaction:
        transaction = Transaction(
            id=uuid.uuid4().hex,
            merchant_name=merchant_name,
            category=category,
            amount=amount,
            card_used=card_used,
            recommended_card=recommended_card,
            potential_savings=potential_savings,
        )
        self.repository.add_transaction(transaction)

        if card_used:
            card = next((c for c in self.repository.get_cards() if c.id == card_used), None)
            rule = find_best_rule(card, category) if card else None
            if rule is not None and rule.cap is not None:
                self.repository.update_cap_usage(card_used, rule.category, amount)
        return transaction

    def recommend(self, request: RecommendRequest) -> RecommendResponse:
        if request.category:
            category = request.category
        elif request.url:
            category = self.resolver.category_of(request.url)
        else:
            raise ValueError("Either category or url is required.")

        comparison, _ = self.compare(category, request.amount)
        return RecommendResponse(
            category=category,
            amount=request.amount,
            best=comparison.best,
            alternatives=comparison.alternatives,
            potential_savings=comparison.potential_savings,
        )

from cartwise.domain.models import CardComparison, CreditCard, Recommendation
from cartwise.engine.evaluator import evaluate_card

ALTERNATIVES_SHOWN = 2


def rank_cards(cards: list[CreditCard], category: str, amount: float) -> list[Recommendation]:
    candidates = (evaluate_card(card, category, amount) for card in cards if card.is_active)
    evaluations = [item for item in candidates if item is not None]
    # sort() is stable, so equal rewards keep the caller's card order
    evaluations.sort(key=lambda item: item.reward_amount, reverse=True)
    return evaluations


def recommend(cards: list[CreditCard], category: str, amount: float) -> Recommendation | None:
    ranked = rank_cards(cards, category, amount)
    return ranked[0] if ranked else None


def compare_cards(cards: list[CreditCard], category: str, amount: float) -> CardComparison:
    ranked = rank_cards(cards, category, amount)
    if not ranked:
        return CardComparison(best=None, alternatives=[], potential_savings=0.0)
    return CardComparison(
        best=ranked[0],
        alternatives=ranked[1 : 1 + ALTERNATIVES_SHOWN],
        potential_savings=ranked[0].reward_amount - ranked[-1].reward_amount,
    )

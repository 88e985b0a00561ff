from cartwise.domain.models import CreditCard, Recommendation, RewardRule


def _money(value: float) -> str:
    """``1500.0`` -> ``"1500"``, ``1500.5`` -> ``"1500.5"``."""
    return f"{value:.2f}".rstrip("0").rstrip(".")


def find_best_rule(card: CreditCard, category: str) -> RewardRule | None:
    for wanted in (category, "general"):
        rule = next((r for r in card.reward_structure if r.category == wanted), None)
        if rule is not None:
            return rule
    if category == "general":
        return next((r for r in card.reward_structure if r.category == "online"), None)
    return None


def evaluate_card(card: CreditCard, category: str, amount: float) -> Recommendation | None:
    rule = find_best_rule(card, category)
    if rule is None:
        return None

    rate = rule.reward_rate
    base = amount
    reasoning = f"{rate * 100:.1f}% back on {rule.category}"
    is_cap_reached = False
    remaining_cap: float | None = None

    if rule.cap is not None:
        cap = rule.cap
        usage = cap.current_usage
        remaining_cap = max(0.0, cap.amount - usage)
        if usage >= cap.amount:
            base = 0.0
            is_cap_reached = True
            reasoning += f" (cap reached: ${_money(cap.amount)} {cap.period})"
        elif usage + amount > cap.amount:
            base = cap.amount - usage
            reasoning += f" (partial: ${base:.2f} until ${_money(cap.amount)} {cap.period} cap)"
        else:
            reasoning += f" (${usage + amount:.2f} of ${_money(cap.amount)} {cap.period} cap used)"

    return Recommendation(
        card=card,
        category=rule.category,
        reward_rate=rate,
        effective_amount=base,
        reward_amount=base * rate,
        reasoning=reasoning,
        is_cap_reached=is_cap_reached,
        remaining_cap=remaining_cap,
    )

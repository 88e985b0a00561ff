import pytest

from cartwise.engine.evaluator import evaluate_card, find_best_rule
from cartwise.engine.selectors import compare_cards, rank_cards, recommend

from conftest import make_card


def test_recommend_prefers_category_bonus_over_general() -> None:
    cards = [make_card("flex", ("groceries", 0.05)), make_card("double", ("general", 0.02))]

    best = recommend(cards, "groceries", 100)

    assert best is not None
    assert best.card.id == "flex"
    assert best.reward_rate == 0.05
    assert best.reward_amount == pytest.approx(5.00)
    assert best.reasoning == "5.0% back on groceries"


def test_recommend_falls_back_to_general_rule() -> None:
    cards = [make_card("flex", ("groceries", 0.05)), make_card("double", ("general", 0.02))]

    best = recommend(cards, "electronics", 100)

    assert best.card.id == "double"
    assert best.reward_amount == pytest.approx(2.00)
    assert best.category == "general"


def test_online_rule_only_backs_general_category() -> None:
    card = make_card("web", ("online", 0.03))

    assert find_best_rule(card, "general").category == "online"
    assert find_best_rule(card, "groceries") is None


def test_no_matching_rule_returns_none() -> None:
    cards = [make_card("gas", ("gas", 0.04))]

    assert recommend(cards, "dining", 50) is None
    assert recommend([], "dining", 50) is None


def test_inactive_cards_are_ignored() -> None:
    cards = [make_card("off", ("groceries", 0.06), active=False), make_card("on", ("groceries", 0.03))]

    assert recommend(cards, "groceries", 100).card.id == "on"


def test_partial_cap_uses_remaining_headroom() -> None:
    card = make_card("capped", ("groceries", 0.05, (1500, 1450)))

    result = evaluate_card(card, "groceries", 100)

    assert result.effective_amount == pytest.approx(50)
    assert result.reward_amount == pytest.approx(2.50)
    assert result.remaining_cap == pytest.approx(50)
    assert result.is_cap_reached is False
    assert result.reasoning == "5.0% back on groceries (partial: $50.00 until $1500 monthly cap)"


def test_exhausted_cap_earns_nothing() -> None:
    card = make_card("capped", ("groceries", 0.05, (1500, 1600)))

    result = evaluate_card(card, "groceries", 100)

    assert result.reward_amount == 0
    assert result.is_cap_reached is True
    assert result.remaining_cap == 0
    assert result.reasoning.endswith("(cap reached: $1500 monthly)")


def test_usage_note_when_within_cap() -> None:
    card = make_card("capped", ("groceries", 0.05, (1500, 1150)))

    result = evaluate_card(card, "groceries", 100)

    assert result.reward_amount == pytest.approx(5.0)
    assert result.reasoning.endswith("($1250.00 of $1500 monthly cap used)")


@pytest.mark.parametrize("amount", [0.5, 49.99, 50, 51, 1_000, 9_999.99])
def test_capped_reward_never_exceeds_rate_times_cap(amount: float) -> None:
    card = make_card("capped", ("groceries", 0.05, (1500, 1450)))

    result = evaluate_card(card, "groceries", amount)

    assert result.reward_amount <= 0.05 * 1500
    assert result.effective_amount <= 1500 - 1450


def test_engine_does_not_mutate_caps() -> None:
    card = make_card("capped", ("groceries", 0.05, (1500, 1450)))

    evaluate_card(card, "groceries", 100)

    assert card.reward_structure[0].cap.current_usage == 1450


def test_ties_keep_input_order() -> None:
    cards = [make_card("first", ("general", 0.02)), make_card("second", ("general", 0.02))]

    assert recommend(cards, "general", 100).card.id == "first"
    assert recommend(list(reversed(cards)), "general", 100).card.id == "second"


def test_recommend_is_deterministic() -> None:
    cards = [
        make_card("a", ("groceries", 0.03)),
        make_card("b", ("general", 0.03)),
        make_card("c", ("groceries", 0.05, (100, 90))),
    ]

    assert recommend(cards, "groceries", 80) == recommend(cards, "groceries", 80)


def test_zero_reward_card_is_still_recommended() -> None:
    cards = [make_card("capped", ("groceries", 0.05, (1500, 1500)))]

    best = recommend(cards, "groceries", 100)

    assert best is not None
    assert best.reward_amount == 0


def test_rank_and_compare_cards() -> None:
    cards = [
        make_card("one", ("general", 0.01)),
        make_card("five", ("groceries", 0.05)),
        make_card("three", ("groceries", 0.03)),
        make_card("two", ("general", 0.02)),
    ]

    ranked = rank_cards(cards, "groceries", 200)
    comparison = compare_cards(cards, "groceries", 200)

    assert [r.card.id for r in ranked] == ["five", "three", "two", "one"]
    assert comparison.best.card.id == "five"
    assert [r.card.id for r in comparison.alternatives] == ["three", "two"]
    assert comparison.potential_savings == pytest.approx(10.0 - 2.0)


def test_compare_cards_without_matches() -> None:
    comparison = compare_cards([make_card("gas", ("gas", 0.04))], "dining", 100)

    assert comparison.best is None
    assert comparison.alternatives == []
    assert comparison.potential_savings == 0

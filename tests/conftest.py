from __future__ import annotations

import pytest

from cartwise.config import Settings
from cartwise.domain.models import Cap, CreditCard, RewardRule
from cartwise.repository.card_repository import CardRepository
from cartwise.repository.store import InMemoryStore


def make_card(card_id: str, *rules: tuple, active: bool = True) -> CreditCard:
    """``make_card("c1", ("groceries", 0.05), ("general", 0.01, (1500, 1450)))``"""
    structure = []
    for rule in rules:
        category, rate, *cap = rule
        cap_model = None
        if cap:
            amount, usage = cap[0]
            cap_model = Cap(amount=amount, period="monthly", current_usage=usage)
        structure.append(RewardRule(category=category, reward_rate=rate, cap=cap_model))
    return CreditCard(id=card_id, name=f"Card {card_id}", reward_structure=structure, is_active=active)


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def repository(store: InMemoryStore, clock: FakeClock) -> CardRepository:
    return CardRepository(store, max_transactions=1000, clock=clock)


@pytest.fixture
def fast_settings() -> Settings:
    return Settings(
        poll_interval_s=0.05,
        url_poll_interval_s=0.02,
        url_change_delay_s=0.02,
        initial_check_delay_s=0.02,
        overlay_cooldown_s=30.0,
        display_timeout_s=30.0,
        cards_changed_delay_s=0.02,
    )

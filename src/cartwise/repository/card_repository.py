"""Typed access to the persisted entries.

Every read degrades to an empty default when the store is gone or holds
something of the wrong shape; every write is dropped (and logged) when the
store is gone. Callers never see storage exceptions.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from cartwise.config import settings as app_settings
from cartwise.domain.models import CachedCartAmount, CreditCard, Transaction, UserSettings
from cartwise.errors import HostUnavailableError, MalformedStoredDataError
from cartwise.repository.store import KeyValueStore

logger = logging.getLogger(__name__)

CARDS_KEY = "cards"
LEGACY_CARDS_KEY = "creditCards"
TRANSACTIONS_KEY = "transactions"
SETTINGS_KEY = "settings"
CART_AMOUNT_KEY = "lastCartAmount"

M = TypeVar("M", bound=BaseModel)


def _dump(model: BaseModel) -> dict[str, Any]:
    return model.model_dump(mode="json", by_alias=True)


class CardRepository:
    def __init__(
        self,
        store: KeyValueStore,
        max_transactions: int = app_settings.max_transactions,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.max_transactions = max_transactions
        self.clock = clock

    # -- raw access -------------------------------------------------------

    def _read(self, key: str) -> Any:
        try:
            return self.store.get(key)
        except HostUnavailableError:
            logger.warning("store unavailable, reading %s as empty", key)
            return None

    def _write(self, items: dict[str, Any]) -> bool:
        try:
            self.store.set(items)
        except HostUnavailableError:
            logger.warning("store unavailable, dropped write of %s", ", ".join(items))
            return False
        return True

    def _remove(self, key: str) -> None:
        try:
            self.store.remove(key)
        except HostUnavailableError:
            logger.warning("store unavailable, dropped removal of %s", key)

    def _read_list(self, key: str, model: type[M]) -> list[M]:
        try:
            return self._parse_list(key, self._read(key), model)
        except MalformedStoredDataError as exc:
            logger.warning("%s; treating as empty", exc)
            return []

    @staticmethod
    def _parse_list(key: str, raw: Any, model: type[M]) -> list[M]:
        if raw is None:
            return []
        if not isinstance(raw, list):
            raise MalformedStoredDataError(f"{key} is not a list", key=key)
        items: list[M] = []
        for position, item in enumerate(raw):
            try:
                items.append(model.model_validate(item))
            except ValidationError:
                logger.warning("dropping malformed %s entry at index %d", key, position)
        return items

    # -- cards ------------------------------------------------------------

    def get_cards(self) -> list[CreditCard]:
        cards = self._read_list(CARDS_KEY, CreditCard)
        if cards:
            return cards

        legacy = self._read_list(LEGACY_CARDS_KEY, CreditCard)
        if legacy:
            logger.info("migrating %d cards from %s", len(legacy), LEGACY_CARDS_KEY)
            if self._write({CARDS_KEY: [_dump(card) for card in legacy]}):
                self._remove(LEGACY_CARDS_KEY)
        return legacy

    def save_cards(self, cards: list[CreditCard]) -> None:
        self._write({CARDS_KEY: [_dump(card) for card in cards]})

    def save_card(self, card: CreditCard) -> None:
        cards = self.get_cards()
        for index, existing in enumerate(cards):
            if existing.id == card.id:
                cards[index] = card
                break
        else:
            cards.append(card)
        self.save_cards(cards)

    def delete_card(self, card_id: str) -> None:
        self.save_cards([card for card in self.get_cards() if card.id != card_id])

    def update_cap_usage(self, card_id: str, category: str, amount: float) -> bool:
        """Add confirmed spend to the card's cap for ``category``."""
        cards = self.get_cards()
        card = next((c for c in cards if c.id == card_id), None)
        if card is None:
            return False
        rule = next((r for r in card.reward_structure if r.category == category), None)
        if rule is None or rule.cap is None:
            return False
        rule.cap.current_usage += amount
        self.save_cards(cards)
        return True

    def reset_cap_usage(self, period: str) -> None:
        cards = self.get_cards()
        for card in cards:
            for rule in card.reward_structure:
                if rule.cap is not None and rule.cap.period == period:
                    rule.cap.current_usage = 0
        self.save_cards(cards)

    # -- transactions -----------------------------------------------------

    def get_transactions(self) -> list[Transaction]:
        return self._read_list(TRANSACTIONS_KEY, Transaction)

    def add_transaction(self, transaction: Transaction) -> None:
        transactions = self.get_transactions()
        transactions.append(transaction)
        if len(transactions) > self.max_transactions:
            transactions = transactions[-self.max_transactions:]
        self._write({TRANSACTIONS_KEY: [_dump(t) for t in transactions]})

    # -- settings ---------------------------------------------------------

    def get_settings(self) -> UserSettings:
        raw = self._read(SETTINGS_KEY)
        if raw is None:
            return UserSettings()
        try:
            return UserSettings.model_validate(raw)
        except ValidationError:
            logger.warning("malformed settings; using defaults")
            return UserSettings()

    def save_settings(self, user_settings: UserSettings) -> None:
        self._write({SETTINGS_KEY: _dump(user_settings)})

    # -- cart amount cache ------------------------------------------------

    def cache_cart_amount(self, amount: float, url: str) -> None:
        entry = CachedCartAmount(amount=amount, timestamp=self.clock() * 1000, url=url)
        self._write({CART_AMOUNT_KEY: _dump(entry)})

    def get_cached_cart_amount(self, ttl_s: float) -> CachedCartAmount | None:
        raw = self._read(CART_AMOUNT_KEY)
        if raw is None:
            return None
        try:
            entry = CachedCartAmount.model_validate(raw)
        except ValidationError:
            logger.warning("malformed %s; ignoring", CART_AMOUNT_KEY)
            return None
        age_ms = self.clock() * 1000 - entry.timestamp
        if age_ms < 0 or age_ms >= ttl_s * 1000:
            return None
        return entry

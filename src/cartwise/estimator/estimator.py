"""Best-guess transaction total for a checkout page.

``estimate`` is a single synchronous shot over one snapshot.
``estimate_with_retry`` re-snapshots a live page on the merchant's retry
schedule because many checkouts render the total asynchronously. When the
live passes find nothing, both fall back to a fresh cart amount recorded on
the same site, then to the configured default. Neither ever raises.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from urllib.parse import urlparse

from cartwise.checkout.rules import GENERIC_RULE, SiteRule
from cartwise.config import Settings, settings
from cartwise.domain.merchants import normalize_hostname
from cartwise.estimator.passes import AmountBounds, AmountCandidate, scored_pass, selector_pass, text_pass
from cartwise.page.snapshot import PageSnapshot
from cartwise.page.source import PageSource
from cartwise.repository.card_repository import CardRepository

logger = logging.getLogger(__name__)


class AmountEstimator:
    def __init__(self, repository: CardRepository | None = None, config: Settings = settings):
        self.repository = repository
        self.config = config
        self.bounds = AmountBounds(config.min_amount, config.max_amount)

    @property
    def default_amount(self) -> float:
        return self.config.default_amount

    def find_amount(self, page: PageSnapshot, rule: SiteRule = GENERIC_RULE) -> AmountCandidate | None:
        passes = (
            ("text", lambda: text_pass(page, self.bounds)),
            ("selector", lambda: selector_pass(page, rule, self.bounds)),
            ("scored", lambda: scored_pass(page, self.bounds)),
        )
        for name, run in passes:
            try:
                candidate = run()
            except Exception:  # noqa: BLE001
                logger.warning("%s pass failed on %s", name, page.url, exc_info=True)
                continue
            if candidate is not None and candidate.amount > 0:
                return candidate
        return None

    def estimate(self, page: PageSnapshot, rule: SiteRule = GENERIC_RULE) -> float:
        candidate = self.find_amount(page, rule)
        if candidate is not None:
            return candidate.amount
        return self._fallback(page.url)

    def remember_cart_amount(self, page: PageSnapshot, rule: SiteRule = GENERIC_RULE) -> float | None:
        """Snapshot the running total of a cart view for later checkout steps."""
        candidate = self.find_amount(page, rule)
        if candidate is None:
            return None
        if self.repository is not None:
            self.repository.cache_cart_amount(candidate.amount, page.url)
            logger.debug("cached cart amount %s from %s", candidate.amount, page.url)
        return candidate.amount

    def cached_amount(self, url: str) -> float | None:
        """Fresh cart amount recorded on the same site as ``url``."""
        if self.repository is None:
            return None
        entry = self.repository.get_cached_cart_amount(self.config.cart_cache_ttl_s)
        if entry is None:
            return None
        same_site = normalize_hostname(urlparse(entry.url).hostname or "") == normalize_hostname(
            urlparse(url).hostname or ""
        )
        return entry.amount if same_site else None

    async def estimate_with_retry(self, source: PageSource, rule: SiteRule = GENERIC_RULE) -> float:
        policy = rule.retry
        wake = asyncio.Event()
        unsubscribe = source.subscribe_mutations(wake.set) if policy.watch_mutations else None
        try:
            for attempt, delay in enumerate(policy.delays):
                if delay > 0:
                    with contextlib.suppress(asyncio.TimeoutError):
                        await asyncio.wait_for(wake.wait(), timeout=delay)
                wake.clear()
                candidate = self._attempt(source, rule)
                if candidate is not None and policy.accepts(attempt, candidate.amount):
                    logger.debug(
                        "amount %s accepted on attempt %d/%d (%s)",
                        candidate.amount, attempt + 1, policy.attempts, candidate.source,
                    )
                    return candidate.amount
        finally:
            if unsubscribe is not None:
                unsubscribe()

        return self._fallback(source.url)

    def _fallback(self, url: str) -> float:
        cached = self.cached_amount(url)
        if cached is not None:
            logger.debug("using cached cart amount %s", cached)
            return cached
        logger.debug("no amount found on %s, using default", url)
        return self.default_amount

    def _attempt(self, source: PageSource, rule: SiteRule) -> AmountCandidate | None:
        try:
            page = source.snapshot()
        except Exception:  # noqa: BLE001
            logger.debug("page snapshot failed", exc_info=True)
            return None
        return self.find_amount(page, rule)

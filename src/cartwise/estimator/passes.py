"""The three amount-extraction passes.

Each pass returns at most one ``AmountCandidate`` and never raises: a broken
selector or odd element is skipped and the scan carries on.

1. text     – ordered regexes over the whole visible text
2. selector – merchant (or generic) CSS selectors, first numeric hit
3. scored   – every short element carrying a ``$``, scored by keyword and
              magnitude; highest non-negative score wins, ties go to the
              larger amount
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from cartwise.checkout.rules import SiteRule
from cartwise.estimator.patterns import ELEMENT_PATTERNS, TEXT_PATTERNS, in_range, parse_amount
from cartwise.page.code_filter import looks_like_code
from cartwise.page.snapshot import PageSnapshot, element_text

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AmountCandidate:
    amount: float
    source_text: str
    score: int = 0
    source: str = ""


@dataclass(frozen=True, slots=True)
class AmountBounds:
    low: float = 1.0
    high: float = 10_000.0


GENERIC_SELECTORS: tuple[str, ...] = (
    ".total", ".grand-total", ".final-total", ".order-total", ".checkout-total",
    ".estimated-total", ".cart-total", ".summary-total", ".payment-total",
    ".total-amount", ".amount-total", ".price-total", ".total-price",
    '[class*="total"]', '[class*="Total"]', '[class*="TOTAL"]',
    '[class*="amount"]', '[class*="Amount"]', '[class*="price"]', '[class*="Price"]',
    '[id*="total"]', '[id*="Total"]', '[id*="amount"]', '[id*="Amount"]',
    '[data-testid*="total"]', '[data-test*="total"]', '[data-qa*="total"]',
    '[data-testid*="amount"]', '[data-test*="amount"]', '[data-qa*="amount"]',
    '[data-automation-id*="total"]', '[data-automation-id*="amount"]',
    ".cart-summary .total", ".payment-summary .total", ".order-summary .total",
    ".checkout-summary .total", ".billing-summary .total",
    ".cart-summary", ".payment-summary", ".order-summary", ".checkout-summary",
    ".summary", ".subtotal", ".tax-total", ".shipping-total",
    ".price-summary", ".cost-summary", ".amount-summary", ".total-container",
    ".order-container .total", ".payment-container .total",
)

# Cumulative: "order total" also earns the plain "total" bonus.
KEYWORD_BONUS: tuple[tuple[str, int], ...] = (
    ("estimated total", 2000),
    ("order total", 1200),
    ("grand total", 1100),
    ("final total", 1000),
    ("cart total", 900),
    ("checkout total", 850),
    ("amount due", 700),
    ("total", 600),
    ("subtotal", 450),
    ("summary", 350),
)
NO_KEYWORD_PENALTY = -800
TINY_AMOUNT = 3.0
TINY_AMOUNT_PENALTY = -1000
MAGNITUDE_BONUS: tuple[tuple[float, int], ...] = ((15.0, 250), (10.0, 150), (5.0, 100))

SCORED_TEXT_LIMIT = 200
_SCORED_EXTRA_PATTERN = re.compile(r"\$(\d+(?:\.\d{1,2})?)(?![\d,]|\.\d)")


def text_pass(page: PageSnapshot, bounds: AmountBounds) -> AmountCandidate | None:
    text = page.visible_text
    if not text:
        return None
    for name, pattern in TEXT_PATTERNS:
        match = pattern.search(text)
        if match is None:
            continue
        amount = parse_amount(match.group(1))
        if in_range(amount, bounds.low, bounds.high):
            logger.debug("text pass hit %r -> %s", name, amount)
            return AmountCandidate(amount, match.group(0), source=f"text:{name}")
    return None


def _first_amount(text: str, low: float, high: float) -> float | None:
    for pattern in ELEMENT_PATTERNS:
        match = pattern.search(text)
        if match is None:
            continue
        amount = parse_amount(match.group(1))
        if in_range(amount, low, high):
            return amount
    return None


def _scan_selectors(
    page: PageSnapshot, selectors: tuple[str, ...], low: float, high: float, source: str
) -> AmountCandidate | None:
    for selector in selectors:
        for el in page.select(selector):
            text = element_text(el)
            if text and looks_like_code(text):
                continue
            for candidate_text in (text, (el.get("aria-label") or "").strip()):
                if not candidate_text:
                    continue
                amount = _first_amount(candidate_text, low, high)
                if amount is not None:
                    logger.debug("selector pass hit %s -> %s", selector, amount)
                    return AmountCandidate(amount, candidate_text[:200], source=f"{source}:{selector}")
    return None


def selector_pass(page: PageSnapshot, rule: SiteRule, bounds: AmountBounds) -> AmountCandidate | None:
    selectors = rule.amount_selectors or GENERIC_SELECTORS
    found = _scan_selectors(page, selectors, 0.0, bounds.high, "selector")
    if found is not None:
        return found
    if rule.secondary_selectors:
        return _scan_selectors(
            page, rule.secondary_selectors, rule.secondary_min_amount, bounds.high, "secondary"
        )
    return None


def score_candidate(amount: float, text: str) -> int:
    lowered = text.lower()
    score = 0
    matched = False
    for keyword, bonus in KEYWORD_BONUS:
        if keyword in lowered:
            score += bonus
            matched = True
    if not matched:
        score += NO_KEYWORD_PENALTY
    for threshold, bonus in MAGNITUDE_BONUS:
        if amount >= threshold:
            score += bonus
    if amount < TINY_AMOUNT:
        score += TINY_AMOUNT_PENALTY
    return score


def scored_pass(page: PageSnapshot, bounds: AmountBounds) -> AmountCandidate | None:
    best: AmountCandidate | None = None
    for el in page.elements():
        try:
            text = element_text(el)
        except ValueError:
            continue
        if "$" not in text or len(text) >= SCORED_TEXT_LIMIT or looks_like_code(text):
            continue
        for pattern in (*ELEMENT_PATTERNS, _SCORED_EXTRA_PATTERN):
            match = pattern.search(text)
            if match is None:
                continue
            amount = parse_amount(match.group(1))
            if not in_range(amount, bounds.low, bounds.high):
                continue
            score = score_candidate(amount, text)
            if best is None or (score, amount) > (best.score, best.amount):
                best = AmountCandidate(amount, text, score, source="scored")
    if best is None:
        return None
    if best.score < 0:
        logger.debug("scored pass rejected %s (score %s)", best.amount, best.score)
        return None
    logger.debug("scored pass best %s (score %s)", best.amount, best.score)
    return best

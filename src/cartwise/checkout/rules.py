"""Per-merchant site rules.

Each record bundles what a merchant needs beyond the generic heuristics:
checkout/cart predicates, amount selectors and how patiently to wait for the
total to render. Rules are resolved once per merchant domain.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from cartwise.page.snapshot import PageSnapshot

PagePredicate = Callable[[PageSnapshot], bool]


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Delays (seconds) slept before each attempt; ``len(delays)`` attempts."""

    delays: tuple[float, ...] = (0.0, 1.0, 2.0)
    early_attempts: int = 0
    early_min_amount: float = 0.0
    watch_mutations: bool = False

    @property
    def attempts(self) -> int:
        return len(self.delays)

    def accepts(self, attempt: int, amount: float) -> bool:
        if attempt < self.early_attempts:
            return amount > self.early_min_amount
        return amount > 0


@dataclass(frozen=True, slots=True)
class SiteRule:
    domain: str
    is_checkout: PagePredicate | None = None
    is_cart_view: PagePredicate | None = None
    amount_selectors: tuple[str, ...] = ()
    secondary_selectors: tuple[str, ...] = ()
    secondary_min_amount: float = 0.0
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    show_delay_s: float = 0.0


def _amazon_cart_view(page: PageSnapshot) -> bool:
    return "/gp/cart/" in page.url_lower


def _amazon_checkout(page: PageSnapshot) -> bool:
    url = page.url_lower
    if _amazon_cart_view(page):
        return False
    return (
        "/gp/buy/spc/" in url
        or "/checkout/p/" in url
        or "/checkout/" in url
        or "pipelinetype=chewbacca" in url
    )


def _costco_checkout(page: PageSnapshot) -> bool:
    url = page.url_lower
    return "/checkout" in url and "/cart" not in url and "signin" not in url


def _url_contains_any(*needles: str) -> PagePredicate:
    def _predicate(page: PageSnapshot) -> bool:
        return any(needle in page.url_lower for needle in needles)

    return _predicate


AMAZON = SiteRule(
    domain="amazon.com",
    is_checkout=_amazon_checkout,
    is_cart_view=_amazon_cart_view,
    amount_selectors=(
        # cart page
        "#subtotals-marketplace .a-price .a-offscreen",
        "#subtotals-marketplace .a-price-whole",
        ".grand-total-price .a-price .a-offscreen",
        ".order-total .a-price .a-offscreen",
        ".pmts-summary-preview-single-item-amount .a-price .a-offscreen",
        ".a-price.a-text-price.a-size-medium.a-color-price .a-offscreen",
        # checkout page
        ".order-summary-content .a-price .a-offscreen",
        ".pmts-order-summary .a-price .a-offscreen",
        ".pmts-summary-preview .a-price .a-offscreen",
        ".order-summary .grand-total-price .a-offscreen",
        ".payment-summary .grand-total .a-offscreen",
        ".pmts-widget-section .a-price .a-offscreen",
        ".pmts-summary .a-price .a-offscreen",
        ".order-total-container .a-price .a-offscreen",
        '[data-testid="order-total"] .a-price .a-offscreen',
        ".checkout-order-summary .a-price .a-offscreen",
        ".payment-widget .a-price .a-offscreen",
        ".order-summary-widget .a-price .a-offscreen",
    ),
    secondary_selectors=(
        ".a-price .a-offscreen",
        ".a-price-whole",
        ".a-price-fraction",
        ".pmts-summary .a-price",
        ".order-summary .a-price",
        ".payment-summary .a-price",
        ".checkout-summary .a-price",
        ".grand-total .a-price",
        ".order-total .a-price",
    ),
    secondary_min_amount=5.0,
    retry=RetryPolicy(delays=(0.0,) + (0.5,) * 9, watch_mutations=True),
)

SAFEWAY = SiteRule(
    domain="safeway.com",
    is_checkout=_url_contains_any("/checkout", "/payment"),
    amount_selectors=(
        ".order-total .price",
        ".total-amount .price",
        ".checkout-total .amount",
        ".grand-total",
        ".estimated-total",
        '[data-testid="estimated-total"]',
        ".order-summary .total",
        ".summary-total",
        '[class*="total"]',
        '[class*="Total"]',
        '[id*="total"]',
        '[id*="Total"]',
        '.price[class*="total"]',
        '[data-automation-id*="total"]',
    ),
    retry=RetryPolicy(delays=(0.0, 1.0, 2.0, 3.0, 4.0), early_attempts=2, early_min_amount=10.0),
    show_delay_s=2.0,
)

SITE_RULES: tuple[SiteRule, ...] = (
    AMAZON,
    SAFEWAY,
    SiteRule(domain="costco.com", is_checkout=_costco_checkout),
    SiteRule(
        domain="walmart.com",
        is_checkout=_url_contains_any("/checkout", "/pay"),
        amount_selectors=(
            '[data-automation-id="order-total"] .w_iUH7',
            ".order-total-line .price-display",
            '[data-testid="subtotal-value"]',
            ".subtotal-amount",
        ),
    ),
    SiteRule(
        domain="target.com",
        is_checkout=_url_contains_any("/checkout", "/payment"),
        amount_selectors=(
            '[data-test="order-summary-total"]',
            '[data-test="total-price"]',
            ".order-total .h-text-lg",
        ),
    ),
    SiteRule(
        domain="bestbuy.com",
        amount_selectors=(
            ".order-summary__total .sr-only",
            ".pricing-price__range .sr-only",
            ".order-total .amount",
        ),
    ),
)

GENERIC_RULE = SiteRule(domain="")

_BY_DOMAIN = {rule.domain: rule for rule in SITE_RULES}


def rule_for(domain: str | None) -> SiteRule:
    """Rule registered for a merchant domain, or the generic rule."""
    if not domain:
        return GENERIC_RULE
    return _BY_DOMAIN.get(domain, GENERIC_RULE)

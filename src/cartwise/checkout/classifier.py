"""Decide whether a page snapshot is a genuine payment step.

Order matters: account/authentication pages are rejected before any inclusion
rule runs, because sign-in interstitials reuse checkout vocabulary in their
URLs (``/signin?redirect=/checkout``). A merchant's own site rule is
authoritative; the generic URL + DOM heuristics only apply to merchants
without one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from cartwise.checkout.rules import SiteRule, rule_for
from cartwise.domain.merchants import MerchantResolver, default_resolver
from cartwise.domain.models import Merchant
from cartwise.page.snapshot import PageSnapshot

logger = logging.getLogger(__name__)

EXCLUDE_KEYWORDS: tuple[str, ...] = (
    "signin",
    "sign-in",
    "login",
    "auth",
    "register",
    "signup",
    "sign-up",
    "forgot-password",
    "reset-password",
    "verify",
    "confirmation",
    "oauth",
    "sso",
    "account",
    "profile",
    "settings",
)

CHECKOUT_KEYWORDS: tuple[str, ...] = ("checkout", "payment", "billing")

CHECKOUT_AFFORDANCES: tuple[str, ...] = (
    ".checkout-button",
    '[data-testid*="checkout"]',
    ".payment-section",
    ".place-order",
    ".complete-order",
)


@dataclass(frozen=True, slots=True)
class CheckoutVerdict:
    is_checkout: bool
    reason: str
    merchant: Merchant | None = None
    is_cart_view: bool = False


def excluded_keyword(page: PageSnapshot) -> str | None:
    """First exclusion keyword present in the hostname or URL, if any."""
    hostname = page.hostname
    url = page.url_lower
    for keyword in EXCLUDE_KEYWORDS:
        if keyword in hostname or f"/{keyword}" in url or f"{keyword}." in url:
            return keyword
    return None


class CheckoutClassifier:
    def __init__(self, resolver: MerchantResolver = default_resolver):
        self.resolver = resolver

    def site_rule(self, merchant: Merchant | None) -> SiteRule:
        return rule_for(merchant.domain if merchant else None)

    def classify(self, page: PageSnapshot) -> CheckoutVerdict:
        merchant = self.resolver.resolve(page.hostname)

        keyword = excluded_keyword(page)
        if keyword:
            logger.debug("excluded page (%s): %s", keyword, page.url)
            return CheckoutVerdict(False, f"excluded: {keyword}", merchant)

        rule = self.site_rule(merchant)
        if rule.is_checkout is not None:
            return self._apply_site_rule(page, rule, merchant)

        return self._generic(page, merchant)

    def is_checkout(self, page: PageSnapshot) -> bool:
        return self.classify(page).is_checkout

    def _apply_site_rule(self, page: PageSnapshot, rule: SiteRule, merchant: Merchant | None) -> CheckoutVerdict:
        cart_view = bool(rule.is_cart_view and rule.is_cart_view(page))
        if cart_view:
            return CheckoutVerdict(False, f"cart view ({rule.domain})", merchant, is_cart_view=True)
        is_checkout = rule.is_checkout(page)
        logger.debug("site rule %s -> %s", rule.domain, is_checkout)
        state = "checkout" if is_checkout else "not checkout"
        return CheckoutVerdict(is_checkout, f"site rule ({rule.domain}): {state}", merchant)

    def _generic(self, page: PageSnapshot, merchant: Merchant | None) -> CheckoutVerdict:
        path = page.path
        for keyword in CHECKOUT_KEYWORDS:
            if f"/{keyword}" in path or f"{keyword}/" in path:
                return CheckoutVerdict(True, f"url keyword: {keyword}", merchant)

        if "/cart" in page.url_lower:
            affordances = CHECKOUT_AFFORDANCES + (merchant.checkout_selectors if merchant else ())
            if page.has_any(affordances):
                return CheckoutVerdict(True, "cart with checkout controls", merchant)
            return CheckoutVerdict(False, "cart without checkout controls", merchant)

        return CheckoutVerdict(False, "no checkout signals", merchant)

"""Known merchants and hostname → merchant resolution."""

from __future__ import annotations

from cartwise.domain.models import Merchant

MERCHANTS: tuple[Merchant, ...] = (
    # Groceries
    Merchant(
        name="Safeway",
        domain="safeway.com",
        category="groceries",
        checkout_selectors=(".checkout", "#checkout", "[data-testid*='checkout']", ".cart-summary"),
    ),
    Merchant(
        name="Kroger",
        domain="kroger.com",
        category="groceries",
        checkout_selectors=(".checkout", "#checkout", ".payment-section"),
    ),
    Merchant(
        name="Whole Foods",
        domain="wholefoodsmarket.com",
        category="groceries",
        checkout_selectors=(".checkout", "#checkout", ".cart-checkout"),
    ),
    # General / online
    Merchant(
        name="Amazon",
        domain="amazon.com",
        category="online",
        checkout_selectors=("#checkout", ".checkout-page", "#subtotals-marketplace", ".payment-section"),
    ),
    Merchant(
        name="Walmart",
        domain="walmart.com",
        category="general",
        checkout_selectors=(".checkout", "#checkout", ".payment-methods", ".cart-pos-review-checkout"),
    ),
    # Electronics
    Merchant(
        name="Best Buy",
        domain="bestbuy.com",
        category="electronics",
        checkout_selectors=(".checkout", "#checkout", ".payment-section", ".order-summary"),
    ),
    Merchant(
        name="Newegg",
        domain="newegg.com",
        category="electronics",
        checkout_selectors=(".checkout", "#checkout", ".payment-form"),
    ),
    # Department stores
    Merchant(
        name="Target",
        domain="target.com",
        category="department_stores",
        checkout_selectors=(".checkout", "#checkout", "[data-test='checkout-page']", ".payment-section"),
    ),
    Merchant(
        name="Macy's",
        domain="macys.com",
        category="department_stores",
        checkout_selectors=(".checkout", "#checkout", ".payment-methods"),
    ),
    # Warehouse clubs
    Merchant(
        name="Costco",
        domain="costco.com",
        category="warehouse_clubs",
        checkout_selectors=(".checkout", "#checkout", ".payment-section"),
    ),
    # Gas
    Merchant(
        name="Shell",
        domain="shell.com",
        category="gas",
        checkout_selectors=(".checkout", "#checkout", ".payment-form"),
    ),
    # Travel
    Merchant(
        name="Expedia",
        domain="expedia.com",
        category="travel",
        checkout_selectors=(".checkout", "#checkout", ".payment-section", ".booking-form"),
    ),
    Merchant(
        name="Southwest Airlines",
        domain="southwest.com",
        category="travel",
        checkout_selectors=(".checkout", "#checkout", ".payment-section"),
    ),
    # Dining
    Merchant(
        name="DoorDash",
        domain="doordash.com",
        category="dining",
        checkout_selectors=(".checkout", "#checkout", ".payment-section", "[data-testid*='checkout']"),
    ),
    Merchant(
        name="Uber Eats",
        domain="ubereats.com",
        category="dining",
        checkout_selectors=(".checkout", "#checkout", ".payment-methods"),
    ),
    # Pharmacy
    Merchant(
        name="CVS",
        domain="cvs.com",
        category="pharmacy",
        checkout_selectors=(".checkout", "#checkout", ".payment-section"),
    ),
    Merchant(
        name="Walgreens",
        domain="walgreens.com",
        category="pharmacy",
        checkout_selectors=(".checkout", "#checkout", ".payment-form"),
    ),
)

# Second-level labels under which registrations happen one level deeper
# (shop.co.uk keeps three labels, shop.com keeps two).
_SECOND_LEVEL = frozenset({"co", "com", "net", "org", "gov", "ac"})


def normalize_hostname(hostname: str) -> str:
    """Lowercase, drop port and subdomains: ``WWW.Amazon.com:443`` → ``amazon.com``."""
    host = (hostname or "").strip().lower().rstrip(".")
    if "://" in host:
        host = host.split("://", 1)[1]
    host = host.split("/", 1)[0].split("?", 1)[0].split(":", 1)[0]
    labels = [label for label in host.split(".") if label]
    if len(labels) <= 2:
        return ".".join(labels)
    keep = 3 if labels[-2] in _SECOND_LEVEL and len(labels[-1]) == 2 else 2
    return ".".join(labels[-keep:])


class MerchantResolver:
    def __init__(self, merchants: tuple[Merchant, ...] = MERCHANTS):
        self._merchants: list[Merchant] = list(merchants)

    def resolve(self, hostname: str) -> Merchant | None:
        host = normalize_hostname(hostname)
        if not host:
            return None
        for merchant in self._merchants:
            if merchant.domain in host or host in merchant.domain:
                return merchant
        return None

    def category_of(self, hostname: str) -> str:
        merchant = self.resolve(hostname)
        return merchant.category if merchant else "general"

    def all_merchants(self) -> list[Merchant]:
        return list(self._merchants)

    def add_custom_merchant(self, merchant: Merchant) -> None:
        self._merchants.append(merchant)


default_resolver = MerchantResolver()

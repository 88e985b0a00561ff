import pytest

from cartwise.domain.merchants import MERCHANTS, MerchantResolver, normalize_hostname
from cartwise.domain.models import Merchant


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("WWW.Amazon.com:443", "amazon.com"),
        ("smile.amazon.com", "amazon.com"),
        ("https://www.safeway.com/checkout?step=2", "safeway.com"),
        ("shop.example.co.uk", "example.co.uk"),
        ("localhost", "localhost"),
        ("", ""),
    ],
)
def test_normalize_hostname(raw: str, expected: str) -> None:
    assert normalize_hostname(raw) == expected


def test_resolve_known_merchants() -> None:
    resolver = MerchantResolver()

    assert resolver.resolve("www.safeway.com").name == "Safeway"
    assert resolver.resolve("www.amazon.com").category == "online"
    assert resolver.resolve("www.costco.com").category == "warehouse_clubs"
    assert resolver.resolve("order.doordash.com").name == "DoorDash"


def test_unknown_host_defaults_to_general() -> None:
    resolver = MerchantResolver()

    assert resolver.resolve("www.example.org") is None
    assert resolver.resolve("") is None
    assert resolver.category_of("www.example.org") == "general"
    assert resolver.category_of("www.cvs.com") == "pharmacy"


def test_custom_merchant_is_resolved_after_builtins() -> None:
    resolver = MerchantResolver()
    resolver.add_custom_merchant(Merchant(name="Corner Deli", domain="cornerdeli.com", category="dining"))

    assert resolver.category_of("order.cornerdeli.com") == "dining"
    assert len(resolver.all_merchants()) == len(MERCHANTS) + 1
    assert len(MerchantResolver().all_merchants()) == len(MERCHANTS)


def test_merchant_table_domains_are_unique() -> None:
    domains = [merchant.domain for merchant in MERCHANTS]

    assert len(domains) == len(set(domains))

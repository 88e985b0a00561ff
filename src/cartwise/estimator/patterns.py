"""Money regexes and numeric normalization shared by the estimation passes."""

from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

# 1,234.56 | 1234.56 | 17
_NUM = r"(\d{1,3}(?:,\d{3})+(?:\.\d{2})?|\d+(?:\.\d{2})?)(?![\d,]*\.?\d)"

# Ordered from most to least specific; the first plausible hit wins.
TEXT_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = tuple(
    (name, re.compile(pattern, re.IGNORECASE))
    for name, pattern in (
        ("estimated total", rf"estimated\s+total[:\s]*\$\s*{_NUM}"),
        ("order total", rf"order\s+total[:\s]*\$\s*{_NUM}"),
        ("grand total", rf"grand\s+total[:\s]*\$\s*{_NUM}"),
        ("final total", rf"final\s+total[:\s]*\$\s*{_NUM}"),
        ("cart total", rf"cart\s+total[:\s]*\$\s*{_NUM}"),
        ("checkout total", rf"checkout\s+total[:\s]*\$\s*{_NUM}"),
        ("amount due", rf"amount\s+due[:\s]*\$\s*{_NUM}"),
        ("total", rf"(?<!sub)total[:\s]+\$\s*{_NUM}"),
        ("amount before total", rf"\$\s*{_NUM}.{{0,50}}?total"),
        ("total before amount", rf"total.{{0,50}}?\$\s*{_NUM}"),
    )
)

# Pull a number out of a single element's text.
ELEMENT_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(rf"\$\s*{_NUM}"),
    re.compile(rf"{_NUM}\s*\$"),
    re.compile(rf"total[:\s]*\$?\s*{_NUM}", re.IGNORECASE),
    re.compile(r"(?<![\d,.])(\d{1,3}(?:,\d{3})*\.\d{2})(?!\d)"),
)

_CENTS = Decimal("0.01")


def parse_amount(raw: str) -> float | None:
    """``"1,234.5"`` → ``1234.50``; None for anything non-finite or unparsable."""
    cleaned = (raw or "").replace(",", "").strip()
    if not cleaned:
        return None
    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    return float(value.quantize(_CENTS, rounding=ROUND_HALF_UP))


def in_range(amount: float | None, low: float, high: float) -> bool:
    """Open interval check; rejects None as well."""
    return amount is not None and low < amount < high

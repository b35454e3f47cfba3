"""Tolerance table and numeric comparison helpers."""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

HUNDRED = Decimal("100")

# ISO 4217 currencies with no minor unit.
ZERO_DECIMAL_CURRENCIES = frozenset(
    {
        "BIF", "CLP", "DJF", "GNF", "ISK", "JPY", "KMF", "KRW",
        "PYG", "RWF", "UGX", "UYI", "VND", "VUV", "XAF", "XOF", "XPF",
    }
)


@dataclass(frozen=True)
class Tolerances:
    quantity: Decimal = Decimal("1")
    dividend_rate: Decimal = Decimal("0.001")
    tax_rate: Decimal = Decimal("0.1")
    fx_rate: Decimal = Decimal("0.0005")
    amount_2dp: Decimal = Decimal("0.01")
    amount_0dp: Decimal = Decimal("1")
    zero_decimal_currencies: frozenset[str] = field(default=ZERO_DECIMAL_CURRENCIES)

    def amount(self, currency: str) -> Decimal:
        if (currency or "").strip().upper() in self.zero_decimal_currencies:
            return self.amount_0dp
        return self.amount_2dp


def exceeds(difference: Decimal, tolerance: Decimal) -> bool:
    return abs(difference) > tolerance


def pct_diff(first: Decimal, second: Decimal) -> Decimal:
    """Percentage change from ``first`` to ``second``.

    Both zero gives 0 and a zero base gives 100.
    """
    if first == 0 and second == 0:
        return Decimal("0")
    if first == 0:
        return HUNDRED
    return (second - first) / abs(first) * HUNDRED

"""Integer money helpers.

Balances, prices, ledger amounts and product counters are int cents.
Share prices are the one exception: Decimal dollars (see share_price helpers).
"""

from decimal import ROUND_HALF_UP, Decimal

_SHARE_PRICE_QUANTUM = Decimal("0.0001")


def dollars_to_cents(dollars: int) -> int:
    """Whole dollars -> cents: 150 -> 15000."""
    return dollars * 100


def cents_to_display(cents: int) -> str:
    """Convert cents to display string: 6500 -> '$65.00', -1200 -> '-$12.00'."""
    if cents < 0:
        abs_cents = -cents
        return f"-${abs_cents // 100:,}.{abs_cents % 100:02d}"
    return f"${cents // 100:,}.{cents % 100:02d}"


def apply_ratio(cents: int, ratio: float) -> int:
    """cents * ratio, rounded half-up to the nearest cent."""
    scaled = Decimal(cents) * Decimal(str(ratio))
    return int(scaled.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def percent_of(cents: int, pct: int) -> int:
    """Floor of cents * pct / 100 (effects never round money up)."""
    return cents * pct // 100


def quantize_share_price(price: Decimal) -> Decimal:
    return price.quantize(_SHARE_PRICE_QUANTUM, rounding=ROUND_HALF_UP)

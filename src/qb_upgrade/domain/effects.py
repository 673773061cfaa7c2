"""Pure upgrade effect arithmetic.

Money effects floor to whole cents. Share price effects work on Decimal
dollars quantized to 4 places and never go below the minimum share price.
"""

from collections.abc import Iterable
from decimal import Decimal

from src.qb_common.cents import percent_of, quantize_share_price
from src.qb_company.domain.constants import MIN_SHARE_PRICE
from src.qb_company.domain.models import Product

_HUNDRED = Decimal(100)


def revenue_boosts(products: Iterable[Product], pct: int) -> tuple[dict[str, int], int]:
    """New total_revenue per product and the total boost, in cents."""
    new_totals: dict[str, int] = {}
    total_boost = 0
    for product in products:
        boost = percent_of(product.total_revenue, pct)
        new_totals[product.id] = product.total_revenue + boost
        total_boost += boost
    return new_totals, total_boost


def adjust_share_price(price: Decimal, pct: int, raise_price: bool) -> tuple[Decimal, Decimal]:
    """Return (new_price, nominal_effect).

    The effect is price * pct / 100 before clamping, so lowering an already
    minimal price still reports the nominal change.
    """
    delta = price * Decimal(pct) / _HUNDRED
    new_price = price + delta if raise_price else price - delta
    new_price = max(quantize_share_price(new_price), MIN_SHARE_PRICE)
    return new_price, quantize_share_price(delta)


def market_cap(price: Decimal, total_shares: int) -> Decimal:
    return quantize_share_price(price * total_shares)

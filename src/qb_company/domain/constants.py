"""Company economy constants."""

from decimal import Decimal

# Strictly greater than this post-tick balance lists a private company
PUBLIC_LISTING_THRESHOLD = 5_000_000  # $50,000

DEFAULT_SHARE_PRICE = Decimal("0.01")
MIN_SHARE_PRICE = Decimal("0.01")
DEFAULT_TOTAL_SHARES = 1_000_000

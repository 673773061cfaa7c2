"""Marketplace settlement constants. All amounts are int cents."""

# Per-tick demand budget, drawn uniformly (inclusive)
BUDGET_MIN = 30_000_000   # $300,000
BUDGET_MAX = 42_500_000   # $425,000

# Price tiers: cheap <= CHEAP_MAX_PRICE < medium < EXPENSIVE_MIN_PRICE <= expensive
CHEAP_MAX_PRICE = 15_000       # $150
EXPENSIVE_MIN_PRICE = 100_000  # $1,000

TIER_SAMPLE_SIZE = 16
LEFTOVER_SAMPLE_SIZE = 30

# Per product per tick, across the tier, bonus and leftover passes
MAX_UNITS_PER_PRODUCT = 50

# Unit cost = price * ratio, ratio uniform in [COST_RATIO_MIN, COST_RATIO_MAX]
COST_RATIO_MIN = 0.23
COST_RATIO_MAX = 0.67

"""DemandSimulator — the pure, in-memory half of a settlement tick.

Given the active catalog and an injected random.Random, decides which units
the simulated customers buy. Nothing here touches the database; the result is
a SettlementPlan handed to the committer.

Passes, in order:
  1. Each price tier gets budget // 3 (the remainder joins the leftover pool).
     Up to 16 sampled products share the tier budget by random weight and are
     bought highest price first, one unit at a time.
  2. Bonus pass: the rest of the tier pool goes round-robin over the shuffled
     sample, one unit per affordable product per round.
  3. Leftover pass: the unspent pools make one sweep over up to 30 products
     sampled from the whole catalog, at most one unit each.

A product never sells more than 50 units per tick, counting every pass.
"""

import random
from collections.abc import Sequence

from src.qb_common.cents import apply_ratio
from src.qb_common.enums import PriceTier
from src.qb_market.domain.constants import (
    BUDGET_MAX,
    BUDGET_MIN,
    CHEAP_MAX_PRICE,
    COST_RATIO_MAX,
    COST_RATIO_MIN,
    EXPENSIVE_MIN_PRICE,
    LEFTOVER_SAMPLE_SIZE,
    MAX_UNITS_PER_PRODUCT,
    TIER_SAMPLE_SIZE,
)
from src.qb_market.domain.models import (
    CatalogProduct,
    CompanyAggregate,
    PurchaseRecord,
    SettlementPlan,
)

_TIERS = (PriceTier.CHEAP, PriceTier.MEDIUM, PriceTier.EXPENSIVE)


def classify_tier(price: int) -> PriceTier:
    if price <= CHEAP_MAX_PRICE:
        return PriceTier.CHEAP
    if price >= EXPENSIVE_MIN_PRICE:
        return PriceTier.EXPENSIVE
    return PriceTier.MEDIUM


class PurchaseBook:
    """Accumulates purchases and enforces the per-product unit cap."""

    def __init__(self, rng: random.Random) -> None:
        self._rng = rng
        self._units: dict[str, int] = {}
        self.purchases: list[PurchaseRecord] = []
        self.companies: dict[str, CompanyAggregate] = {}

    def remaining_cap(self, product_id: str) -> int:
        return MAX_UNITS_PER_PRODUCT - self._units.get(product_id, 0)

    def buy(self, product: CatalogProduct, tier: PriceTier | None) -> PurchaseRecord:
        if self.remaining_cap(product.product_id) <= 0:
            raise ValueError(f"unit cap reached for product {product.product_id}")
        ratio = self._rng.uniform(COST_RATIO_MIN, COST_RATIO_MAX)
        cost = apply_ratio(product.price, ratio)
        purchase = PurchaseRecord(
            product_id=product.product_id,
            company_id=product.company_id,
            price=product.price,
            cost=cost,
            profit=product.price - cost,
            tier=tier.value if tier is not None else None,
        )
        self._units[product.product_id] = self._units.get(product.product_id, 0) + 1
        self.purchases.append(purchase)
        company = self.companies.get(product.company_id)
        if company is None:
            company = CompanyAggregate(product.company_id, product.account_id)
            self.companies[product.company_id] = company
        company.add(purchase)
        return purchase

    def to_plan(self, budget: int, tier_budget: int, unspent: int) -> SettlementPlan:
        total_spent = sum(p.price for p in self.purchases)
        total_cost = sum(p.cost for p in self.purchases)
        return SettlementPlan(
            budget=budget,
            tier_budget=tier_budget,
            total_spent=total_spent,
            net_flow=total_spent - total_cost,
            units_sold=len(self.purchases),
            unspent=unspent,
            companies=self.companies,
            purchases=self.purchases,
        )


class DemandSimulator:
    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def draw_budget(self) -> int:
        return self._rng.randint(BUDGET_MIN, BUDGET_MAX)

    def simulate(
        self, products: Sequence[CatalogProduct], budget: int | None = None
    ) -> SettlementPlan | None:
        """Run one tick's demand. Returns None for an empty catalog."""
        if not products:
            return None
        if budget is None:
            budget = self.draw_budget()

        tier_budget = budget // len(_TIERS)
        leftover = budget - tier_budget * len(_TIERS)
        book = PurchaseBook(self._rng)

        for tier in _TIERS:
            tier_products = [p for p in products if classify_tier(p.price) == tier]
            leftover += self._settle_tier(tier, tier_products, tier_budget, book)

        sample = self._rng.sample(list(products), min(LEFTOVER_SAMPLE_SIZE, len(products)))
        leftover = self._spend_single_sweep(sample, leftover, book)

        return book.to_plan(budget, tier_budget, unspent=leftover)

    def _settle_tier(
        self,
        tier: PriceTier,
        tier_products: list[CatalogProduct],
        tier_budget: int,
        book: PurchaseBook,
    ) -> int:
        """Spend one tier's budget; returns what is left of it."""
        if not tier_products:
            return tier_budget

        sample = self._rng.sample(tier_products, min(TIER_SAMPLE_SIZE, len(tier_products)))
        weights = [self._rng.random() for _ in sample]
        total_weight = sum(weights)

        allocations: dict[str, int] = {}
        for product, weight in zip(sample, weights):
            share = weight / total_weight if total_weight > 0 else 1 / len(sample)
            allocations[product.product_id] = int(tier_budget * share)

        pool = tier_budget
        for product in sorted(sample, key=lambda p: p.price, reverse=True):
            max_units = min(
                book.remaining_cap(product.product_id),
                allocations[product.product_id] // product.price,
            )
            for _ in range(max_units):
                if pool < product.price:
                    break
                book.buy(product, tier)
                pool -= product.price

        bonus_order = list(sample)
        self._rng.shuffle(bonus_order)
        return self._spend_round_robin(bonus_order, pool, book, tier)

    @staticmethod
    def _spend_round_robin(
        order: list[CatalogProduct],
        pool: int,
        book: PurchaseBook,
        tier: PriceTier,
    ) -> int:
        """One unit per affordable, uncapped product per round until none is left."""
        while True:
            bought = False
            for product in order:
                if product.price <= pool and book.remaining_cap(product.product_id) > 0:
                    book.buy(product, tier)
                    pool -= product.price
                    bought = True
            if not bought:
                return pool

    @staticmethod
    def _spend_single_sweep(
        order: list[CatalogProduct], pool: int, book: PurchaseBook
    ) -> int:
        """At most one unit per product, skipping what the pool cannot afford."""
        for product in order:
            if product.price <= pool and book.remaining_cap(product.product_id) > 0:
                book.buy(product, None)
                pool -= product.price
        return pool

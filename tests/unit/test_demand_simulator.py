"""Tests for qb_market.engine.simulator — the in-memory demand pass."""

import random
from collections import Counter

import pytest

from src.qb_common.enums import PriceTier
from src.qb_market.domain.constants import (
    BUDGET_MAX,
    BUDGET_MIN,
    CHEAP_MAX_PRICE,
    EXPENSIVE_MIN_PRICE,
    MAX_UNITS_PER_PRODUCT,
)
from src.qb_market.domain.models import CatalogProduct
from src.qb_market.engine.simulator import DemandSimulator, PurchaseBook, classify_tier


def _product(product_id: str, price: int, company_id: str = "co-1") -> CatalogProduct:
    return CatalogProduct(
        product_id=product_id,
        company_id=company_id,
        account_id=f"acct-{company_id}",
        price=price,
    )


class TestClassifyTier:
    def test_cheap_upper_bound(self) -> None:
        assert classify_tier(CHEAP_MAX_PRICE) == PriceTier.CHEAP

    def test_medium_bounds(self) -> None:
        assert classify_tier(CHEAP_MAX_PRICE + 1) == PriceTier.MEDIUM
        assert classify_tier(EXPENSIVE_MIN_PRICE - 1) == PriceTier.MEDIUM

    def test_expensive_lower_bound(self) -> None:
        assert classify_tier(EXPENSIVE_MIN_PRICE) == PriceTier.EXPENSIVE

    def test_one_cent_is_cheap(self) -> None:
        assert classify_tier(1) == PriceTier.CHEAP


class TestPurchaseBook:
    def test_buy_records_cost_within_band(self) -> None:
        book = PurchaseBook(random.Random(1))
        purchase = book.buy(_product("p-1", 10_000), PriceTier.CHEAP)

        assert 2_300 <= purchase.cost <= 6_700
        assert purchase.profit == 10_000 - purchase.cost
        assert purchase.tier == "CHEAP"
        assert book.companies["co-1"].total_revenue == 10_000

    def test_cap_enforced(self) -> None:
        book = PurchaseBook(random.Random(1))
        product = _product("p-1", 100)
        for _ in range(MAX_UNITS_PER_PRODUCT):
            book.buy(product, None)

        assert book.remaining_cap("p-1") == 0
        with pytest.raises(ValueError, match="cap"):
            book.buy(product, None)


class TestSimulate:
    def test_empty_catalog_returns_none(self) -> None:
        assert DemandSimulator(random.Random(0)).simulate([]) is None

    def test_budget_drawn_in_range(self) -> None:
        sim = DemandSimulator(random.Random(3))
        for _ in range(20):
            assert BUDGET_MIN <= sim.draw_budget() <= BUDGET_MAX

    def test_two_product_scenario(self) -> None:
        # $10 cheap and $2,000 expensive: each sells exactly the 50-unit cap
        products = [_product("cheap", 1_000), _product("pricey", 200_000, "co-2")]

        plan = DemandSimulator(random.Random(7)).simulate(products, budget=30_000_000)

        assert plan is not None
        assert plan.tier_budget == 10_000_000
        assert plan.units_sold == 100
        assert plan.total_spent == 10_050_000
        assert plan.unspent == 30_000_000 - 10_050_000
        assert plan.companies["co-1"].products["cheap"].count == 50
        assert plan.companies["co-2"].products["pricey"].count == 50

    def test_tier_remainder_joins_leftover(self) -> None:
        plan = DemandSimulator(random.Random(7)).simulate(
            [_product("p", 1_000_000_000)], budget=30_000_001
        )
        assert plan is not None
        assert plan.tier_budget == 10_000_000
        assert plan.units_sold == 0
        assert plan.unspent == 30_000_001
        assert plan.companies == {}

    def test_single_cheap_product_gets_whole_tier(self) -> None:
        plan = DemandSimulator(random.Random(11)).simulate(
            [_product("p", 5_000)], budget=3_000
        )
        # tier budget 1,000 plus leftover 2,000 cannot buy one $50 unit
        assert plan is not None
        assert plan.units_sold == 0

    def test_spending_is_bounded_and_consistent(self) -> None:
        rng = random.Random(2024)
        products = [
            _product(f"p-{i}", rng.choice([99, 1_500, 14_999, 25_000, 99_999, 150_000]), f"co-{i % 7}")
            for i in range(60)
        ]

        plan = DemandSimulator(random.Random(5)).simulate(products)

        assert plan is not None
        assert BUDGET_MIN <= plan.budget <= BUDGET_MAX
        assert plan.total_spent + plan.unspent == plan.budget
        assert plan.total_spent == sum(c.total_revenue for c in plan.companies.values())
        assert plan.net_flow == sum(c.net for c in plan.companies.values())
        assert plan.units_sold == len(plan.purchases)
        for company in plan.companies.values():
            for agg in company.products.values():
                assert agg.count <= MAX_UNITS_PER_PRODUCT

    def test_seeded_runs_are_identical(self) -> None:
        products = [_product(f"p-{i}", 500 + i * 1_700) for i in range(40)]

        first = DemandSimulator(random.Random(42)).simulate(products)
        second = DemandSimulator(random.Random(42)).simulate(products)

        assert first is not None and second is not None
        assert first.to_payload() == second.to_payload()
        assert first.purchases == second.purchases

    def test_leftover_pass_sells_untiered_units(self) -> None:
        # 20 cheap products: 16 are sampled into the tier and hit the cap there,
        # the other 4 can only be bought by the leftover pass
        products = [_product(f"p-{i:02d}", 100) for i in range(20)]
        plan = DemandSimulator(random.Random(9)).simulate(products, budget=30_000_000)

        assert plan is not None
        untiered = Counter(p.product_id for p in plan.purchases if p.tier is None)
        assert len(untiered) == 4
        assert set(untiered.values()) == {1}
        assert plan.units_sold == 16 * MAX_UNITS_PER_PRODUCT + 4

    def test_leftover_sweep_buys_one_unit_each(self) -> None:
        products = [_product("a", 100), _product("b", 300), _product("c", 100)]
        book = PurchaseBook(random.Random(1))

        pool = DemandSimulator._spend_single_sweep(products, 250, book)

        # "b" is priced above the remaining pool and skipped; no second round
        assert pool == 50
        assert [p.product_id for p in book.purchases] == ["a", "c"]
        assert all(p.tier is None for p in book.purchases)

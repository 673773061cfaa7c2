"""Property tests for the demand simulator over generated catalogs."""

import random

from hypothesis import given, settings
from hypothesis import strategies as st

from src.qb_market.domain.constants import MAX_UNITS_PER_PRODUCT
from src.qb_market.domain.models import CatalogProduct, SettlementPlan
from src.qb_market.engine.simulator import DemandSimulator


@st.composite
def catalogs(draw) -> list[CatalogProduct]:
    size = draw(st.integers(min_value=1, max_value=40))
    companies = draw(st.integers(min_value=1, max_value=8))
    prices = draw(
        st.lists(
            st.integers(min_value=1, max_value=500_000), min_size=size, max_size=size
        )
    )
    return [
        CatalogProduct(
            product_id=f"p-{i:03d}",
            company_id=f"co-{i % companies}",
            account_id=f"acct-{i % companies}",
            price=price,
        )
        for i, price in enumerate(prices)
    ]


budgets = st.integers(min_value=0, max_value=50_000_000)
seeds = st.integers(min_value=0, max_value=2**32 - 1)


def _simulate(catalog: list[CatalogProduct], budget: int, seed: int) -> SettlementPlan:
    plan = DemandSimulator(random.Random(seed)).simulate(catalog, budget=budget)
    assert plan is not None
    return plan


@settings(max_examples=60, deadline=None)
@given(catalog=catalogs(), budget=budgets, seed=seeds)
def test_never_overspends(catalog, budget, seed) -> None:
    plan = _simulate(catalog, budget, seed)
    assert plan.total_spent <= budget
    assert plan.total_spent + plan.unspent == budget


@settings(max_examples=60, deadline=None)
@given(catalog=catalogs(), budget=budgets, seed=seeds)
def test_revenue_matches_spend(catalog, budget, seed) -> None:
    plan = _simulate(catalog, budget, seed)
    assert sum(c.total_revenue for c in plan.companies.values()) == plan.total_spent
    assert sum(c.net for c in plan.companies.values()) == plan.net_flow
    assert sum(p.price for p in plan.purchases) == plan.total_spent


@settings(max_examples=60, deadline=None)
@given(catalog=catalogs(), budget=budgets, seed=seeds)
def test_unit_cap_holds(catalog, budget, seed) -> None:
    plan = _simulate(catalog, budget, seed)
    units: dict[str, int] = {}
    for purchase in plan.purchases:
        units[purchase.product_id] = units.get(purchase.product_id, 0) + 1
    assert all(n <= MAX_UNITS_PER_PRODUCT for n in units.values())


@settings(max_examples=60, deadline=None)
@given(catalog=catalogs(), budget=budgets, seed=seeds)
def test_costs_stay_in_band(catalog, budget, seed) -> None:
    plan = _simulate(catalog, budget, seed)
    for purchase in plan.purchases:
        assert 0 <= purchase.cost <= purchase.price
        assert purchase.profit == purchase.price - purchase.cost


@settings(max_examples=40, deadline=None)
@given(catalog=catalogs(), budget=budgets, seed=seeds)
def test_payload_round_trip_keeps_aggregates(catalog, budget, seed) -> None:
    plan = _simulate(catalog, budget, seed)
    restored = SettlementPlan.from_payload(plan.to_payload())
    assert restored.to_payload() == plan.to_payload()
    assert {cid: c.net for cid, c in restored.companies.items()} == {
        cid: c.net for cid, c in plan.companies.items()
    }

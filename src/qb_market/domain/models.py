"""Domain models for qb_market — settlement plan, aggregates and tick result.

A SettlementPlan is what the simulator produces and what the tick journal
persists; it round-trips through to_payload()/from_payload(). The purchase
list is not journaled.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class CatalogProduct:
    """An active product with its owner resolved, as seen by the simulator."""

    product_id: str
    company_id: str
    account_id: str
    price: int


@dataclass(frozen=True)
class PurchaseRecord:
    product_id: str
    company_id: str
    price: int
    cost: int
    profit: int
    tier: str | None    # PriceTier value; None for the leftover pass


@dataclass
class ProductAggregate:
    product_id: str
    count: int = 0
    revenue: int = 0
    cost: int = 0

    def to_dict(self) -> dict[str, int]:
        return {"count": self.count, "revenue": self.revenue, "cost": self.cost}


@dataclass
class CompanyAggregate:
    company_id: str
    account_id: str
    total_revenue: int = 0
    total_cost: int = 0
    products: dict[str, ProductAggregate] = field(default_factory=dict)

    @property
    def net(self) -> int:
        return self.total_revenue - self.total_cost

    def add(self, purchase: PurchaseRecord) -> None:
        self.total_revenue += purchase.price
        self.total_cost += purchase.cost
        agg = self.products.setdefault(
            purchase.product_id, ProductAggregate(purchase.product_id)
        )
        agg.count += 1
        agg.revenue += purchase.price
        agg.cost += purchase.cost

    def to_dict(self) -> dict[str, Any]:
        return {
            "company_id": self.company_id,
            "account_id": self.account_id,
            "total_revenue": self.total_revenue,
            "total_cost": self.total_cost,
            "products": {pid: p.to_dict() for pid, p in self.products.items()},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CompanyAggregate":
        return cls(
            company_id=data["company_id"],
            account_id=data["account_id"],
            total_revenue=int(data["total_revenue"]),
            total_cost=int(data["total_cost"]),
            products={
                pid: ProductAggregate(
                    product_id=pid,
                    count=int(p["count"]),
                    revenue=int(p["revenue"]),
                    cost=int(p["cost"]),
                )
                for pid, p in data["products"].items()
            },
        )


@dataclass
class SettlementPlan:
    budget: int
    tier_budget: int
    total_spent: int      # gross: sum of unit prices == sum of company revenue
    net_flow: int         # sum of revenue - sum of cost
    units_sold: int
    unspent: int
    companies: dict[str, CompanyAggregate] = field(default_factory=dict)
    purchases: list[PurchaseRecord] = field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        return {
            "budget": self.budget,
            "tier_budget": self.tier_budget,
            "total_spent": self.total_spent,
            "net_flow": self.net_flow,
            "units_sold": self.units_sold,
            "unspent": self.unspent,
            "companies": {cid: c.to_dict() for cid, c in self.companies.items()},
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "SettlementPlan":
        return cls(
            budget=int(payload["budget"]),
            tier_budget=int(payload["tier_budget"]),
            total_spent=int(payload["total_spent"]),
            net_flow=int(payload["net_flow"]),
            units_sold=int(payload["units_sold"]),
            unspent=int(payload["unspent"]),
            companies={
                cid: CompanyAggregate.from_dict(c)
                for cid, c in payload["companies"].items()
            },
        )


@dataclass
class TickResult:
    tick_id: str
    plan: SettlementPlan
    listed_companies: list[str] = field(default_factory=list)
    resumed: bool = False

    def to_dict(self) -> dict[str, Any]:
        plan = self.plan
        return {
            "tick_id": self.tick_id,
            "resumed": self.resumed,
            "budget": plan.budget,
            "tier_budget": plan.tier_budget,
            "total_spent": plan.total_spent,
            "net_flow": plan.net_flow,
            "units_sold": plan.units_sold,
            "unspent": plan.unspent,
            "companies_settled": len(plan.companies),
            "listed_companies": list(self.listed_companies),
            "purchases": [
                {
                    "product_id": p.product_id,
                    "company_id": p.company_id,
                    "price": p.price,
                    "cost": p.cost,
                    "profit": p.profit,
                    "tier": p.tier,
                }
                for p in plan.purchases
            ],
        }


@dataclass
class PendingTick:
    tick_id: str
    plan: SettlementPlan

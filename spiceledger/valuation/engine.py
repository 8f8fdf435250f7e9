from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable

from spiceledger.domain.models import (
    DailyPrice,
    EventKind,
    InventorySnapshot,
    OverallInventory,
    ProductInventory,
    PurchaseLot,
    ReplayEvent,
    SaleTransaction,
)

# Quantities closer to zero than this are rounding residue, not stock.
QUANTITY_EPSILON = 1e-4

GroupKey = tuple[str, str]


@dataclass(frozen=True)
class ReplayResult:
    quantity_on_hand: float
    total_cost_basis: float
    average_cost: float
    market_price: float
    market_value: float
    unrealized_pnl: float


@dataclass
class _Group:
    product_id: str
    product: str
    grade_id: str
    grade: str
    events: list[ReplayEvent]


def _replay_order(event: ReplayEvent) -> tuple[date, int, datetime | None]:
    if event.created_at is None:
        return (event.date, 0, None)
    return (event.date, 1, event.created_at)


def order_events(events: Iterable[ReplayEvent]) -> list[ReplayEvent]:
    # sorted() is stable: events sharing date and timestamp keep input order.
    return sorted(events, key=_replay_order)


def compute_snapshot(events: Iterable[ReplayEvent], market_price: float | None = None) -> ReplayResult:
    """Replay date-ordered events under moving weighted-average costing.

    A sale removes stock at the running average cost; its own unit price never
    touches the cost basis. Selling from empty or negative stock only moves
    the quantity, leaving the cost basis as it was.
    """
    quantity = 0.0
    cost_basis = 0.0
    for event in events:
        if event.kind is EventKind.BUY:
            quantity += event.quantity
            cost_basis += event.quantity * event.unit_amount
        elif quantity > 0:
            average = cost_basis / quantity
            quantity -= event.quantity
            cost_basis -= event.quantity * average
        else:
            quantity -= event.quantity

    if abs(quantity) < QUANTITY_EPSILON:
        quantity = 0.0
        cost_basis = 0.0

    average_cost = cost_basis / quantity if quantity > 0 else 0.0
    price = market_price or 0.0
    market_value = quantity * price
    return ReplayResult(
        quantity_on_hand=quantity,
        total_cost_basis=cost_basis,
        average_cost=average_cost,
        market_price=price,
        market_value=market_value,
        unrealized_pnl=market_value - cost_basis,
    )


def group_history(
    lots: Iterable[PurchaseLot],
    sales: Iterable[SaleTransaction],
) -> dict[GroupKey, _Group]:
    groups: dict[GroupKey, _Group] = {}

    def _bucket(record: PurchaseLot | SaleTransaction) -> _Group:
        key = (record.product_id, record.grade_id)
        group = groups.get(key)
        if group is None:
            group = _Group(
                product_id=record.product_id,
                product=record.product,
                grade_id=record.grade_id,
                grade=record.grade,
                events=[],
            )
            groups[key] = group
        return group

    for lot in lots:
        _bucket(lot).events.append(
            ReplayEvent(
                date=lot.date,
                kind=EventKind.BUY,
                quantity=lot.quantity_kg,
                unit_amount=lot.unit_cost,
                created_at=lot.created_at,
            )
        )
    for sale in sales:
        _bucket(sale).events.append(
            ReplayEvent(
                date=sale.date,
                kind=EventKind.SELL,
                quantity=sale.quantity_kg,
                unit_amount=sale.unit_price,
                created_at=sale.created_at,
            )
        )
    return groups


def _pct(numerator: float, denominator: float) -> float:
    if denominator == 0:
        return 0.0
    return numerator / denominator * 100


def value_inventory(
    as_of: date,
    lots: Iterable[PurchaseLot],
    sales: Iterable[SaleTransaction],
    prices: Iterable[DailyPrice],
) -> OverallInventory:
    price_by_key: dict[GroupKey, float] = {
        (price.product_id, price.grade_id): price.price_per_kg for price in prices
    }
    groups = group_history(lots, sales)

    overall = OverallInventory(date=as_of)
    products: dict[str, ProductInventory] = {}

    for key in sorted(groups, key=lambda k: (groups[k].product, groups[k].grade, k)):
        group = groups[key]
        result = compute_snapshot(order_events(group.events), price_by_key.get(key))
        snapshot = InventorySnapshot(
            product_id=group.product_id,
            product=group.product,
            grade_id=group.grade_id,
            grade=group.grade,
            total_quantity=result.quantity_on_hand,
            average_cost=result.average_cost,
            total_cost_basis=result.total_cost_basis,
            market_price=result.market_price,
            market_value=result.market_value,
            unrealized_pnl=result.unrealized_pnl,
        )
        overall.snapshots.append(snapshot)

        product = products.get(group.product_id)
        if product is None:
            product = ProductInventory(product_id=group.product_id, product=group.product)
            products[group.product_id] = product
        product.grades.append(snapshot)
        product.total_quantity += snapshot.total_quantity
        product.total_value += snapshot.market_value
        product.total_cost += snapshot.total_cost_basis
        product.total_pnl += snapshot.unrealized_pnl

        overall.total_quantity += snapshot.total_quantity
        overall.total_value += snapshot.market_value
        overall.total_cost += snapshot.total_cost_basis
        overall.total_pnl += snapshot.unrealized_pnl

    for product in products.values():
        product.total_pnl_pct = _pct(product.total_pnl, product.total_cost)
        overall.products.append(product)

    overall.total_pnl_pct = _pct(overall.total_pnl, overall.total_cost)
    return overall

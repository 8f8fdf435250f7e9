from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable

from spiceledger.domain.models import DayGradeDetail, DayInventory, PurchaseLot, SaleTransaction


@dataclass
class _DayTotals:
    product_id: str
    product: str
    grade_id: str
    grade: str
    bought_qty: float = 0.0
    bought_cost_sum: float = 0.0
    sold_qty: float = 0.0
    sold_price_sum: float = 0.0


def _as_day(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def compute_day_details(
    day: date,
    lots: Iterable[PurchaseLot],
    sales: Iterable[SaleTransaction],
) -> DayInventory:
    """Same-day buy/sell aggregates per product and grade.

    ``day_pnl`` prices the day's sales against the day's own average purchase
    cost. Inventory carried in from earlier days is ignored, so this is not
    the valuation engine's unrealized P&L.
    """
    day = _as_day(day)
    totals: dict[tuple[str, str], _DayTotals] = {}

    def _bucket(record: PurchaseLot | SaleTransaction) -> _DayTotals:
        key = (record.product_id, record.grade_id)
        entry = totals.get(key)
        if entry is None:
            entry = _DayTotals(
                product_id=record.product_id,
                product=record.product,
                grade_id=record.grade_id,
                grade=record.grade,
            )
            totals[key] = entry
        return entry

    for lot in lots:
        if _as_day(lot.date) != day:
            continue
        entry = _bucket(lot)
        entry.bought_qty += lot.quantity_kg
        entry.bought_cost_sum += lot.quantity_kg * lot.unit_cost

    for sale in sales:
        if _as_day(sale.date) != day:
            continue
        entry = _bucket(sale)
        entry.sold_qty += sale.quantity_kg
        entry.sold_price_sum += sale.quantity_kg * sale.unit_price

    result = DayInventory(date=day)
    for entry in sorted(totals.values(), key=lambda t: (t.product, t.grade, t.product_id, t.grade_id)):
        bought_avg = entry.bought_cost_sum / entry.bought_qty if entry.bought_qty > 0 else 0.0
        sold_avg = entry.sold_price_sum / entry.sold_qty if entry.sold_qty > 0 else 0.0
        day_pnl = entry.sold_qty * (sold_avg - bought_avg)
        result.grades.append(
            DayGradeDetail(
                product_id=entry.product_id,
                product=entry.product,
                grade_id=entry.grade_id,
                grade=entry.grade,
                bought_qty=entry.bought_qty,
                bought_avg_cost=bought_avg,
                sold_qty=entry.sold_qty,
                sold_avg_price=sold_avg,
                day_pnl=day_pnl,
            )
        )
        result.total_bought += entry.bought_qty
        result.total_sold += entry.sold_qty
        result.total_day_pnl += day_pnl
    return result

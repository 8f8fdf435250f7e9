from __future__ import annotations

from datetime import date

import pytest

from spiceledger.domain.models import PurchaseLot, SaleTransaction
from spiceledger.valuation import compute_day_details

DAY = date(2026, 4, 10)


def _lot(day, qty, cost, grade_id="g1", grade="A"):
    return PurchaseLot(
        id=f"lot-{grade_id}-{qty}",
        user_id="u1",
        product_id="p1",
        grade_id=grade_id,
        date=day,
        quantity_kg=qty,
        unit_cost=cost,
        product="Cardamom",
        grade=grade,
    )


def _sale(day, qty, price, grade_id="g1", grade="A"):
    return SaleTransaction(
        id=f"sale-{grade_id}-{qty}",
        user_id="u1",
        product_id="p1",
        grade_id=grade_id,
        date=day,
        quantity_kg=qty,
        unit_price=price,
        product="Cardamom",
        grade=grade,
    )


def test_day_pnl_uses_same_day_average_cost():
    details = compute_day_details(DAY, [_lot(DAY, 10, 5)], [_sale(DAY, 4, 8)])

    assert len(details.grades) == 1
    row = details.grades[0]
    assert row.bought_qty == 10
    assert row.bought_avg_cost == pytest.approx(5)
    assert row.sold_qty == 4
    assert row.sold_avg_price == pytest.approx(8)
    assert row.day_pnl == pytest.approx(12)
    assert details.total_bought == 10
    assert details.total_sold == 4
    assert details.total_day_pnl == pytest.approx(12)


def test_other_days_are_ignored():
    lots = [_lot(date(2026, 4, 9), 100, 1), _lot(DAY, 2, 6), _lot(DAY, 2, 8)]
    sales = [_sale(date(2026, 4, 11), 50, 30), _sale(DAY, 1, 10)]

    details = compute_day_details(DAY, lots, sales)

    row = details.grades[0]
    assert row.bought_qty == 4
    assert row.bought_avg_cost == pytest.approx(7)
    assert row.sold_qty == 1
    assert row.day_pnl == pytest.approx(3)


def test_sale_without_same_day_purchase_counts_full_price():
    details = compute_day_details(DAY, [_lot(date(2026, 4, 1), 10, 5)], [_sale(DAY, 3, 9)])

    row = details.grades[0]
    assert row.bought_qty == 0
    assert row.bought_avg_cost == 0
    assert row.day_pnl == pytest.approx(27)


def test_grades_are_reported_separately():
    details = compute_day_details(
        DAY,
        [_lot(DAY, 5, 2, grade_id="g2", grade="B"), _lot(DAY, 5, 4)],
        [_sale(DAY, 5, 3, grade_id="g2", grade="B")],
    )

    assert [row.grade for row in details.grades] == ["A", "B"]
    assert details.grades[0].day_pnl == 0
    assert details.grades[1].day_pnl == pytest.approx(5)
    assert details.total_bought == 10
    assert details.total_sold == 5


def test_quiet_day_is_empty():
    details = compute_day_details(DAY, [_lot(date(2026, 4, 1), 1, 1)], [])

    assert details.grades == []
    assert details.total_day_pnl == 0

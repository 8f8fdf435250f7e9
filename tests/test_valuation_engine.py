from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from spiceledger.domain.models import DailyPrice, EventKind, PurchaseLot, ReplayEvent, SaleTransaction
from spiceledger.valuation import compute_snapshot, order_events, value_inventory

D1 = date(2026, 3, 1)
D2 = date(2026, 3, 2)
D3 = date(2026, 3, 3)
BASE_TS = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


def _buy(day: date, qty: float, cost: float, seq: int = 0) -> ReplayEvent:
    return ReplayEvent(day, EventKind.BUY, qty, cost, BASE_TS + timedelta(seconds=seq))


def _sell(day: date, qty: float, price: float, seq: int = 0) -> ReplayEvent:
    return ReplayEvent(day, EventKind.SELL, qty, price, BASE_TS + timedelta(seconds=seq))


def _lot(day, qty, cost, seq, product_id="p1", grade_id="g1", product="Pepper", grade="A"):
    return PurchaseLot(
        id=f"lot-{seq}",
        user_id="u1",
        product_id=product_id,
        grade_id=grade_id,
        date=day,
        quantity_kg=qty,
        unit_cost=cost,
        created_at=BASE_TS + timedelta(seconds=seq),
        product=product,
        grade=grade,
    )


def _sale(day, qty, price, seq, product_id="p1", grade_id="g1", product="Pepper", grade="A"):
    return SaleTransaction(
        id=f"sale-{seq}",
        user_id="u1",
        product_id=product_id,
        grade_id=grade_id,
        date=day,
        quantity_kg=qty,
        unit_price=price,
        created_at=BASE_TS + timedelta(seconds=seq),
        product=product,
        grade=grade,
    )


def test_buys_only_accumulate_cost_basis():
    events = [_buy(D1, 10, 3.5, 0), _buy(D1, 4, 7.25, 1), _buy(D2, 6, 2.0, 2)]
    result = compute_snapshot(events)

    expected_cost = 10 * 3.5 + 4 * 7.25 + 6 * 2.0
    assert result.quantity_on_hand == pytest.approx(20)
    assert result.total_cost_basis == pytest.approx(expected_cost)
    assert result.average_cost == pytest.approx(expected_cost / 20)


def test_weighted_average_walkthrough():
    events = [_buy(D1, 100, 10, 0)]
    first = compute_snapshot(events)
    assert (first.quantity_on_hand, first.total_cost_basis, first.average_cost) == (100, 1000, 10)

    events.append(_buy(D2, 50, 16, 1))
    second = compute_snapshot(events)
    assert second.quantity_on_hand == pytest.approx(150)
    assert second.total_cost_basis == pytest.approx(1800)
    assert second.average_cost == pytest.approx(12)

    events.append(_sell(D3, 60, 20, 2))
    third = compute_snapshot(events, market_price=15)
    assert third.quantity_on_hand == pytest.approx(90)
    assert third.total_cost_basis == pytest.approx(1080)
    assert third.average_cost == pytest.approx(12)
    assert third.market_value == pytest.approx(1350)
    assert third.unrealized_pnl == pytest.approx(270)


def test_selling_everything_zeroes_position():
    result = compute_snapshot([_buy(D1, 3, 1.1, 0), _buy(D1, 7, 2.3, 1), _sell(D2, 10, 5, 2)], market_price=4)

    assert result.quantity_on_hand == 0
    assert result.total_cost_basis == 0
    assert result.average_cost == 0
    assert result.market_value == 0
    assert result.unrealized_pnl == 0


def test_residue_below_epsilon_snaps_to_zero():
    result = compute_snapshot([_buy(D1, 10, 2, 0), _sell(D2, 9.99995, 3, 1)])

    assert result.quantity_on_hand == 0
    assert result.total_cost_basis == 0


def test_sell_from_empty_only_moves_quantity():
    result = compute_snapshot([_sell(D1, 5, 9, 0)], market_price=2)

    assert result.quantity_on_hand == pytest.approx(-5)
    assert result.total_cost_basis == 0
    assert result.average_cost == 0
    assert result.market_value == pytest.approx(-10)


def test_oversell_from_positive_stock_drives_cost_basis_negative():
    result = compute_snapshot([_buy(D1, 5, 2, 0), _sell(D2, 8, 3, 1)], market_price=4)

    # The whole sale is costed at the average of 2 even though only 5 were on hand.
    assert result.quantity_on_hand == pytest.approx(-3)
    assert result.total_cost_basis == pytest.approx(-6)
    assert result.average_cost == 0
    assert result.market_value == pytest.approx(-12)
    assert result.unrealized_pnl == pytest.approx(-6)


def test_sell_from_negative_keeps_cost_basis():
    result = compute_snapshot([_sell(D1, 5, 9, 0), _buy(D2, 3, 4, 1), _sell(D3, 1, 9, 2)])

    # After the buy the position is still -2, so the second sale cannot touch the cost basis.
    assert result.quantity_on_hand == pytest.approx(-3)
    assert result.total_cost_basis == pytest.approx(12)
    assert result.average_cost == 0


def test_same_day_order_changes_cost_basis():
    buy_then_sell = order_events([_buy(D1, 10, 2, 0), _sell(D1, 5, 3, 1), _buy(D2, 5, 4, 2)])
    sell_then_buy = order_events([_sell(D1, 5, 3, 0), _buy(D1, 10, 2, 1), _buy(D2, 5, 4, 2)])

    first = compute_snapshot(buy_then_sell)
    second = compute_snapshot(sell_then_buy)

    assert first.quantity_on_hand == pytest.approx(second.quantity_on_hand)
    assert first.total_cost_basis == pytest.approx(30)
    assert second.total_cost_basis == pytest.approx(40)


def test_order_events_sorts_by_date_then_creation():
    late_created_early_day = _buy(D1, 1, 1, 50)
    early_created_late_day = _sell(D2, 1, 1, 0)
    same_day_second = _sell(D1, 1, 1, 60)

    ordered = order_events([early_created_late_day, same_day_second, late_created_early_day])

    assert ordered == [late_created_early_day, same_day_second, early_created_late_day]


def test_order_events_puts_untimestamped_first_within_a_day():
    stamped = _buy(D1, 1, 1, 0)
    unstamped = ReplayEvent(D1, EventKind.SELL, 1, 1)
    next_day = ReplayEvent(D2, EventKind.BUY, 1, 1)

    assert order_events([next_day, stamped, unstamped]) == [unstamped, stamped, next_day]


def test_missing_price_counts_as_zero():
    result = compute_snapshot([_buy(D1, 8, 5, 0)], market_price=None)

    assert result.market_price == 0
    assert result.market_value == 0
    assert result.unrealized_pnl == pytest.approx(-40)


def test_value_inventory_is_pure():
    lots = [
        _lot(D1, 100, 10, 0),
        _lot(D2, 50, 16, 1),
        _lot(D1, 20, 30, 2, product_id="p2", grade_id="g9", product="Saffron"),
    ]
    sales = [_sale(D3, 60, 20, 3)]
    prices = [DailyPrice(D3, "p1", "g1", 15.0)]

    first = value_inventory(D3, lots, sales, prices)
    second = value_inventory(D3, lots, sales, prices)

    assert first == second


def test_value_inventory_rolls_up_products():
    lots = [
        _lot(D1, 100, 10, 0),
        _lot(D2, 50, 16, 1),
        _lot(D1, 10, 4, 2, grade_id="g2", grade="B"),
        _lot(D1, 2, 100, 3, product_id="p2", grade_id="g9", product="Saffron"),
    ]
    sales = [_sale(D3, 60, 20, 4)]
    prices = [
        DailyPrice(D3, "p1", "g1", 15.0),
        DailyPrice(D3, "p1", "g2", 5.0),
        DailyPrice(D3, "p2", "g9", 90.0),
    ]

    inventory = value_inventory(D3, lots, sales, prices)

    assert [(s.product, s.grade) for s in inventory.snapshots] == [("Pepper", "A"), ("Pepper", "B"), ("Saffron", "A")]
    pepper, saffron = inventory.products
    assert pepper.product_id == "p1"
    assert len(pepper.grades) == 2
    assert pepper.total_quantity == pytest.approx(100)
    assert pepper.total_cost == pytest.approx(1080 + 40)
    assert pepper.total_value == pytest.approx(1350 + 50)
    assert pepper.total_pnl == pytest.approx(270 + 10)
    assert pepper.total_pnl_pct == pytest.approx(280 / 1120 * 100)
    assert saffron.total_pnl == pytest.approx(-20)

    assert inventory.total_quantity == pytest.approx(102)
    assert inventory.total_cost == pytest.approx(1320)
    assert inventory.total_value == pytest.approx(1580)
    assert inventory.total_pnl == pytest.approx(260)
    assert inventory.total_pnl_pct == pytest.approx(260 / 1320 * 100)


def test_empty_history_has_zero_percentages():
    inventory = value_inventory(D1, [], [], [DailyPrice(D1, "p1", "g1", 9.0)])

    assert inventory.snapshots == []
    assert inventory.products == []
    assert inventory.total_pnl_pct == 0


def test_fully_sold_product_has_zero_pnl_pct():
    inventory = value_inventory(D2, [_lot(D1, 5, 10, 0)], [_sale(D2, 5, 12, 1)], [])

    assert inventory.snapshots[0].total_quantity == 0
    assert inventory.products[0].total_pnl_pct == 0

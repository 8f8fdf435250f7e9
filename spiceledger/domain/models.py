from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum


class EventKind(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


@dataclass(frozen=True)
class PurchaseLot:
    id: str
    user_id: str
    product_id: str
    grade_id: str
    date: date
    quantity_kg: float
    unit_cost: float
    created_at: datetime | None = None
    product: str = ""
    grade: str = ""


@dataclass(frozen=True)
class SaleTransaction:
    id: str
    user_id: str
    product_id: str
    grade_id: str
    date: date
    quantity_kg: float
    unit_price: float
    created_at: datetime | None = None
    product: str = ""
    grade: str = ""


@dataclass(frozen=True)
class ReplayEvent:
    """A lot or a sale flattened for chronological replay; never persisted."""

    date: date
    kind: EventKind
    quantity: float
    unit_amount: float
    created_at: datetime | None = None


@dataclass(frozen=True)
class DailyPrice:
    date: date
    product_id: str
    grade_id: str
    price_per_kg: float


@dataclass(frozen=True)
class LedgerQueryOptions:
    product_id: str | None = None
    grade_id: str | None = None


@dataclass
class InventorySnapshot:
    product_id: str
    product: str
    grade_id: str
    grade: str
    total_quantity: float
    average_cost: float
    total_cost_basis: float
    market_price: float
    market_value: float
    unrealized_pnl: float


@dataclass
class ProductInventory:
    product_id: str
    product: str
    grades: list[InventorySnapshot] = field(default_factory=list)
    total_quantity: float = 0.0
    total_value: float = 0.0
    total_cost: float = 0.0
    total_pnl: float = 0.0
    total_pnl_pct: float = 0.0


@dataclass
class OverallInventory:
    date: date
    snapshots: list[InventorySnapshot] = field(default_factory=list)
    products: list[ProductInventory] = field(default_factory=list)
    total_quantity: float = 0.0
    total_value: float = 0.0
    total_cost: float = 0.0
    total_pnl: float = 0.0
    total_pnl_pct: float = 0.0


@dataclass
class DayGradeDetail:
    product_id: str
    product: str
    grade_id: str
    grade: str
    bought_qty: float
    bought_avg_cost: float
    sold_qty: float
    sold_avg_price: float
    day_pnl: float


@dataclass
class DayInventory:
    date: date
    grades: list[DayGradeDetail] = field(default_factory=list)
    total_bought: float = 0.0
    total_sold: float = 0.0
    total_day_pnl: float = 0.0

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone

from sqlalchemy.orm import Session

from spiceledger.catalog.store import CatalogStore
from spiceledger.domain.errors import PriceNotFoundError
from spiceledger.prices.store import PriceStore, build_price_store
from spiceledger.users.store import UserStore


@dataclass
class DashboardUsersSummary:
    total: int
    weekly_new: int
    weekly_change_pct: float
    monthly_change_pct: float


@dataclass
class DashboardProductsSummary:
    total: int
    monthly_change_pct: float


@dataclass
class DashboardGradesSummary:
    total: int


@dataclass
class DashboardPriceUpdate:
    date: date
    product_id: str
    product: str
    grade_id: str
    grade: str
    price: float
    previous_date: date
    previous_price: float
    change_delta: float
    change_percent: float


@dataclass
class Dashboard:
    date: date
    users: DashboardUsersSummary
    products: DashboardProductsSummary
    grades: DashboardGradesSummary
    total_items: int
    price_updates: list[DashboardPriceUpdate] = field(default_factory=list)


def start_of_week(day: date) -> date:
    return day - timedelta(days=day.weekday())


def start_of_month(day: date) -> date:
    return day.replace(day=1)


def previous_month_start(day: date) -> date:
    first = start_of_month(day)
    if first.month == 1:
        return first.replace(year=first.year - 1, month=12)
    return first.replace(month=first.month - 1)


def _at_midnight(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def pct_change(current: float, previous: float) -> float:
    if previous == 0:
        return 0.0
    return (current - previous) / previous * 100


class DashboardService:
    def __init__(self, users: UserStore, catalog: CatalogStore, prices: PriceStore):
        self.users = users
        self.catalog = catalog
        self.prices = prices

    @classmethod
    def from_session(cls, session: Session, prices: PriceStore | None = None) -> "DashboardService":
        return cls(
            users=UserStore(session),
            catalog=CatalogStore(session),
            prices=prices or build_price_store(session),
        )

    def user_stats(self) -> dict[str, int]:
        return {"total_users": self.users.count()}

    def get_dashboard(self, day: date) -> Dashboard:
        tomorrow = _at_midnight(day + timedelta(days=1))
        week_start = _at_midnight(start_of_week(day))
        prev_week_start = week_start - timedelta(days=7)
        month_start = _at_midnight(start_of_month(day))
        prev_month_start = _at_midnight(previous_month_start(day))

        total_users = self.users.count()
        weekly_new = self.users.count_created_between(week_start, tomorrow)
        prev_weekly_new = self.users.count_created_between(prev_week_start, week_start)
        prev_month_total = self.users.count_created_between(None, month_start)

        total_products = self.catalog.count_products()
        month_products_new = self.catalog.count_products_created_between(month_start, tomorrow)
        prev_month_products_new = self.catalog.count_products_created_between(prev_month_start, month_start)
        total_grades = self.catalog.count_grades()

        return Dashboard(
            date=day,
            users=DashboardUsersSummary(
                total=total_users,
                weekly_new=weekly_new,
                weekly_change_pct=pct_change(weekly_new, prev_weekly_new),
                monthly_change_pct=pct_change(total_users, prev_month_total),
            ),
            products=DashboardProductsSummary(
                total=total_products,
                monthly_change_pct=pct_change(month_products_new, prev_month_products_new),
            ),
            grades=DashboardGradesSummary(total=total_grades),
            total_items=total_products + total_grades,
            price_updates=self._price_updates(day),
        )

    def _price_updates(self, day: date) -> list[DashboardPriceUpdate]:
        previous_day = day - timedelta(days=1)
        product_names = {product.id: product.name for product in self.catalog.list_products()}
        grades = {grade.id: grade for grade in self.catalog.list_grades()}

        updates: list[DashboardPriceUpdate] = []
        for current in self.prices.get_prices_for_date(day):
            try:
                previous = self.prices.get_price(previous_day, current.product_id, current.grade_id)
            except PriceNotFoundError:
                previous = 0.0
            grade = grades.get(current.grade_id)
            updates.append(
                DashboardPriceUpdate(
                    date=day,
                    product_id=current.product_id,
                    product=product_names.get(current.product_id, ""),
                    grade_id=current.grade_id,
                    grade=grade.name if grade is not None else "",
                    price=current.price_per_kg,
                    previous_date=previous_day,
                    previous_price=previous,
                    change_delta=current.price_per_kg - previous,
                    change_percent=pct_change(current.price_per_kg, previous),
                )
            )
        return updates

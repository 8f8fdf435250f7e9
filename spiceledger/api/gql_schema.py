from __future__ import annotations

from datetime import date, datetime
from typing import Any

import strawberry
from fastapi import Depends
from sqlalchemy.orm import Session
from strawberry.fastapi import BaseContext, GraphQLRouter
from strawberry.permission import BasePermission
from strawberry.types import Info

from spiceledger.api.utils import parse_day, parse_id
from spiceledger.catalog.store import CatalogStore
from spiceledger.core.security import Principal, get_optional_principal
from spiceledger.persistence.models import GradeModel
from spiceledger.persistence.pg import get_session
from spiceledger.prices.store import PriceStore, build_price_store
from spiceledger.services.catalog import CatalogService
from spiceledger.services.dashboard import DashboardService
from spiceledger.services.ledger import LedgerService, today_utc
from spiceledger.services.prices import PriceService


class GraphQLContext(BaseContext):
    def __init__(self, session: Session, principal: Principal | None, prices: PriceStore):
        super().__init__()
        self.session = session
        self.principal = principal
        self.prices = prices


def get_context(
    session: Session = Depends(get_session),
    principal: Principal | None = Depends(get_optional_principal),
) -> GraphQLContext:
    return GraphQLContext(session=session, principal=principal, prices=build_price_store(session))


class IsAuthenticated(BasePermission):
    message = "unauthorized"

    def has_permission(self, source: Any, info: Info, **kwargs: Any) -> bool:
        return info.context.principal is not None


class IsAdmin(BasePermission):
    message = "forbidden"

    def has_permission(self, source: Any, info: Info, **kwargs: Any) -> bool:
        principal = info.context.principal
        return principal is not None and principal.is_admin


def _ledger(info: Info) -> LedgerService:
    return LedgerService.from_session(info.context.session, prices=info.context.prices)


def _price_service(info: Info) -> PriceService:
    return PriceService(info.context.prices, CatalogStore(info.context.session))


def _positive(value: float, field: str) -> float:
    if value <= 0:
        raise ValueError(f"{field} must be positive")
    return value


def _non_negative(value: float, field: str) -> float:
    if value < 0:
        raise ValueError(f"{field} must not be negative")
    return value


@strawberry.type
class Product:
    id: str
    name: str
    description: str | None
    created_at: datetime


@strawberry.type
class Grade:
    id: str
    product_id: str
    product: str
    name: str
    description: str | None
    created_at: datetime

    @classmethod
    def from_model(cls, row: GradeModel) -> "Grade":
        return cls(
            id=row.id,
            product_id=row.product_id,
            product=row.product.name if row.product is not None else "",
            name=row.name,
            description=row.description,
            created_at=row.created_at,
        )


@strawberry.type
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


@strawberry.type
class ProductInventory:
    product_id: str
    product: str
    grades: list[InventorySnapshot]
    total_quantity: float
    total_value: float
    total_cost: float
    total_pnl: float
    total_pnl_pct: float


@strawberry.type
class OverallInventory:
    date: date
    snapshots: list[InventorySnapshot]
    products: list[ProductInventory]
    total_quantity: float
    total_value: float
    total_cost: float
    total_pnl: float
    total_pnl_pct: float


@strawberry.type
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


@strawberry.type
class DayInventory:
    date: date
    grades: list[DayGradeDetail]
    total_bought: float
    total_sold: float
    total_day_pnl: float


@strawberry.type
class DailyPrice:
    date: date
    product_id: str
    grade_id: str
    price_per_kg: float


@strawberry.type
class DashboardUsers:
    total: int
    weekly_new: int
    weekly_change_pct: float
    monthly_change_pct: float


@strawberry.type
class DashboardProducts:
    total: int
    monthly_change_pct: float


@strawberry.type
class DashboardGrades:
    total: int


@strawberry.type
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


@strawberry.type
class Dashboard:
    date: date
    users: DashboardUsers
    products: DashboardProducts
    grades: DashboardGrades
    total_items: int
    price_updates: list[DashboardPriceUpdate]


# Resolvers return the domain dataclasses directly; field names line up with the types above.
@strawberry.type
class Query:
    @strawberry.field(permission_classes=[IsAuthenticated, IsAdmin])
    def dashboard(self, info: Info, date: str | None = None) -> Dashboard:
        day = parse_day(date) if date else today_utc()
        return DashboardService.from_session(info.context.session, prices=info.context.prices).get_dashboard(day)

    @strawberry.field(permission_classes=[IsAuthenticated])
    def products(self, info: Info) -> list[Product]:
        return CatalogService(info.context.session).list_products()

    @strawberry.field(permission_classes=[IsAuthenticated])
    def grades(self, info: Info, product_id: str | None = None) -> list[Grade]:
        pid = parse_id(product_id, "product_id") if product_id else None
        return [Grade.from_model(row) for row in CatalogService(info.context.session).list_grades(pid)]

    @strawberry.field(permission_classes=[IsAuthenticated])
    def inventory_current(self, info: Info) -> OverallInventory:
        return _ledger(info).current_inventory(info.context.principal.user_id)

    @strawberry.field(permission_classes=[IsAuthenticated])
    def inventory_on_date(self, info: Info, date: str) -> OverallInventory:
        return _ledger(info).inventory_on_date(info.context.principal.user_id, parse_day(date))

    @strawberry.field(permission_classes=[IsAuthenticated])
    def inventory_day(self, info: Info, date: str) -> DayInventory:
        return _ledger(info).day_details(info.context.principal.user_id, parse_day(date))

    @strawberry.field(permission_classes=[IsAuthenticated])
    def prices(self, info: Info, date: str) -> list[DailyPrice]:
        return _price_service(info).get_prices_for_date(parse_day(date))

    @strawberry.field(permission_classes=[IsAuthenticated])
    def price(self, info: Info, date: str, product_id: str, grade_id: str) -> float:
        return _price_service(info).get_price(
            parse_day(date),
            parse_id(product_id, "product_id"),
            parse_id(grade_id, "grade_id"),
        )


@strawberry.type
class Mutation:
    @strawberry.mutation(permission_classes=[IsAuthenticated, IsAdmin])
    def create_product(self, info: Info, name: str, description: str | None = None) -> bool:
        CatalogService(info.context.session).create_product(name, description)
        return True

    @strawberry.mutation(permission_classes=[IsAuthenticated, IsAdmin])
    def create_grade(self, info: Info, product_id: str, name: str, description: str | None = None) -> bool:
        CatalogService(info.context.session).create_grade(parse_id(product_id, "product_id"), name, description)
        return True

    @strawberry.mutation(permission_classes=[IsAuthenticated, IsAdmin])
    def set_price(self, info: Info, date: str, product_id: str, grade_id: str, price_per_kg: float) -> bool:
        _price_service(info).set_price(
            parse_day(date),
            parse_id(product_id, "product_id"),
            parse_id(grade_id, "grade_id"),
            _non_negative(price_per_kg, "price_per_kg"),
        )
        return True

    @strawberry.mutation(permission_classes=[IsAuthenticated])
    def add_lot(
        self,
        info: Info,
        date: str,
        product_id: str,
        grade_id: str,
        quantity_kg: float,
        unit_cost: float,
    ) -> bool:
        _ledger(info).add_purchase_lot(
            info.context.principal.user_id,
            parse_day(date),
            parse_id(product_id, "product_id"),
            parse_id(grade_id, "grade_id"),
            _positive(quantity_kg, "quantity_kg"),
            _non_negative(unit_cost, "unit_cost"),
        )
        return True

    @strawberry.mutation(permission_classes=[IsAuthenticated])
    def add_sale(
        self,
        info: Info,
        date: str,
        product_id: str,
        grade_id: str,
        quantity_kg: float,
        unit_price: float,
    ) -> bool:
        _ledger(info).add_sale(
            info.context.principal.user_id,
            parse_day(date),
            parse_id(product_id, "product_id"),
            parse_id(grade_id, "grade_id"),
            _positive(quantity_kg, "quantity_kg"),
            _non_negative(unit_price, "unit_price"),
        )
        return True


schema = strawberry.Schema(query=Query, mutation=Mutation)
graphql_router = GraphQLRouter(schema, context_getter=get_context)

from __future__ import annotations

import logging
from datetime import date, datetime, timezone

from sqlalchemy.orm import Session

from spiceledger.catalog.store import CatalogStore
from spiceledger.domain.errors import GradeNotFoundError, InvalidGradeForProductError
from spiceledger.domain.models import (
    DayInventory,
    LedgerQueryOptions,
    OverallInventory,
    PurchaseLot,
    SaleTransaction,
)
from spiceledger.ledger.store import LedgerStore
from spiceledger.prices.store import PriceStore, build_price_store
from spiceledger.valuation import compute_day_details, value_inventory

logger = logging.getLogger(__name__)


def today_utc() -> date:
    return datetime.now(timezone.utc).date()


class LedgerService:
    def __init__(self, ledger: LedgerStore, catalog: CatalogStore, prices: PriceStore):
        self.ledger = ledger
        self.catalog = catalog
        self.prices = prices

    @classmethod
    def from_session(cls, session: Session, prices: PriceStore | None = None) -> "LedgerService":
        return cls(
            ledger=LedgerStore(session),
            catalog=CatalogStore(session),
            prices=prices or build_price_store(session),
        )

    def _check_grade(self, product_id: str, grade_id: str) -> None:
        grade = self.catalog.get_grade(grade_id)
        if grade is None:
            raise GradeNotFoundError()
        if grade.product_id != product_id:
            logger.info(
                "rejected ledger write: grade_id=%s belongs to product_id=%s not %s",
                grade_id,
                grade.product_id,
                product_id,
            )
            raise InvalidGradeForProductError()

    def add_purchase_lot(
        self,
        user_id: str,
        day: date,
        product_id: str,
        grade_id: str,
        quantity_kg: float,
        unit_cost: float,
    ) -> PurchaseLot:
        self._check_grade(product_id, grade_id)
        lot = self.ledger.create_lot(user_id, day, product_id, grade_id, quantity_kg, unit_cost)
        logger.info("lot recorded id=%s user_id=%s grade_id=%s qty=%s", lot.id, user_id, grade_id, quantity_kg)
        return lot

    def add_sale(
        self,
        user_id: str,
        day: date,
        product_id: str,
        grade_id: str,
        quantity_kg: float,
        unit_price: float,
    ) -> SaleTransaction:
        # Stock on hand is not checked; over-selling drives quantity negative.
        self._check_grade(product_id, grade_id)
        sale = self.ledger.create_sale(user_id, day, product_id, grade_id, quantity_kg, unit_price)
        logger.info("sale recorded id=%s user_id=%s grade_id=%s qty=%s", sale.id, user_id, grade_id, quantity_kg)
        return sale

    def list_lots(self, user_id: str, options: LedgerQueryOptions | None = None) -> list[PurchaseLot]:
        return self.ledger.list_lots(user_id, options)

    def list_sales(self, user_id: str, options: LedgerQueryOptions | None = None) -> list[SaleTransaction]:
        return self.ledger.list_sales(user_id, options)

    def inventory_on_date(self, user_id: str, day: date) -> OverallInventory:
        lots, sales = self.ledger.get_history(user_id, day)
        prices = self.prices.get_prices_for_date(day)
        return value_inventory(day, lots, sales, prices)

    def current_inventory(self, user_id: str) -> OverallInventory:
        return self.inventory_on_date(user_id, today_utc())

    def day_details(self, user_id: str, day: date) -> DayInventory:
        lots = self.ledger.list_lots(user_id)
        sales = self.ledger.list_sales(user_id)
        return compute_day_details(day, lots, sales)

from __future__ import annotations

import logging
from datetime import date

from spiceledger.catalog.store import CatalogStore
from spiceledger.domain.errors import GradeNotFoundError, InvalidGradeForProductError
from spiceledger.domain.models import DailyPrice
from spiceledger.prices.store import PriceStore

logger = logging.getLogger(__name__)


class PriceService:
    def __init__(self, prices: PriceStore, catalog: CatalogStore):
        self.prices = prices
        self.catalog = catalog

    def set_price(self, day: date, product_id: str, grade_id: str, price: float) -> DailyPrice:
        grade = self.catalog.get_grade(grade_id)
        if grade is None:
            raise GradeNotFoundError()
        if grade.product_id != product_id:
            raise InvalidGradeForProductError()
        result = self.prices.set_price(day, product_id, grade_id, price)
        logger.info(
            "price set date=%s product_id=%s grade_id=%s price=%s backend=%s",
            day.isoformat(),
            product_id,
            grade_id,
            price,
            self.prices.backend,
        )
        return result

    def get_price(self, day: date, product_id: str, grade_id: str) -> float:
        return self.prices.get_price(day, product_id, grade_id)

    def get_prices_for_date(self, day: date) -> list[DailyPrice]:
        return self.prices.get_prices_for_date(day)

from __future__ import annotations

import json
import logging
from datetime import date
from functools import lru_cache
from typing import Any, Protocol

import redis
from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from spiceledger.core.config import Settings, get_settings
from spiceledger.domain.errors import PriceNotFoundError
from spiceledger.domain.models import DailyPrice
from spiceledger.persistence.models import DailyPriceModel
from spiceledger.persistence.pg import get_session

logger = logging.getLogger(__name__)


class PriceStore(Protocol):
    backend: str

    def set_price(self, day: date, product_id: str, grade_id: str, price: float) -> DailyPrice:
        ...

    def get_price(self, day: date, product_id: str, grade_id: str) -> float:
        ...

    def get_prices_for_date(self, day: date) -> list[DailyPrice]:
        ...


class SqlPriceStore:
    backend = "sql"

    def __init__(self, session: Session):
        self.session = session

    def _find(self, day: date, product_id: str, grade_id: str) -> DailyPriceModel | None:
        stmt = (
            select(DailyPriceModel)
            .where(DailyPriceModel.date == day)
            .where(DailyPriceModel.product_id == product_id)
            .where(DailyPriceModel.grade_id == grade_id)
        )
        return self.session.scalar(stmt)

    def set_price(self, day: date, product_id: str, grade_id: str, price: float) -> DailyPrice:
        row = self._find(day, product_id, grade_id)
        if row is None:
            row = DailyPriceModel(date=day, product_id=product_id, grade_id=grade_id, price_per_kg=price)
            self.session.add(row)
        else:
            row.price_per_kg = price
        self.session.flush()
        return DailyPrice(date=day, product_id=product_id, grade_id=grade_id, price_per_kg=float(price))

    def get_price(self, day: date, product_id: str, grade_id: str) -> float:
        row = self._find(day, product_id, grade_id)
        if row is None:
            raise PriceNotFoundError()
        return float(row.price_per_kg)

    def get_prices_for_date(self, day: date) -> list[DailyPrice]:
        rows = self.session.scalars(
            select(DailyPriceModel)
            .where(DailyPriceModel.date == day)
            .order_by(DailyPriceModel.product_id.asc(), DailyPriceModel.grade_id.asc())
        ).all()
        return [
            DailyPrice(
                date=row.date,
                product_id=row.product_id,
                grade_id=row.grade_id,
                price_per_kg=float(row.price_per_kg),
            )
            for row in rows
        ]


class RedisPriceStore:
    """Prices as JSON values under ``price:{date}:{product_id}:{grade_id}``."""

    backend = "redis"

    def __init__(self, client: Any):
        self.client = client

    @staticmethod
    def _key(day: date, product_id: str, grade_id: str) -> str:
        return f"price:{day.isoformat()}:{product_id}:{grade_id}"

    @staticmethod
    def _decode(raw: str | bytes) -> DailyPrice:
        data = json.loads(raw)
        return DailyPrice(
            date=date.fromisoformat(data["date"]),
            product_id=data["product_id"],
            grade_id=data["grade_id"],
            price_per_kg=float(data["price_per_kg"]),
        )

    def set_price(self, day: date, product_id: str, grade_id: str, price: float) -> DailyPrice:
        payload = {
            "date": day.isoformat(),
            "product_id": product_id,
            "grade_id": grade_id,
            "price_per_kg": float(price),
        }
        self.client.set(self._key(day, product_id, grade_id), json.dumps(payload))
        return DailyPrice(date=day, product_id=product_id, grade_id=grade_id, price_per_kg=float(price))

    def get_price(self, day: date, product_id: str, grade_id: str) -> float:
        raw = self.client.get(self._key(day, product_id, grade_id))
        if raw is None:
            raise PriceNotFoundError()
        return self._decode(raw).price_per_kg

    def get_prices_for_date(self, day: date) -> list[DailyPrice]:
        prices: list[DailyPrice] = []
        for key in self.client.scan_iter(match=f"price:{day.isoformat()}:*"):
            raw = self.client.get(key)
            if raw is None:
                continue
            try:
                prices.append(self._decode(raw))
            except (ValueError, KeyError) as exc:
                logger.warning("skipping malformed price entry key=%s: %s", key, exc)
        prices.sort(key=lambda p: (p.product_id, p.grade_id))
        return prices


@lru_cache(maxsize=4)
def _redis_client(url: str) -> redis.Redis:
    return redis.Redis.from_url(url, decode_responses=True)


def build_price_store(session: Session, settings: Settings | None = None) -> PriceStore:
    cfg = settings or get_settings()
    if cfg.price_backend == "redis":
        return RedisPriceStore(_redis_client(cfg.redis_url))
    return SqlPriceStore(session)


def get_price_store(session: Session = Depends(get_session)) -> PriceStore:
    return build_price_store(session)

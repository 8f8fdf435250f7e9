from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from spiceledger.api.utils import bad_request, parse_day, parse_id
from spiceledger.catalog.store import CatalogStore
from spiceledger.core.security import Principal, get_principal, require_admin
from spiceledger.domain.models import DailyPrice
from spiceledger.persistence.pg import get_session
from spiceledger.prices.store import PriceStore, get_price_store
from spiceledger.services.prices import PriceService

router = APIRouter(prefix="/api/prices", tags=["prices"])


class SetPriceRequest(BaseModel):
    date: str = Field(description="YYYY-MM-DD")
    product_id: str
    grade_id: str
    price_per_kg: float = Field(ge=0)


def _price_to_dict(price: DailyPrice) -> dict:
    return {
        "date": price.date.isoformat(),
        "product_id": price.product_id,
        "grade_id": price.grade_id,
        "price_per_kg": price.price_per_kg,
    }


@router.post("")
def set_price(
    request: SetPriceRequest,
    principal: Principal = Depends(get_principal),
    session: Session = Depends(get_session),
    prices: PriceStore = Depends(get_price_store),
):
    require_admin(principal)
    try:
        day = parse_day(request.date)
        product_id = parse_id(request.product_id, "product_id")
        grade_id = parse_id(request.grade_id, "grade_id")
    except ValueError as exc:
        raise bad_request(exc) from exc
    price = PriceService(prices, CatalogStore(session)).set_price(day, product_id, grade_id, request.price_per_kg)
    return {"message": "price set successfully", "price": _price_to_dict(price)}


@router.get("/{date}")
def get_prices_for_date(
    date: str,
    _: Principal = Depends(get_principal),
    session: Session = Depends(get_session),
    prices: PriceStore = Depends(get_price_store),
):
    try:
        day = parse_day(date)
    except ValueError as exc:
        raise bad_request(exc) from exc
    items = PriceService(prices, CatalogStore(session)).get_prices_for_date(day)
    return {"date": day.isoformat(), "prices": [_price_to_dict(item) for item in items]}


@router.get("/{date}/{product_id}/{grade_id}")
def get_price(
    date: str,
    product_id: str,
    grade_id: str,
    _: Principal = Depends(get_principal),
    session: Session = Depends(get_session),
    prices: PriceStore = Depends(get_price_store),
):
    try:
        day = parse_day(date)
        pid = parse_id(product_id, "product_id")
        gid = parse_id(grade_id, "grade_id")
    except ValueError as exc:
        raise bad_request(exc) from exc
    price = PriceService(prices, CatalogStore(session)).get_price(day, pid, gid)
    return {"date": day.isoformat(), "product_id": pid, "grade_id": gid, "price_per_kg": price}

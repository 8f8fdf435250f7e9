from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from spiceledger.api.utils import bad_request, iso, parse_day, parse_id
from spiceledger.core.security import Principal, get_principal
from spiceledger.domain.models import LedgerQueryOptions, PurchaseLot, SaleTransaction
from spiceledger.persistence.pg import get_session
from spiceledger.prices.store import PriceStore, get_price_store
from spiceledger.services.ledger import LedgerService

router = APIRouter(prefix="/api", tags=["ledger"])


class LedgerEntryRequest(BaseModel):
    date: str = Field(description="YYYY-MM-DD")
    product_id: str
    grade_id: str
    quantity_kg: float = Field(gt=0)


class AddLotRequest(LedgerEntryRequest):
    unit_cost: float = Field(ge=0)


class AddSaleRequest(LedgerEntryRequest):
    unit_price: float = Field(ge=0)


def _service(session: Session, prices: PriceStore) -> LedgerService:
    return LedgerService.from_session(session, prices=prices)


def _entry_args(request: LedgerEntryRequest) -> tuple:
    try:
        return (
            parse_day(request.date),
            parse_id(request.product_id, "product_id"),
            parse_id(request.grade_id, "grade_id"),
        )
    except ValueError as exc:
        raise bad_request(exc) from exc


def _query_options(product_id: str | None, grade_id: str | None) -> LedgerQueryOptions:
    try:
        return LedgerQueryOptions(
            product_id=parse_id(product_id, "product_id") if product_id else None,
            grade_id=parse_id(grade_id, "grade_id") if grade_id else None,
        )
    except ValueError as exc:
        raise bad_request(exc) from exc


def _record_to_dict(record: PurchaseLot | SaleTransaction) -> dict:
    data = asdict(record)
    data["date"] = record.date.isoformat()
    data["created_at"] = iso(record.created_at)
    return data


def _query_day(value: str | None) -> str:
    if not value:
        raise bad_request(ValueError("date parameter is required"))
    return value


@router.post("/lots", status_code=201)
def add_lot(
    request: AddLotRequest,
    principal: Principal = Depends(get_principal),
    session: Session = Depends(get_session),
    prices: PriceStore = Depends(get_price_store),
):
    day, product_id, grade_id = _entry_args(request)
    lot = _service(session, prices).add_purchase_lot(
        principal.user_id, day, product_id, grade_id, request.quantity_kg, request.unit_cost
    )
    return {"message": "lot added successfully", "lot": _record_to_dict(lot)}


@router.get("/lots")
def list_lots(
    product_id: str | None = Query(default=None),
    grade_id: str | None = Query(default=None),
    principal: Principal = Depends(get_principal),
    session: Session = Depends(get_session),
    prices: PriceStore = Depends(get_price_store),
):
    options = _query_options(product_id, grade_id)
    lots = _service(session, prices).list_lots(principal.user_id, options)
    return {"count": len(lots), "lots": [_record_to_dict(lot) for lot in lots]}


@router.post("/sales", status_code=201)
def add_sale(
    request: AddSaleRequest,
    principal: Principal = Depends(get_principal),
    session: Session = Depends(get_session),
    prices: PriceStore = Depends(get_price_store),
):
    day, product_id, grade_id = _entry_args(request)
    sale = _service(session, prices).add_sale(
        principal.user_id, day, product_id, grade_id, request.quantity_kg, request.unit_price
    )
    return {"message": "sale recorded successfully", "sale": _record_to_dict(sale)}


@router.get("/sales")
def list_sales(
    product_id: str | None = Query(default=None),
    grade_id: str | None = Query(default=None),
    principal: Principal = Depends(get_principal),
    session: Session = Depends(get_session),
    prices: PriceStore = Depends(get_price_store),
):
    options = _query_options(product_id, grade_id)
    sales = _service(session, prices).list_sales(principal.user_id, options)
    return {"count": len(sales), "sales": [_record_to_dict(sale) for sale in sales]}


@router.get("/inventory/current")
def get_current_inventory(
    principal: Principal = Depends(get_principal),
    session: Session = Depends(get_session),
    prices: PriceStore = Depends(get_price_store),
):
    inventory = _service(session, prices).current_inventory(principal.user_id)
    return asdict(inventory)


@router.get("/inventory/on-date")
def get_inventory_on_date(
    date: str | None = Query(default=None, description="YYYY-MM-DD"),
    principal: Principal = Depends(get_principal),
    session: Session = Depends(get_session),
    prices: PriceStore = Depends(get_price_store),
):
    try:
        day = parse_day(_query_day(date))
    except ValueError as exc:
        raise bad_request(exc) from exc
    inventory = _service(session, prices).inventory_on_date(principal.user_id, day)
    return asdict(inventory)


@router.get("/inventory/day")
def get_day_details(
    date: str | None = Query(default=None, description="YYYY-MM-DD"),
    principal: Principal = Depends(get_principal),
    session: Session = Depends(get_session),
    prices: PriceStore = Depends(get_price_store),
):
    try:
        day = parse_day(_query_day(date))
    except ValueError as exc:
        raise bad_request(exc) from exc
    details = _service(session, prices).day_details(principal.user_id, day)
    return asdict(details)

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from spiceledger.api.utils import bad_request, parse_day
from spiceledger.core.security import Principal, get_principal, require_admin
from spiceledger.persistence.pg import get_session
from spiceledger.prices.store import PriceStore, get_price_store
from spiceledger.services.dashboard import DashboardService
from spiceledger.services.ledger import today_utc

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.get("/stats")
def get_user_stats(
    principal: Principal = Depends(get_principal),
    session: Session = Depends(get_session),
    prices: PriceStore = Depends(get_price_store),
):
    require_admin(principal)
    return DashboardService.from_session(session, prices=prices).user_stats()


@router.get("/dashboard")
def get_dashboard(
    date: str | None = Query(default=None, description="YYYY-MM-DD, defaults to today"),
    principal: Principal = Depends(get_principal),
    session: Session = Depends(get_session),
    prices: PriceStore = Depends(get_price_store),
):
    require_admin(principal)
    try:
        day = parse_day(date) if date else today_utc()
    except ValueError as exc:
        raise bad_request(exc) from exc
    return asdict(DashboardService.from_session(session, prices=prices).get_dashboard(day))

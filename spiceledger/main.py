from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from spiceledger.api.gql_schema import graphql_router
from spiceledger.api.routes_admin import router as admin_router
from spiceledger.api.routes_auth import router as auth_router
from spiceledger.api.routes_catalog import router as catalog_router
from spiceledger.api.routes_ledger import router as ledger_router
from spiceledger.api.routes_prices import router as prices_router
from spiceledger.core.config import get_settings
from spiceledger.core.logging import configure_logging
from spiceledger.domain.errors import (
    ConflictError,
    InvalidCredentialsError,
    InvalidGradeForProductError,
    InvalidTokenError,
    NotFoundError,
    SpiceLedgerError,
)
from spiceledger.persistence.pg import init_db, session_scope
from spiceledger.services.auth import AuthService

configure_logging()
logger = logging.getLogger(__name__)
settings = get_settings()

app = FastAPI(title="SpiceLedger")


@app.on_event("startup")
def on_startup() -> None:
    init_db()
    if settings.seed_admin_on_startup:
        with session_scope() as session:
            created = AuthService(session).seed_admin()
        logger.info("admin account ready: email=%s seeded_now=%s", settings.admin_email, created)


def _error_response(status_code: int, exc: SpiceLedgerError) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": str(exc), "error": exc.code})


@app.exception_handler(NotFoundError)
async def not_found_handler(_: Request, exc: NotFoundError):
    return _error_response(404, exc)


@app.exception_handler(ConflictError)
async def conflict_handler(_: Request, exc: ConflictError):
    return _error_response(409, exc)


@app.exception_handler(InvalidCredentialsError)
async def invalid_credentials_handler(_: Request, exc: InvalidCredentialsError):
    return _error_response(401, exc)


@app.exception_handler(InvalidTokenError)
async def invalid_token_handler(_: Request, exc: InvalidTokenError):
    return _error_response(401, exc)


@app.exception_handler(InvalidGradeForProductError)
async def invalid_grade_handler(_: Request, exc: InvalidGradeForProductError):
    return _error_response(400, exc)


@app.get("/healthz")
def healthz() -> dict:
    return {"status": "ok"}


app.include_router(auth_router)
app.include_router(admin_router)
app.include_router(catalog_router)
app.include_router(ledger_router)
app.include_router(prices_router)
app.include_router(graphql_router, prefix="/graphql")

from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from fastapi import HTTPException

from spiceledger.persistence.models import GradeModel, ProductModel, UserModel


def parse_day(value: str) -> date:
    try:
        return date.fromisoformat(value.strip())
    except (AttributeError, ValueError) as exc:
        raise ValueError("invalid date format (YYYY-MM-DD)") from exc


def parse_id(value: str, field: str) -> str:
    try:
        return str(UUID(str(value)))
    except ValueError as exc:
        raise ValueError(f"invalid {field}") from exc


def bad_request(exc: ValueError) -> HTTPException:
    return HTTPException(status_code=400, detail=str(exc))


def iso(value: datetime | date | None) -> str | None:
    if value is None:
        return None
    return value.isoformat().replace("+00:00", "Z")


def product_to_dict(row: ProductModel) -> dict:
    return {
        "id": row.id,
        "name": row.name,
        "description": row.description,
        "created_at": iso(row.created_at),
    }


def grade_to_dict(row: GradeModel) -> dict:
    return {
        "id": row.id,
        "product_id": row.product_id,
        "product": row.product.name if row.product is not None else None,
        "name": row.name,
        "description": row.description,
        "created_at": iso(row.created_at),
    }


def user_to_dict(row: UserModel) -> dict:
    return {
        "id": row.id,
        "email": row.email,
        "name": row.name,
        "role": row.role,
        "created_at": iso(row.created_at),
    }

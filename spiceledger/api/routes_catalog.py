from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from spiceledger.api.utils import bad_request, grade_to_dict, parse_id, product_to_dict
from spiceledger.core.security import Principal, get_principal, require_admin
from spiceledger.persistence.pg import get_session
from spiceledger.services.catalog import CatalogService

router = APIRouter(prefix="/api", tags=["catalog"])


class CreateProductRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str | None = None


class CreateGradeRequest(BaseModel):
    product_id: str
    name: str = Field(min_length=1, max_length=50)
    description: str | None = None


@router.get("/products")
def list_products(
    _: Principal = Depends(get_principal),
    session: Session = Depends(get_session),
):
    products = CatalogService(session).list_products()
    return [product_to_dict(row) for row in products]


@router.post("/products", status_code=201)
def create_product(
    request: CreateProductRequest,
    principal: Principal = Depends(get_principal),
    session: Session = Depends(get_session),
):
    require_admin(principal)
    product = CatalogService(session).create_product(request.name, request.description)
    return product_to_dict(product)


@router.get("/grades")
def list_grades(
    product_id: str | None = Query(default=None),
    _: Principal = Depends(get_principal),
    session: Session = Depends(get_session),
):
    try:
        pid = parse_id(product_id, "product_id") if product_id else None
    except ValueError as exc:
        raise bad_request(exc) from exc
    grades = CatalogService(session).list_grades(pid)
    return [grade_to_dict(row) for row in grades]


@router.post("/grades", status_code=201)
def create_grade(
    request: CreateGradeRequest,
    principal: Principal = Depends(get_principal),
    session: Session = Depends(get_session),
):
    require_admin(principal)
    try:
        product_id = parse_id(request.product_id, "product_id")
    except ValueError as exc:
        raise bad_request(exc) from exc
    grade = CatalogService(session).create_grade(product_id, request.name, request.description)
    return grade_to_dict(grade)

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from spiceledger.persistence.models import GradeModel, ProductModel


class CatalogStore:
    def __init__(self, session: Session):
        self.session = session

    def create_product(self, name: str, description: str | None = None) -> ProductModel:
        row = ProductModel(name=name, description=description)
        self.session.add(row)
        self.session.flush()
        return row

    def get_product(self, product_id: str) -> ProductModel | None:
        return self.session.get(ProductModel, product_id)

    def find_product_by_name(self, name: str) -> ProductModel | None:
        return self.session.scalar(select(ProductModel).where(ProductModel.name == name))

    def list_products(self) -> list[ProductModel]:
        stmt = select(ProductModel).order_by(ProductModel.name.asc())
        return list(self.session.scalars(stmt).all())

    def count_products(self) -> int:
        return int(self.session.scalar(select(func.count()).select_from(ProductModel)) or 0)

    def count_products_created_between(self, start: datetime, end: datetime) -> int:
        stmt = (
            select(func.count())
            .select_from(ProductModel)
            .where(ProductModel.created_at >= start)
            .where(ProductModel.created_at < end)
        )
        return int(self.session.scalar(stmt) or 0)

    def create_grade(self, product_id: str, name: str, description: str | None = None) -> GradeModel:
        row = GradeModel(product_id=product_id, name=name, description=description)
        self.session.add(row)
        self.session.flush()
        return row

    def get_grade(self, grade_id: str) -> GradeModel | None:
        return self.session.get(GradeModel, grade_id)

    def find_grade(self, product_id: str, name: str) -> GradeModel | None:
        stmt = select(GradeModel).where(GradeModel.product_id == product_id).where(GradeModel.name == name)
        return self.session.scalar(stmt)

    def list_grades(self, product_id: str | None = None) -> list[GradeModel]:
        stmt = select(GradeModel).order_by(GradeModel.name.asc())
        if product_id is not None:
            stmt = stmt.where(GradeModel.product_id == product_id)
        return list(self.session.scalars(stmt).unique().all())

    def count_grades(self) -> int:
        return int(self.session.scalar(select(func.count()).select_from(GradeModel)) or 0)

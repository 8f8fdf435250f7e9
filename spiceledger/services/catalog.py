from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from spiceledger.catalog.store import CatalogStore
from spiceledger.domain.errors import ConflictError, ProductNotFoundError
from spiceledger.persistence.models import GradeModel, ProductModel

logger = logging.getLogger(__name__)


class CatalogService:
    def __init__(self, session: Session, catalog: CatalogStore | None = None):
        self.catalog = catalog or CatalogStore(session)

    def create_product(self, name: str, description: str | None = None) -> ProductModel:
        name = name.strip()
        if self.catalog.find_product_by_name(name) is not None:
            raise ConflictError(f"product already exists: {name}")
        product = self.catalog.create_product(name=name, description=description)
        logger.info("created product id=%s name=%s", product.id, product.name)
        return product

    def list_products(self) -> list[ProductModel]:
        return self.catalog.list_products()

    def create_grade(self, product_id: str, name: str, description: str | None = None) -> GradeModel:
        if self.catalog.get_product(product_id) is None:
            raise ProductNotFoundError()
        name = name.strip()
        if self.catalog.find_grade(product_id, name) is not None:
            raise ConflictError(f"grade already exists for product: {name}")
        grade = self.catalog.create_grade(product_id=product_id, name=name, description=description)
        logger.info("created grade id=%s product_id=%s name=%s", grade.id, product_id, grade.name)
        return grade

    def list_grades(self, product_id: str | None = None) -> list[GradeModel]:
        return self.catalog.list_grades(product_id)

from __future__ import annotations

from datetime import date

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from spiceledger.domain.models import LedgerQueryOptions, PurchaseLot, SaleTransaction
from spiceledger.persistence.models import PurchaseLotModel, SaleTransactionModel


def to_purchase_lot(row: PurchaseLotModel) -> PurchaseLot:
    return PurchaseLot(
        id=row.id,
        user_id=row.user_id,
        product_id=row.product_id,
        grade_id=row.grade_id,
        date=row.date,
        quantity_kg=float(row.quantity_kg),
        unit_cost=float(row.unit_cost),
        created_at=row.created_at,
        product=row.product.name if row.product is not None else "",
        grade=row.grade.name if row.grade is not None else "",
    )


def to_sale_transaction(row: SaleTransactionModel) -> SaleTransaction:
    return SaleTransaction(
        id=row.id,
        user_id=row.user_id,
        product_id=row.product_id,
        grade_id=row.grade_id,
        date=row.date,
        quantity_kg=float(row.quantity_kg),
        unit_price=float(row.unit_price),
        created_at=row.created_at,
        product=row.product.name if row.product is not None else "",
        grade=row.grade.name if row.grade is not None else "",
    )


class LedgerStore:
    """Append-only purchase lots and sales, always read back in (date, created_at) order."""

    def __init__(self, session: Session):
        self.session = session

    def create_lot(
        self,
        user_id: str,
        day: date,
        product_id: str,
        grade_id: str,
        quantity_kg: float,
        unit_cost: float,
    ) -> PurchaseLot:
        row = PurchaseLotModel(
            user_id=user_id,
            date=day,
            product_id=product_id,
            grade_id=grade_id,
            quantity_kg=quantity_kg,
            unit_cost=unit_cost,
        )
        self.session.add(row)
        self.session.flush()
        self.session.refresh(row)
        return to_purchase_lot(row)

    def create_sale(
        self,
        user_id: str,
        day: date,
        product_id: str,
        grade_id: str,
        quantity_kg: float,
        unit_price: float,
    ) -> SaleTransaction:
        row = SaleTransactionModel(
            user_id=user_id,
            date=day,
            product_id=product_id,
            grade_id=grade_id,
            quantity_kg=quantity_kg,
            unit_price=unit_price,
        )
        self.session.add(row)
        self.session.flush()
        self.session.refresh(row)
        return to_sale_transaction(row)

    def _lots_stmt(self, user_id: str, options: LedgerQueryOptions | None) -> Select:
        stmt = (
            select(PurchaseLotModel)
            .where(PurchaseLotModel.user_id == user_id)
            .order_by(PurchaseLotModel.date.asc(), PurchaseLotModel.created_at.asc())
        )
        if options is not None and options.product_id:
            stmt = stmt.where(PurchaseLotModel.product_id == options.product_id)
        if options is not None and options.grade_id:
            stmt = stmt.where(PurchaseLotModel.grade_id == options.grade_id)
        return stmt

    def _sales_stmt(self, user_id: str, options: LedgerQueryOptions | None) -> Select:
        stmt = (
            select(SaleTransactionModel)
            .where(SaleTransactionModel.user_id == user_id)
            .order_by(SaleTransactionModel.date.asc(), SaleTransactionModel.created_at.asc())
        )
        if options is not None and options.product_id:
            stmt = stmt.where(SaleTransactionModel.product_id == options.product_id)
        if options is not None and options.grade_id:
            stmt = stmt.where(SaleTransactionModel.grade_id == options.grade_id)
        return stmt

    def list_lots(self, user_id: str, options: LedgerQueryOptions | None = None) -> list[PurchaseLot]:
        rows = self.session.scalars(self._lots_stmt(user_id, options)).all()
        return [to_purchase_lot(row) for row in rows]

    def list_sales(self, user_id: str, options: LedgerQueryOptions | None = None) -> list[SaleTransaction]:
        rows = self.session.scalars(self._sales_stmt(user_id, options)).all()
        return [to_sale_transaction(row) for row in rows]

    def get_history(self, user_id: str, as_of: date) -> tuple[list[PurchaseLot], list[SaleTransaction]]:
        lots = self.session.scalars(
            self._lots_stmt(user_id, None).where(PurchaseLotModel.date <= as_of)
        ).all()
        sales = self.session.scalars(
            self._sales_stmt(user_id, None).where(SaleTransactionModel.date <= as_of)
        ).all()
        return [to_purchase_lot(row) for row in lots], [to_sale_transaction(row) for row in sales]

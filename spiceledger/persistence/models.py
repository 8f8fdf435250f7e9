from __future__ import annotations

import datetime as dt
import uuid
from typing import Optional

from sqlalchemy import (
    Date,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _uuid() -> str:
    return str(uuid.uuid4())


def _now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def _amount():
    return Numeric(14, 4, asdecimal=False)


class Base(DeclarativeBase):
    pass


class UserModel(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="user")
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_now,
        onupdate=_now,
    )


class ProductModel(Base):
    __tablename__ = "products"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_now)


class GradeModel(Base):
    __tablename__ = "grades"
    __table_args__ = (
        UniqueConstraint("product_id", "name", name="uq_grades_product_name"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    product_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_now)

    product: Mapped[ProductModel] = relationship(lazy="joined")


class PurchaseLotModel(Base):
    __tablename__ = "purchase_lots"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False)
    product_id: Mapped[str] = mapped_column(String(36), ForeignKey("products.id"), nullable=False)
    grade_id: Mapped[str] = mapped_column(String(36), ForeignKey("grades.id"), nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    quantity_kg: Mapped[float] = mapped_column(_amount(), nullable=False)
    unit_cost: Mapped[float] = mapped_column(_amount(), nullable=False)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_now)

    product: Mapped[ProductModel] = relationship(lazy="joined")
    grade: Mapped[GradeModel] = relationship(lazy="joined")


class SaleTransactionModel(Base):
    __tablename__ = "sale_transactions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False)
    product_id: Mapped[str] = mapped_column(String(36), ForeignKey("products.id"), nullable=False)
    grade_id: Mapped[str] = mapped_column(String(36), ForeignKey("grades.id"), nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    quantity_kg: Mapped[float] = mapped_column(_amount(), nullable=False)
    unit_price: Mapped[float] = mapped_column(_amount(), nullable=False)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_now)

    product: Mapped[ProductModel] = relationship(lazy="joined")
    grade: Mapped[GradeModel] = relationship(lazy="joined")


class DailyPriceModel(Base):
    __tablename__ = "daily_prices"
    __table_args__ = (
        UniqueConstraint("date", "product_id", "grade_id", name="uq_daily_prices_date_product_grade"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    product_id: Mapped[str] = mapped_column(String(36), ForeignKey("products.id"), nullable=False)
    grade_id: Mapped[str] = mapped_column(String(36), ForeignKey("grades.id"), nullable=False)
    price_per_kg: Mapped[float] = mapped_column(_amount(), nullable=False)
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_now,
        onupdate=_now,
    )


class SchemaMigrationModel(Base):
    __tablename__ = "schema_migrations"

    version: Mapped[str] = mapped_column(String(255), primary_key=True)
    applied_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_now)


Index("ix_purchase_lots_user_date", PurchaseLotModel.user_id, PurchaseLotModel.date)
Index("ix_sale_transactions_user_date", SaleTransactionModel.user_id, SaleTransactionModel.date)
Index("ix_grades_product_id", GradeModel.product_id)
Index("ix_daily_prices_date", DailyPriceModel.date)

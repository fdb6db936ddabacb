"""Crop, Expense, Sale ORM models: the persisted farm records.

Rows here are written by the record-entry endpoints of the wider farm
application.  The analytics engine never reads these classes directly:
``RecordService`` converts each row into the frozen pydantic record
models before any computation happens.

There is intentionally no cached ``total_expenses`` column on ``crops``;
totals are always recomputed from ``expenses`` rows.
"""

from __future__ import annotations

import uuid
import datetime as dt

from sqlalchemy import CheckConstraint, Date, Enum, Float, ForeignKey, Index, Numeric, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from farmledger.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from farmledger.models.enums import (
    AreaUnitEnum,
    CropStatusEnum,
    ExpenseCategoryEnum,
    SaleTypeEnum,
    YieldUnitEnum,
)


def _pg_enum(enum_cls: type, name: str) -> Enum:
    return Enum(enum_cls, name=name, create_constraint=False, native_enum=True)


# ═══════════════════════════════════════════════════════════════════════════
# Crop (production unit)
# ═══════════════════════════════════════════════════════════════════════════


class Crop(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A crop planting or livestock group tracked through its status lifecycle."""

    __tablename__ = "crops"
    __table_args__ = (Index("ix_crops_status", "status"),)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(String(100), nullable=False)
    variety: Mapped[str | None] = mapped_column(String(100), nullable=True)
    status: Mapped[CropStatusEnum] = mapped_column(
        _pg_enum(CropStatusEnum, "crop_status"),
        nullable=False,
        default=CropStatusEnum.PLANNED,
    )
    planting_date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    expected_harvest_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    actual_harvest_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    area: Mapped[float | None] = mapped_column(Float, nullable=True)
    area_unit: Mapped[AreaUnitEnum | None] = mapped_column(
        _pg_enum(AreaUnitEnum, "area_unit"), nullable=True
    )
    expected_yield: Mapped[float | None] = mapped_column(Float, nullable=True)
    actual_yield: Mapped[float | None] = mapped_column(Float, nullable=True)
    yield_unit: Mapped[YieldUnitEnum | None] = mapped_column(
        _pg_enum(YieldUnitEnum, "yield_unit"), nullable=True
    )
    market_price: Mapped[float | None] = mapped_column(Numeric(12, 2, asdecimal=False), nullable=True)
    field_location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    expenses: Mapped[list[Expense]] = relationship(
        back_populates="crop",
        cascade="all, delete-orphan",
        lazy="noload",
    )
    sales: Mapped[list[Sale]] = relationship(
        back_populates="crop",
        cascade="all, delete-orphan",
        lazy="noload",
    )

    def __repr__(self) -> str:
        return f"<Crop id={self.id} name={self.name!r} status={self.status}>"


# ═══════════════════════════════════════════════════════════════════════════
# Expense
# ═══════════════════════════════════════════════════════════════════════════


class Expense(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A cost booked against exactly one production unit."""

    __tablename__ = "expenses"
    __table_args__ = (
        Index("ix_expenses_crop_id_date", "crop_id", "date"),
        CheckConstraint("amount > 0", name="amount_positive"),
    )

    crop_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("crops.id", ondelete="CASCADE"),
        nullable=False,
    )
    category: Mapped[ExpenseCategoryEnum] = mapped_column(
        _pg_enum(ExpenseCategoryEnum, "expense_category"),
        nullable=False,
    )
    amount: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    flock_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    livestock_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)

    crop: Mapped[Crop] = relationship(back_populates="expenses")

    def __repr__(self) -> str:
        return f"<Expense id={self.id} crop={self.crop_id} amount={self.amount}>"


# ═══════════════════════════════════════════════════════════════════════════
# Sale
# ═══════════════════════════════════════════════════════════════════════════


class Sale(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A recorded sale.  ``total_amount`` is kept for display only; analytics recompute it."""

    __tablename__ = "sales"
    __table_args__ = (
        Index("ix_sales_crop_id_sale_date", "crop_id", "sale_date"),
        CheckConstraint("quantity > 0", name="quantity_positive"),
    )

    crop_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("crops.id", ondelete="CASCADE"),
        nullable=False,
    )
    sale_type: Mapped[SaleTypeEnum] = mapped_column(
        _pg_enum(SaleTypeEnum, "sale_type"),
        nullable=False,
    )
    quantity: Mapped[float] = mapped_column(Float, nullable=False)
    unit_price: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), nullable=False)
    total_amount: Mapped[float | None] = mapped_column(Numeric(14, 2, asdecimal=False), nullable=True)
    sale_date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    customer_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    crop: Mapped[Crop] = relationship(back_populates="sales")

    def __repr__(self) -> str:
        return f"<Sale id={self.id} crop={self.crop_id} qty={self.quantity}>"

"""farm_records

Revision ID: 3c7e9a41f0b2
Revises:
Create Date: 2026-10-18 00:00:00.000000

Creates the crops, expenses and sales tables with their PostgreSQL enum
types.  Expects the uuid-ossp extension to be enabled.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "3c7e9a41f0b2"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

# ── Enum type names (PostgreSQL CREATE TYPE) ────────────────────────────────
ENUM_CROP_STATUS = postgresql.ENUM(
    "PLANNED",
    "PLANTED",
    "GROWING",
    "READY_FOR_HARVEST",
    "HARVESTED",
    "STOCKED",
    "SOLD",
    "FAILED",
    name="crop_status",
    create_type=False,
)
ENUM_AREA_UNIT = postgresql.ENUM(
    "ACRES", "HECTARES", "SQUARE_METERS", name="area_unit", create_type=False
)
ENUM_YIELD_UNIT = postgresql.ENUM(
    "TONS", "KILOGRAMS", "POUNDS", "BUSHELS", "UNITS", name="yield_unit", create_type=False
)
ENUM_EXPENSE_CATEGORY = postgresql.ENUM(
    "SEEDS",
    "FERTILIZER",
    "PESTICIDES",
    "LABOR",
    "IRRIGATION",
    "EQUIPMENT",
    "FUEL",
    "MAINTENANCE",
    "TRANSPORTATION",
    "FEED",
    "VETERINARY",
    "OTHER",
    name="expense_category",
    create_type=False,
)
ENUM_SALE_TYPE = postgresql.ENUM(
    "ANIMAL", "PRODUCT", "CROP", name="sale_type", create_type=False
)

ALL_ENUMS = (
    ENUM_CROP_STATUS,
    ENUM_AREA_UNIT,
    ENUM_YIELD_UNIT,
    ENUM_EXPENSE_CATEGORY,
    ENUM_SALE_TYPE,
)


def _uuid_pk() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        server_default=sa.text("uuid_generate_v4()"),
        nullable=False,
    )


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def upgrade() -> None:
    bind = op.get_bind()
    for enum_type in ALL_ENUMS:
        enum_type.create(bind, checkfirst=True)

    # ── crops ───────────────────────────────────────────────────────────
    op.create_table(
        "crops",
        _uuid_pk(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("type", sa.String(length=100), nullable=False),
        sa.Column("variety", sa.String(length=100), nullable=True),
        sa.Column("status", ENUM_CROP_STATUS, nullable=False),
        sa.Column("planting_date", sa.Date(), nullable=False),
        sa.Column("expected_harvest_date", sa.Date(), nullable=True),
        sa.Column("actual_harvest_date", sa.Date(), nullable=True),
        sa.Column("area", sa.Float(), nullable=True),
        sa.Column("area_unit", ENUM_AREA_UNIT, nullable=True),
        sa.Column("expected_yield", sa.Float(), nullable=True),
        sa.Column("actual_yield", sa.Float(), nullable=True),
        sa.Column("yield_unit", ENUM_YIELD_UNIT, nullable=True),
        sa.Column("market_price", sa.Numeric(12, 2), nullable=True),
        sa.Column("field_location", sa.String(length=255), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_crops"),
    )
    op.create_index("ix_crops_status", "crops", ["status"])

    # ── expenses ────────────────────────────────────────────────────────
    op.create_table(
        "expenses",
        _uuid_pk(),
        sa.Column("crop_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("category", ENUM_EXPENSE_CATEGORY, nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("description", sa.String(length=500), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("flock_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("livestock_id", postgresql.UUID(as_uuid=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("amount > 0", name="ck_expenses_amount_positive"),
        sa.ForeignKeyConstraint(
            ["crop_id"], ["crops.id"], ondelete="CASCADE", name="fk_expenses_crop_id_crops"
        ),
        sa.PrimaryKeyConstraint("id", name="pk_expenses"),
    )
    op.create_index("ix_expenses_crop_id_date", "expenses", ["crop_id", "date"])

    # ── sales ───────────────────────────────────────────────────────────
    op.create_table(
        "sales",
        _uuid_pk(),
        sa.Column("crop_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("sale_type", ENUM_SALE_TYPE, nullable=False),
        sa.Column("quantity", sa.Float(), nullable=False),
        sa.Column("unit_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("total_amount", sa.Numeric(14, 2), nullable=True),
        sa.Column("sale_date", sa.Date(), nullable=False),
        sa.Column("description", sa.String(length=500), nullable=True),
        sa.Column("customer_name", sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("quantity > 0", name="ck_sales_quantity_positive"),
        sa.ForeignKeyConstraint(
            ["crop_id"], ["crops.id"], ondelete="CASCADE", name="fk_sales_crop_id_crops"
        ),
        sa.PrimaryKeyConstraint("id", name="pk_sales"),
    )
    op.create_index("ix_sales_crop_id_sale_date", "sales", ["crop_id", "sale_date"])


def downgrade() -> None:
    # ── Drop tables in reverse dependency order ─────────────────────────
    op.drop_table("sales")
    op.drop_table("expenses")
    op.drop_table("crops")

    # ── Drop enum types ─────────────────────────────────────────────────
    bind = op.get_bind()
    for enum_type in reversed(ALL_ENUMS):
        enum_type.drop(bind, checkfirst=True)

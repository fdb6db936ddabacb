"""ORM model registry: importing this module registers every table on Base.metadata.

Alembic ``env.py`` imports ``Base`` from here (not from ``base.py``) so that
autogenerate sees all tables.  Application code can also do::

    from farmledger.models import Crop, Expense, Sale
"""

# ── Base & Mixins ───────────────────────────────────────────────────────────
from farmledger.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

# ── Enums ───────────────────────────────────────────────────────────────────
from farmledger.models.enums import (
    ACTIVE_STATUSES,
    AreaUnitEnum,
    CropStatusEnum,
    ExpenseCategoryEnum,
    SaleTypeEnum,
    YieldUnitEnum,
)

# ── Farm records ────────────────────────────────────────────────────────────
from farmledger.models.records import Crop, Expense, Sale

__all__ = [
    "ACTIVE_STATUSES",
    "AreaUnitEnum",
    # Base & mixins
    "Base",
    # Records
    "Crop",
    # Enums
    "CropStatusEnum",
    "Expense",
    "ExpenseCategoryEnum",
    "Sale",
    "SaleTypeEnum",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "YieldUnitEnum",
]

"""PostgreSQL-backed enum types for the farm record tables.

Each StrEnum maps 1:1 to a PostgreSQL CREATE TYPE ... AS ENUM.
Values are upper-case to match the records written by the entry forms.
Parsing from loose input (any letter case) happens in the pydantic record
schemas, not here.
"""

from enum import StrEnum

# ── Production units ────────────────────────────────────────────────────────


class CropStatusEnum(StrEnum):
    """Lifecycle state of a production unit."""

    PLANNED = "PLANNED"
    PLANTED = "PLANTED"
    GROWING = "GROWING"
    READY_FOR_HARVEST = "READY_FOR_HARVEST"
    HARVESTED = "HARVESTED"
    STOCKED = "STOCKED"
    SOLD = "SOLD"
    FAILED = "FAILED"


ACTIVE_STATUSES: frozenset[CropStatusEnum] = frozenset(
    {
        CropStatusEnum.PLANTED,
        CropStatusEnum.GROWING,
        CropStatusEnum.READY_FOR_HARVEST,
    }
)


class AreaUnitEnum(StrEnum):
    ACRES = "ACRES"
    HECTARES = "HECTARES"
    SQUARE_METERS = "SQUARE_METERS"


class YieldUnitEnum(StrEnum):
    TONS = "TONS"
    KILOGRAMS = "KILOGRAMS"
    POUNDS = "POUNDS"
    BUSHELS = "BUSHELS"
    UNITS = "UNITS"


# ── Money movements ─────────────────────────────────────────────────────────


class ExpenseCategoryEnum(StrEnum):
    """Expense classification shared by crop and livestock expenses."""

    SEEDS = "SEEDS"
    FERTILIZER = "FERTILIZER"
    PESTICIDES = "PESTICIDES"
    LABOR = "LABOR"
    IRRIGATION = "IRRIGATION"
    EQUIPMENT = "EQUIPMENT"
    FUEL = "FUEL"
    MAINTENANCE = "MAINTENANCE"
    TRANSPORTATION = "TRANSPORTATION"
    FEED = "FEED"
    VETERINARY = "VETERINARY"
    OTHER = "OTHER"


class SaleTypeEnum(StrEnum):
    """What was sold: a whole animal, a product (eggs, milk), or a crop lot."""

    ANIMAL = "ANIMAL"
    PRODUCT = "PRODUCT"
    CROP = "CROP"

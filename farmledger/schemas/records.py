"""Pydantic record models: the strict shape every farm record takes before analytics.

Storage rows and inline API payloads both pass through these models.  The
``mode="before"`` validators absorb the representation drift the record
tables accumulated (lower-case statuses, numeric strings, ISO datetimes in
date columns, camelCase keys) so nothing downstream has to branch on it.
"""

from __future__ import annotations

import datetime as dt
import math
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, computed_field, field_validator
from pydantic.alias_generators import to_camel

from farmledger.models.enums import (
	ACTIVE_STATUSES,
	AreaUnitEnum,
	CropStatusEnum,
	ExpenseCategoryEnum,
	SaleTypeEnum,
	YieldUnitEnum,
)


class ReportInputError(ValueError):
	"""Raised when a record payload is missing one of its required top-level arrays."""


def normalize_token(value: Any) -> Any:
	if isinstance(value, str):
		return value.strip().upper().replace("-", "_").replace(" ", "_")
	return value


CENT = Decimal("0.01")


def to_cents(value: float) -> float:
	"""Round half-up to whole cents, the precision the money columns store."""
	return float(Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP))


def _normalize_money(value: Any) -> Any:
	if isinstance(value, bool) or not isinstance(value, (int, float, str, Decimal)):
		return value
	try:
		amount = Decimal(str(value).strip())
	except InvalidOperation:
		return value
	if not amount.is_finite():
		return value
	return float(amount.quantize(CENT, rounding=ROUND_HALF_UP))


def _normalize_optional_number(value: Any) -> Any:
	if value is None:
		return None
	if isinstance(value, str):
		value = value.strip()
		if not value:
			return None
		return value
	if isinstance(value, float) and not math.isfinite(value):
		return None
	return value


def _normalize_date(value: Any) -> Any:
	if isinstance(value, dt.datetime):
		return value.date()
	if isinstance(value, str):
		value = value.strip()
		if not value:
			return None
		if "T" in value or " " in value:
			return dt.datetime.fromisoformat(value.replace("Z", "+00:00")).date()
	return value


class _RecordModel(BaseModel):
	model_config = ConfigDict(
		frozen=True,
		alias_generator=to_camel,
		populate_by_name=True,
		from_attributes=True,
		extra="ignore",
	)


class ProductionUnit(_RecordModel):
	"""A crop planting or livestock group, as an immutable snapshot."""

	id: uuid.UUID
	name: str = Field(min_length=1, max_length=255)
	type: str = Field(
		default="unknown",
		validation_alias=AliasChoices("type", "crop_type", "cropType", "unit_type", "unitType"),
	)
	variety: str | None = None
	status: CropStatusEnum = CropStatusEnum.PLANNED
	planting_date: dt.date
	expected_harvest_date: dt.date | None = None
	actual_harvest_date: dt.date | None = None
	area: float | None = Field(default=None, ge=0)
	area_unit: AreaUnitEnum | None = None
	expected_yield: float | None = Field(default=None, ge=0)
	actual_yield: float | None = Field(default=None, ge=0)
	yield_unit: YieldUnitEnum | None = None
	market_price: float | None = Field(default=None, ge=0)
	field_location: str | None = None

	@field_validator("status", "area_unit", "yield_unit", mode="before")
	@classmethod
	def _normalize_enums(cls, value: Any) -> Any:
		if isinstance(value, str) and not value.strip():
			return None
		return normalize_token(value)

	@field_validator("area", "expected_yield", "actual_yield", "market_price", mode="before")
	@classmethod
	def _normalize_numbers(cls, value: Any) -> Any:
		return _normalize_optional_number(value)

	@field_validator("planting_date", "expected_harvest_date", "actual_harvest_date", mode="before")
	@classmethod
	def _normalize_dates(cls, value: Any) -> Any:
		return _normalize_date(value)

	@property
	def is_active(self) -> bool:
		return self.status in ACTIVE_STATUSES

	@property
	def is_revenue_eligible(self) -> bool:
		"""Only sold units carry realized revenue."""
		return self.status == CropStatusEnum.SOLD

	@property
	def yield_quantity(self) -> float | None:
		return self.actual_yield if self.actual_yield is not None else self.expected_yield

	@property
	def harvest_date(self) -> dt.date | None:
		return self.actual_harvest_date or self.expected_harvest_date


class ExpenseRecord(_RecordModel):
	id: uuid.UUID
	unit_id: uuid.UUID = Field(
		validation_alias=AliasChoices("unit_id", "unitId", "crop_id", "cropId"),
	)
	category: ExpenseCategoryEnum = ExpenseCategoryEnum.OTHER
	amount: float = Field(gt=0, allow_inf_nan=False)
	date: dt.date
	description: str = ""
	notes: str | None = None
	flock_id: uuid.UUID | None = None
	livestock_id: uuid.UUID | None = None

	@field_validator("category", mode="before")
	@classmethod
	def _normalize_category(cls, value: Any) -> Any:
		return normalize_token(value)

	@field_validator("amount", mode="before")
	@classmethod
	def _normalize_amount(cls, value: Any) -> Any:
		return _normalize_money(value)

	@field_validator("date", mode="before")
	@classmethod
	def _normalize_expense_date(cls, value: Any) -> Any:
		return _normalize_date(value)


class SaleRecord(_RecordModel):
	"""A sale.  Any persisted total in the input is ignored; ``total`` is always derived
	from quantity and unit price, rounded to cents."""

	id: uuid.UUID
	unit_id: uuid.UUID = Field(
		validation_alias=AliasChoices(
			"unit_id",
			"unitId",
			"crop_id",
			"cropId",
			"livestock_id",
			"livestockId",
			"flock_id",
			"flockId",
		),
	)
	sale_type: SaleTypeEnum = SaleTypeEnum.PRODUCT
	quantity: float = Field(gt=0, allow_inf_nan=False)
	unit_price: float = Field(ge=0, allow_inf_nan=False)
	sale_date: dt.date
	description: str | None = None
	customer_name: str | None = None

	@field_validator("sale_type", mode="before")
	@classmethod
	def _normalize_sale_type(cls, value: Any) -> Any:
		return normalize_token(value)

	@field_validator("unit_price", mode="before")
	@classmethod
	def _normalize_unit_price(cls, value: Any) -> Any:
		return _normalize_money(value)

	@field_validator("sale_date", mode="before")
	@classmethod
	def _normalize_sale_date(cls, value: Any) -> Any:
		return _normalize_date(value)

	@computed_field  # type: ignore[prop-decorator]
	@property
	def total(self) -> float:
		return to_cents(self.quantity * self.unit_price)


_PAYLOAD_KEYS: dict[str, tuple[str, ...]] = {
	"production_units": ("production_units", "productionUnits"),
	"expenses": ("expenses",),
	"sales": ("sales",),
}


@dataclass(frozen=True)
class RecordSnapshot:
	"""One immutable view of every record an aggregation pass may read."""

	units: tuple[ProductionUnit, ...] = field(default_factory=tuple)
	expenses: tuple[ExpenseRecord, ...] = field(default_factory=tuple)
	sales: tuple[SaleRecord, ...] = field(default_factory=tuple)

	@classmethod
	def from_payload(cls, payload: Mapping[str, Any]) -> RecordSnapshot:
		"""Validate a loose mapping of record arrays into a snapshot.

		Raises ``ReportInputError`` naming the first missing (or non-list)
		top-level array.  Individual malformed records raise pydantic's
		``ValidationError``.
		"""
		if not isinstance(payload, Mapping):
			raise ReportInputError("record payload must be a mapping")

		arrays: dict[str, list[Any]] = {}
		for name, keys in _PAYLOAD_KEYS.items():
			raw = next((payload[key] for key in keys if key in payload), None)
			if raw is None:
				raise ReportInputError(f"missing required field: {name}")
			if not isinstance(raw, (list, tuple)):
				raise ReportInputError(f"field {name} must be a list")
			arrays[name] = list(raw)

		return cls(
			units=tuple(ProductionUnit.model_validate(item) for item in arrays["production_units"]),
			expenses=tuple(ExpenseRecord.model_validate(item) for item in arrays["expenses"]),
			sales=tuple(SaleRecord.model_validate(item) for item in arrays["sales"]),
		)

from __future__ import annotations

import uuid
from collections.abc import Callable
from datetime import date, datetime
from types import SimpleNamespace
from typing import Any

import pytest
from pydantic import ValidationError

from farmledger.models.enums import CropStatusEnum, ExpenseCategoryEnum, SaleTypeEnum
from farmledger.schemas.records import ExpenseRecord, ProductionUnit, RecordSnapshot, ReportInputError, SaleRecord


def test_unit_normalizes_loose_input() -> None:
	unit = ProductionUnit.model_validate(
		{
			"id": str(uuid.uuid4()),
			"name": "Orchard row 4",
			"cropType": "Apple",
			"status": "ready for harvest",
			"plantingDate": "2024-01-01T08:30:00Z",
			"marketPrice": "12.5",
			"area": "",
			"areaUnit": "hectares",
		}
	)

	assert unit.type == "Apple"
	assert unit.status == CropStatusEnum.READY_FOR_HARVEST
	assert unit.planting_date == date(2024, 1, 1)
	assert unit.market_price == 12.5
	assert unit.area is None
	assert unit.is_active
	assert not unit.is_revenue_eligible


def test_unit_yield_and_harvest_fallbacks(make_unit: Callable[..., dict[str, Any]]) -> None:
	unit = ProductionUnit.model_validate(
		make_unit(expected_yield=40, expected_harvest_date="2024-05-01", status="harvested")
	)

	assert unit.yield_quantity == 40
	assert unit.harvest_date == date(2024, 5, 1)

	harvested = unit.model_copy(update={"actual_yield": 0.0, "actual_harvest_date": date(2024, 4, 20)})
	assert harvested.yield_quantity == 0.0
	assert harvested.harvest_date == date(2024, 4, 20)


def test_unit_rejects_unknown_status(make_unit: Callable[..., dict[str, Any]]) -> None:
	with pytest.raises(ValidationError):
		ProductionUnit.model_validate(make_unit(status="composted"))


def test_records_are_immutable(make_unit: Callable[..., dict[str, Any]]) -> None:
	unit = ProductionUnit.model_validate(make_unit())
	with pytest.raises(ValidationError):
		unit.name = "renamed"  # type: ignore[misc]


@pytest.mark.parametrize("amount", [0, -5, "-1.25", 0.004, float("nan")])
def test_expense_amount_must_be_positive(make_expense: Callable[..., dict[str, Any]], amount: Any) -> None:
	with pytest.raises(ValidationError):
		ExpenseRecord.model_validate(make_expense(uuid.uuid4(), amount, "2024-01-01"))


def test_expense_accepts_storage_row_shape() -> None:
	crop_id = uuid.uuid4()
	row = SimpleNamespace(
		id=uuid.uuid4(),
		crop_id=crop_id,
		category="labor",
		amount=40.0,
		date=datetime(2024, 2, 3, 14, 0),
		description="Weeding",
		notes=None,
		flock_id=None,
		livestock_id=None,
	)

	expense = ExpenseRecord.model_validate(row)

	assert expense.unit_id == crop_id
	assert expense.category == ExpenseCategoryEnum.LABOR
	assert expense.date == date(2024, 2, 3)


def test_expense_numeric_string_amount(make_expense: Callable[..., dict[str, Any]]) -> None:
	expense = ExpenseRecord.model_validate(make_expense(uuid.uuid4(), "12.50", "2024-01-01", category="fuel"))

	assert expense.amount == 12.5
	assert expense.category == ExpenseCategoryEnum.FUEL


def test_sale_total_is_derived(make_sale: Callable[..., dict[str, Any]]) -> None:
	sale = SaleRecord.model_validate(make_sale(uuid.uuid4(), 4, 2.5, "2024-03-01", total_amount=1000, sale_type="crop"))

	assert sale.total == 10.0
	assert sale.sale_type == SaleTypeEnum.CROP
	assert sale.model_dump()["total"] == 10.0


def test_sale_accepts_livestock_reference() -> None:
	animal_id = uuid.uuid4()
	sale = SaleRecord.model_validate(
		{
			"id": str(uuid.uuid4()),
			"livestockId": str(animal_id),
			"saleType": "animal",
			"quantity": "1",
			"unitPrice": "350",
			"saleDate": "2024-06-01",
		}
	)

	assert sale.unit_id == animal_id
	assert sale.total == 350.0


@pytest.mark.parametrize("quantity", [0, -2])
def test_sale_quantity_must_be_positive(make_sale: Callable[..., dict[str, Any]], quantity: int) -> None:
	with pytest.raises(ValidationError):
		SaleRecord.model_validate(make_sale(uuid.uuid4(), quantity, 10, "2024-03-01"))


def test_snapshot_accepts_camel_case_units_key() -> None:
	snapshot = RecordSnapshot.from_payload({"productionUnits": [], "expenses": [], "sales": []})
	assert snapshot.units == ()


def test_snapshot_rejects_non_list_arrays() -> None:
	with pytest.raises(ReportInputError, match="field sales must be a list"):
		RecordSnapshot.from_payload({"production_units": [], "expenses": [], "sales": {}})

	with pytest.raises(ReportInputError):
		RecordSnapshot.from_payload([])  # type: ignore[arg-type]


def test_report_input_error_is_a_value_error() -> None:
	assert issubclass(ReportInputError, ValueError)


def test_money_is_rounded_to_cents(make_expense: Callable[..., dict[str, Any]], make_sale: Callable[..., dict[str, Any]]) -> None:
	expense = ExpenseRecord.model_validate(make_expense(uuid.uuid4(), 0.125, "2024-01-01"))
	sale = SaleRecord.model_validate(make_sale(uuid.uuid4(), 3, "0.335", "2024-01-01"))
	fractional = SaleRecord.model_validate(make_sale(uuid.uuid4(), 1.5, 0.33, "2024-01-01"))

	assert expense.amount == 0.13
	assert sale.unit_price == 0.34
	assert sale.total == 1.02
	assert fractional.total == 0.5

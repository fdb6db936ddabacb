from __future__ import annotations

import math
from collections.abc import Callable
from datetime import date
from typing import Any

import pytest

from farmledger.engine.metrics import (
	compute_cost_per_yield_unit,
	compute_days_to_harvest,
	compute_entity_metrics,
	compute_profit,
	compute_projected_revenue,
	compute_revenue,
	compute_roi,
	compute_sales_revenue,
	compute_total_expenses,
	compute_yield_per_area,
	finite,
)
from farmledger.schemas.records import ExpenseRecord, ProductionUnit, SaleRecord


@pytest.fixture
def sold_unit(make_unit: Callable[..., dict[str, Any]]) -> ProductionUnit:
	return ProductionUnit.model_validate(
		make_unit(
			name="Roma block",
			status="SOLD",
			planting_date="2024-01-01",
			actual_harvest_date="2024-03-31",
			area=2,
			actual_yield=10,
			market_price=20,
		)
	)


def _expenses(make_expense: Callable[..., dict[str, Any]], unit: ProductionUnit, *amounts: float) -> list[ExpenseRecord]:
	return [ExpenseRecord.model_validate(make_expense(unit.id, amount, "2024-01-15")) for amount in amounts]


def test_sold_unit_metrics(sold_unit: ProductionUnit, make_expense: Callable[..., dict[str, Any]]) -> None:
	metrics = compute_entity_metrics(sold_unit, _expenses(make_expense, sold_unit, 100, 50))

	assert metrics.revenue == 200.0
	assert metrics.total_expenses == 150.0
	assert metrics.expense_count == 2
	assert metrics.profit == 50.0
	assert metrics.roi_percentage == 33.33
	assert metrics.cost_per_yield_unit == 15.0
	assert metrics.yield_per_area_unit == 5.0
	assert metrics.days_to_harvest == 90
	assert metrics.projected_revenue == 0.0


def test_growing_unit_has_no_realized_revenue(
	make_unit: Callable[..., dict[str, Any]],
	make_expense: Callable[..., dict[str, Any]],
) -> None:
	unit = ProductionUnit.model_validate(
		make_unit(status="GROWING", expected_yield=40, market_price=5, expected_harvest_date="2024-06-01")
	)
	metrics = compute_entity_metrics(unit, _expenses(make_expense, unit, 150))

	assert metrics.revenue == 0.0
	assert metrics.profit == -150.0
	assert metrics.roi_percentage == -100.0
	assert metrics.projected_revenue == 200.0
	# Expected harvest date never counts as days-to-harvest.
	assert metrics.days_to_harvest is None


def test_zero_expenses_gives_zero_roi(sold_unit: ProductionUnit) -> None:
	metrics = compute_entity_metrics(sold_unit, [])

	assert metrics.profit == 200.0
	assert metrics.roi_percentage == 0.0
	assert metrics.cost_per_yield_unit == 0.0


def test_zero_denominators_yield_none() -> None:
	assert compute_cost_per_yield_unit(120.0, 0) is None
	assert compute_cost_per_yield_unit(120.0, None) is None
	assert compute_yield_per_area(10.0, 0) is None
	assert compute_yield_per_area(None, 3.0) is None
	assert compute_yield_per_area(9.0, 3.0) == 3.0


def test_roi_guards() -> None:
	assert compute_roi(50.0, 0.0) == 0.0
	assert compute_roi(50.0, -10.0) == 0.0
	assert compute_roi(None, 100.0) is None
	assert compute_roi(1.0, 3.0) == 33.33
	assert compute_roi(float("nan"), 100.0) is None


def test_profit_propagates_missing_values() -> None:
	assert compute_profit(None, 10.0) is None
	assert compute_profit(10.0, float("inf")) is None
	assert compute_profit(200.0, 150.0) == 50.0


def test_sold_unit_without_price_is_unpriced(make_unit: Callable[..., dict[str, Any]]) -> None:
	unit = ProductionUnit.model_validate(make_unit(status="SOLD", actual_yield=12))
	assert compute_revenue(unit) is None

	metrics = compute_entity_metrics(unit, [])
	assert metrics.revenue is None
	assert metrics.profit is None
	assert metrics.roi_percentage == 0.0


def test_revenue_falls_back_to_expected_yield(make_unit: Callable[..., dict[str, Any]]) -> None:
	unit = ProductionUnit.model_validate(make_unit(status="SOLD", expected_yield=8, market_price=2.5))
	assert compute_revenue(unit) == 20.0


def test_projected_revenue_only_for_active_units(make_unit: Callable[..., dict[str, Any]]) -> None:
	planned = ProductionUnit.model_validate(make_unit(status="PLANNED", expected_yield=8, market_price=2))
	ready = ProductionUnit.model_validate(make_unit(status="ready_for_harvest", expected_yield=8, market_price=2))

	assert compute_projected_revenue(planned) == 0.0
	assert compute_projected_revenue(ready) == 16.0


def test_sales_revenue_recomputes_totals(make_sale: Callable[..., dict[str, Any]], sold_unit: ProductionUnit) -> None:
	sales = [
		SaleRecord.model_validate(make_sale(sold_unit.id, 3, 12.5, "2024-04-01", total_amount=1.0)),
		SaleRecord.model_validate(make_sale(sold_unit.id, 1, 0, "2024-04-02")),
	]
	assert compute_sales_revenue(sales) == 37.5


def test_total_expenses_uses_exact_summation(
	make_expense: Callable[..., dict[str, Any]],
	sold_unit: ProductionUnit,
) -> None:
	expenses = _expenses(make_expense, sold_unit, *([0.1] * 10))
	assert compute_total_expenses(expenses) == math.fsum([0.1] * 10) == 1.0


def test_days_to_harvest_and_finite_helpers() -> None:
	assert compute_days_to_harvest(date(2024, 1, 1), date(2024, 1, 31)) == 30
	assert compute_days_to_harvest(date(2024, 1, 1), None) is None
	assert finite("12.5") == 12.5
	assert finite("n/a") is None
	assert finite(True) is None
	assert finite(float("-inf")) is None

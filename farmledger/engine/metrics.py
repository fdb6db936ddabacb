"""Per-unit financial and yield metrics: the one authoritative formula for each.

Every report path computes revenue, profit, ROI and the yield ratios by
calling into this module.  Guard policy:

- ROI (and percentage change elsewhere) is ``0.0`` when the cost base is 0.
- Cost-per-yield-unit and yield-per-area are ``None`` when the denominator
  is 0, so "no yield yet" stays distinguishable from "zero cost".
- Missing or non-finite inputs propagate as ``None``; nothing here returns
  NaN or infinity, and nothing raises for numeric input.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from datetime import date
from numbers import Real
from typing import Any

from farmledger.schemas.analytics import EntityMetrics
from farmledger.schemas.records import ExpenseRecord, ProductionUnit, SaleRecord

MONEY_PLACES = 2
PERCENT_PLACES = 2


def finite(value: Any) -> float | None:
	"""Return ``value`` as a float, or ``None`` when it is missing or malformed."""
	if value is None or isinstance(value, bool):
		return None
	if not isinstance(value, Real):
		try:
			value = float(value)
		except (TypeError, ValueError):
			return None
	result = float(value)
	if not math.isfinite(result):
		return None
	return result


def round_money(value: float | None) -> float | None:
	if value is None:
		return None
	return round(value, MONEY_PLACES) + 0.0


def round_percent(value: float | None) -> float | None:
	if value is None:
		return None
	return round(value, PERCENT_PLACES) + 0.0


def days_between(start: date | None, end: date | None) -> int | None:
	if start is None or end is None:
		return None
	return (end - start).days


# ── Revenue ─────────────────────────────────────────────────────────────────


def compute_revenue(unit: ProductionUnit) -> float | None:
	"""Realized revenue: market price × yield, only once the unit is SOLD.

	Unsold units return 0.  A sold unit without a usable price or yield
	returns ``None``.
	"""
	if not unit.is_revenue_eligible:
		return 0.0
	price = finite(unit.market_price)
	quantity = finite(unit.yield_quantity)
	if price is None or quantity is None:
		return None
	return price * quantity


def compute_sales_revenue(sales: Iterable[SaleRecord]) -> float:
	"""Sum of sale totals, each recomputed as quantity × unit price in whole cents."""
	return math.fsum(sale.total for sale in sales)


def compute_projected_revenue(unit: ProductionUnit) -> float:
	"""Hypothetical revenue of an active unit at its expected yield and current price."""
	if not unit.is_active:
		return 0.0
	price = finite(unit.market_price)
	quantity = finite(unit.expected_yield)
	if price is None or quantity is None:
		return 0.0
	return price * quantity


# ── Costs & returns ─────────────────────────────────────────────────────────


def compute_total_expenses(expenses: Iterable[ExpenseRecord]) -> float:
	amounts = [amount for amount in (finite(expense.amount) for expense in expenses) if amount is not None]
	return math.fsum(amounts)


def compute_profit(revenue: float | None, total_expenses: float | None) -> float | None:
	revenue = finite(revenue)
	total_expenses = finite(total_expenses)
	if revenue is None or total_expenses is None:
		return None
	return revenue - total_expenses


def compute_roi(profit: float | None, total_expenses: float | None) -> float | None:
	"""``profit / total_expenses × 100``, rounded; 0 when there is no cost base."""
	total_expenses = finite(total_expenses)
	if total_expenses is None or total_expenses <= 0:
		return 0.0
	profit = finite(profit)
	if profit is None:
		return None
	return round_percent(profit / total_expenses * 100.0)


def compute_cost_per_yield_unit(total_expenses: float | None, yield_qty: float | None) -> float | None:
	return _guarded_ratio(total_expenses, yield_qty)


def compute_yield_per_area(yield_qty: float | None, area: float | None) -> float | None:
	return _guarded_ratio(yield_qty, area)


def compute_days_to_harvest(planting_date: date | None, harvest_date: date | None) -> int | None:
	return days_between(planting_date, harvest_date)


def _guarded_ratio(numerator: float | None, denominator: float | None) -> float | None:
	numerator = finite(numerator)
	denominator = finite(denominator)
	if numerator is None or denominator is None or denominator == 0:
		return None
	return numerator / denominator


# ── Entity roll-up ──────────────────────────────────────────────────────────


def compute_entity_metrics(
	unit: ProductionUnit,
	expenses: Iterable[ExpenseRecord],
	revenue: float | None = None,
) -> EntityMetrics:
	"""Roll one unit and its expenses into ``EntityMetrics``.

	``revenue`` lets the caller supply realized revenue it already derived
	(e.g. from sale records); when omitted, ``compute_revenue`` decides.
	"""
	expense_list = list(expenses)
	if revenue is None:
		revenue = compute_revenue(unit)
	total_expenses = compute_total_expenses(expense_list)
	profit = compute_profit(revenue, total_expenses)
	yield_qty = finite(unit.yield_quantity)

	cost_per_unit = compute_cost_per_yield_unit(total_expenses, yield_qty)
	yield_per_area = compute_yield_per_area(yield_qty, unit.area)

	return EntityMetrics(
		unit_id=unit.id,
		name=unit.name,
		type=unit.type,
		status=unit.status,
		revenue=round_money(revenue),
		projected_revenue=round_money(compute_projected_revenue(unit)) or 0.0,
		total_expenses=round_money(total_expenses) or 0.0,
		expense_count=len(expense_list),
		profit=round_money(profit),
		roi_percentage=compute_roi(profit, total_expenses),
		cost_per_yield_unit=round_money(cost_per_unit),
		yield_per_area_unit=round(yield_per_area, 4) if yield_per_area is not None else None,
		days_to_harvest=compute_days_to_harvest(unit.planting_date, unit.actual_harvest_date),
	)

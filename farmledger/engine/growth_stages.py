"""Growth-stage expense attribution.

Stage windows are fixed day offsets from the planting date, inclusive at
whole-day granularity, so consecutive windows touch without overlapping:

    Seedling            day 0   – day 30
    Vegetative          day 31  – day 90
    Flowering/Fruiting  day 91  – day 150
    Maturation          day 151 – harvest date (only when a harvest date exists)

A harvest date earlier than day 150 clips the window it falls in and drops
every later one.  Expenses outside all windows are counted as unallocated.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from datetime import date, timedelta
from typing import NamedTuple

from farmledger.engine.metrics import days_between, finite, round_money
from farmledger.schemas.analytics import GrowthStageAllocation, GrowthStageReport
from farmledger.schemas.records import ExpenseRecord, ProductionUnit


class GrowthStage(NamedTuple):
	name: str
	first_day: int
	last_day: int | None


GROWTH_STAGES: tuple[GrowthStage, ...] = (
	GrowthStage("Seedling", 0, 30),
	GrowthStage("Vegetative", 31, 90),
	GrowthStage("Flowering/Fruiting", 91, 150),
	GrowthStage("Maturation", 151, None),
)


class StageWindow(NamedTuple):
	name: str
	start: date
	end: date

	def contains(self, day: date) -> bool:
		return self.start <= day <= self.end


def stage_windows(planting_date: date, harvest_date: date | None = None) -> list[StageWindow]:
	windows: list[StageWindow] = []
	for stage in GROWTH_STAGES:
		start = planting_date + timedelta(days=stage.first_day)
		if stage.last_day is None:
			if harvest_date is None:
				break
			end = harvest_date
		else:
			end = planting_date + timedelta(days=stage.last_day)
			if harvest_date is not None:
				end = min(end, harvest_date)
		if start > end:
			break
		windows.append(StageWindow(stage.name, start, end))
	return windows


def allocate_expenses(
	planting_date: date,
	harvest_date: date | None,
	expenses: Iterable[ExpenseRecord],
) -> GrowthStageReport:
	windows = stage_windows(planting_date, harvest_date)
	amounts: list[list[float]] = [[] for _ in windows]
	unallocated: list[float] = []

	for expense in expenses:
		amount = finite(expense.amount)
		if amount is None:
			continue
		for idx, window in enumerate(windows):
			if window.contains(expense.date):
				amounts[idx].append(amount)
				break
		else:
			unallocated.append(amount)

	stages = [
		GrowthStageAllocation(
			stage=window.name,
			start_date=window.start,
			end_date=window.end,
			duration_days=(days_between(window.start, window.end) or 0) + 1,
			total_expenses=round_money(math.fsum(bucket)) or 0.0,
			expense_count=len(bucket),
		)
		for window, bucket in zip(windows, amounts)
	]

	return GrowthStageReport(
		planting_date=planting_date,
		harvest_date=harvest_date,
		stages=stages,
		allocated_total=round_money(math.fsum(amount for bucket in amounts for amount in bucket)) or 0.0,
		unallocated_total=round_money(math.fsum(unallocated)) or 0.0,
		unallocated_count=len(unallocated),
	)


def build_growth_timeline(unit: ProductionUnit, expenses: Iterable[ExpenseRecord]) -> GrowthStageReport:
	"""Stage report for one unit, using its actual harvest date or else the expected one."""
	own_expenses = [expense for expense in expenses if expense.unit_id == unit.id]
	report = allocate_expenses(unit.planting_date, unit.harvest_date, own_expenses)
	return report.model_copy(update={"unit_id": unit.id})

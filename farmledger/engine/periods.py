"""Calendar bucketing of dated revenue/expense entries into ``PeriodAggregate`` rows.

Granularity only changes the key function (``date -> (label, period_start)``)
and its step to the next period; the aggregation itself is shared.
"""

from __future__ import annotations

import math
import uuid
from collections import defaultdict
from collections.abc import Callable, Iterable
from datetime import date, timedelta
from typing import NamedTuple

from farmledger.config import PeriodGranularity
from farmledger.engine.metrics import compute_profit, compute_roi, round_money, round_percent
from farmledger.schemas.analytics import PeriodAggregate


class LedgerEntry(NamedTuple):
	"""One dated money movement attributed to a production unit."""

	unit_id: uuid.UUID
	on: date
	revenue: float = 0.0
	expense: float = 0.0


PeriodKey = tuple[str, date]


def month_key(day: date) -> PeriodKey:
	return f"{day.year:04d}-{day.month:02d}", date(day.year, day.month, 1)


def week_key(day: date) -> PeriodKey:
	iso = day.isocalendar()
	return f"{iso.year:04d}-W{iso.week:02d}", day - timedelta(days=day.weekday())


def quarter_key(day: date) -> PeriodKey:
	quarter = (day.month - 1) // 3 + 1
	return f"{day.year:04d}-Q{quarter}", date(day.year, 3 * (quarter - 1) + 1, 1)


def year_key(day: date) -> PeriodKey:
	return f"{day.year:04d}", date(day.year, 1, 1)


def _add_months(day: date, months: int) -> date:
	index = day.year * 12 + (day.month - 1) + months
	return date(index // 12, index % 12 + 1, 1)


PERIOD_KEYS: dict[PeriodGranularity, Callable[[date], PeriodKey]] = {
	PeriodGranularity.week: week_key,
	PeriodGranularity.month: month_key,
	PeriodGranularity.quarter: quarter_key,
	PeriodGranularity.year: year_key,
}

_PERIOD_STEPS: dict[PeriodGranularity, Callable[[date], date]] = {
	PeriodGranularity.week: lambda start: start + timedelta(days=7),
	PeriodGranularity.month: lambda start: _add_months(start, 1),
	PeriodGranularity.quarter: lambda start: _add_months(start, 3),
	PeriodGranularity.year: lambda start: date(start.year + 1, 1, 1),
}


def period_key(day: date, granularity: PeriodGranularity = PeriodGranularity.month) -> PeriodKey:
	return PERIOD_KEYS[PeriodGranularity(granularity)](day)


def next_period_start(period_start: date, granularity: PeriodGranularity = PeriodGranularity.month) -> date:
	return _PERIOD_STEPS[PeriodGranularity(granularity)](period_start)


def bucket_entries(
	entries: Iterable[LedgerEntry],
	granularity: PeriodGranularity = PeriodGranularity.month,
	dense: bool = False,
) -> list[PeriodAggregate]:
	"""Group entries into calendar buckets, ascending by period start.

	Buckets without entries are omitted unless ``dense`` asks for the gaps
	between the first and last period to be zero-filled.
	"""
	granularity = PeriodGranularity(granularity)
	key_fn = PERIOD_KEYS[granularity]

	labels: dict[date, str] = {}
	per_unit: dict[date, dict[uuid.UUID, list[LedgerEntry]]] = defaultdict(lambda: defaultdict(list))
	for entry in entries:
		label, start = key_fn(entry.on)
		labels[start] = label
		per_unit[start][entry.unit_id].append(entry)

	if not per_unit:
		return []

	starts = sorted(per_unit)
	if dense:
		filled: list[date] = []
		cursor = starts[0]
		while cursor <= starts[-1]:
			filled.append(cursor)
			labels.setdefault(cursor, key_fn(cursor)[0])
			cursor = next_period_start(cursor, granularity)
		starts = filled

	return [
		_aggregate_bucket(labels[start], start, next_period_start(start, granularity), per_unit.get(start, {}))
		for start in starts
	]


def _aggregate_bucket(
	label: str,
	start: date,
	next_start: date,
	units: dict[uuid.UUID, list[LedgerEntry]],
) -> PeriodAggregate:
	revenues: list[float] = []
	expenses: list[float] = []
	profits: list[float] = []
	rois: list[float] = []
	record_count = 0

	for unit_entries in units.values():
		record_count += len(unit_entries)
		revenue = math.fsum(entry.revenue for entry in unit_entries)
		expense = math.fsum(entry.expense for entry in unit_entries)
		profit = compute_profit(revenue, expense) or 0.0
		revenues.append(revenue)
		expenses.append(expense)
		profits.append(profit)
		rois.append(compute_roi(profit, expense) or 0.0)

	unit_count = len(units)
	total_revenue = math.fsum(revenues)
	total_expenses = math.fsum(expenses)
	net_profit = math.fsum(profits)

	return PeriodAggregate(
		period=label,
		period_start=start,
		period_end=next_start - timedelta(days=1),
		unit_count=unit_count,
		record_count=record_count,
		total_revenue=round_money(total_revenue) or 0.0,
		total_expenses=round_money(total_expenses) or 0.0,
		net_profit=round_money(net_profit) or 0.0,
		average_roi=round_percent(math.fsum(rois) / unit_count) if unit_count else 0.0,
		average_net_profit=round_money(net_profit / unit_count) if unit_count else 0.0,
	)

"""Report assembly: the single entry point from a record snapshot to an ``AnalyticsReport``.

Filtering happens exactly once, in ``apply_filters``; every section of the
report (summary, distributions, trend, rankings) is computed from the same
``FilteredRecords`` so their totals reconcile.
"""

from __future__ import annotations

import math
import uuid
from collections import defaultdict
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any

from farmledger.engine.comparison import DEFAULT_STABLE_THRESHOLD, compare_summaries
from farmledger.engine.growth_stages import build_growth_timeline
from farmledger.engine.metrics import (
	compute_entity_metrics,
	compute_projected_revenue,
	compute_revenue,
	compute_total_expenses,
	finite,
	round_money,
	round_percent,
)
from farmledger.engine.periods import LedgerEntry, bucket_entries
from farmledger.models.enums import CropStatusEnum
from farmledger.schemas.analytics import (
	AnalyticsReport,
	CategoryDistribution,
	ComparisonReport,
	EntityMetrics,
	GrowthStageReport,
	PeriodAggregate,
	ReportDistribution,
	ReportFilters,
	ReportScope,
	ReportSummary,
	StatusDistribution,
	TopExpenseEntry,
	TypeDistribution,
)
from farmledger.schemas.records import (
	ExpenseRecord,
	ProductionUnit,
	RecordSnapshot,
	ReportInputError,
	SaleRecord,
	to_cents,
)

__all__ = [
	"FilteredRecords",
	"ReportInputError",
	"apply_filters",
	"assemble_comparison",
	"assemble_growth_timeline",
	"assemble_report",
	"assemble_unit_metrics",
	"previous_range",
]

HARVESTED_STATUSES = frozenset({CropStatusEnum.HARVESTED, CropStatusEnum.STOCKED, CropStatusEnum.SOLD})


@dataclass(frozen=True)
class FilteredRecords:
	units: tuple[ProductionUnit, ...]
	expenses: tuple[ExpenseRecord, ...]
	sales: tuple[SaleRecord, ...]
	revenue: tuple[LedgerEntry, ...]
	unpriced_unit_ids: frozenset[uuid.UUID] = frozenset()
	dropped_expense_count: int = 0
	dropped_sale_count: int = 0
	expenses_by_unit: dict[uuid.UUID, list[ExpenseRecord]] = field(default_factory=dict)
	revenue_by_unit: dict[uuid.UUID, list[LedgerEntry]] = field(default_factory=dict)

	def unit_revenue(self, unit_id: uuid.UUID) -> float | None:
		if unit_id in self.unpriced_unit_ids:
			return None
		return math.fsum(entry.revenue for entry in self.revenue_by_unit.get(unit_id, ()))

	def unit_expenses(self, unit_id: uuid.UUID) -> list[ExpenseRecord]:
		return self.expenses_by_unit.get(unit_id, [])


def _in_range(day: date, start: date | None, end: date | None) -> bool:
	if start is not None and day < start:
		return False
	if end is not None and day > end:
		return False
	return True


def _ensure_snapshot(snapshot: RecordSnapshot | Any) -> RecordSnapshot:
	if isinstance(snapshot, RecordSnapshot):
		return snapshot
	return RecordSnapshot.from_payload(snapshot)


def _group_by_unit(items: Iterable[Any], key: Callable[[Any], uuid.UUID]) -> dict[uuid.UUID, list[Any]]:
	grouped: dict[uuid.UUID, list[Any]] = defaultdict(list)
	for item in items:
		grouped[key(item)].append(item)
	return dict(grouped)


def apply_filters(snapshot: RecordSnapshot, filters: ReportFilters | None = None) -> FilteredRecords:
	"""Apply status and date-range filters once, producing the report's working set.

	Units are filtered by status.  Expenses, sales and derived revenue
	entries are kept only for surviving units and only inside the date range.
	Records pointing at units absent from the snapshot are dropped and counted.
	"""
	filters = filters or ReportFilters()
	known_ids = {unit.id for unit in snapshot.units}
	statuses = set(filters.statuses) if filters.statuses else None

	units = tuple(unit for unit in snapshot.units if statuses is None or unit.status in statuses)
	unit_ids = {unit.id for unit in units}
	start, end = filters.start_date, filters.end_date

	expenses = tuple(
		expense
		for expense in snapshot.expenses
		if expense.unit_id in unit_ids and _in_range(expense.date, start, end)
	)
	unit_sales = [sale for sale in snapshot.sales if sale.unit_id in unit_ids]
	sales = tuple(sale for sale in unit_sales if _in_range(sale.sale_date, start, end))

	revenue: list[LedgerEntry] = [
		LedgerEntry(sale.unit_id, sale.sale_date, revenue=sale.total) for sale in sales
	]

	# Sale records are authoritative; market-price revenue only stands in for
	# sold units that have none, dated at harvest (or planting as a last resort).
	units_with_sales = {sale.unit_id for sale in unit_sales}
	unpriced: set[uuid.UUID] = set()
	for unit in units:
		if unit.id in units_with_sales or not unit.is_revenue_eligible:
			continue
		realized = compute_revenue(unit)
		if realized is None:
			unpriced.add(unit.id)
			continue
		realized_on = unit.harvest_date or unit.planting_date
		if _in_range(realized_on, start, end):
			revenue.append(LedgerEntry(unit.id, realized_on, revenue=to_cents(realized)))

	return FilteredRecords(
		units=units,
		expenses=expenses,
		sales=sales,
		revenue=tuple(revenue),
		unpriced_unit_ids=frozenset(unpriced),
		dropped_expense_count=sum(1 for expense in snapshot.expenses if expense.unit_id not in known_ids),
		dropped_sale_count=sum(1 for sale in snapshot.sales if sale.unit_id not in known_ids),
		expenses_by_unit=_group_by_unit(expenses, lambda expense: expense.unit_id),
		revenue_by_unit=_group_by_unit(revenue, lambda entry: entry.unit_id),
	)


# ── Sections ────────────────────────────────────────────────────────────────


def _mean(values: Iterable[float | None]) -> float | None:
	known = [value for value in (finite(v) for v in values) if value is not None]
	if not known:
		return None
	return math.fsum(known) / len(known)


def _per_unit_metrics(records: FilteredRecords) -> list[EntityMetrics]:
	metrics: list[EntityMetrics] = []
	for unit in records.units:
		revenue = records.unit_revenue(unit.id)
		metric = compute_entity_metrics(unit, records.unit_expenses(unit.id), revenue=revenue)
		if revenue is None:
			metric = metric.model_copy(update={"revenue": None, "profit": None, "roi_percentage": None})
		metrics.append(metric)
	return metrics


def _build_summary(records: FilteredRecords, metrics: Sequence[EntityMetrics]) -> ReportSummary:
	total_expenses = compute_total_expenses(records.expenses)
	total_revenue = math.fsum(entry.revenue for entry in records.revenue)
	harvested = [unit for unit in records.units if unit.status in HARVESTED_STATUSES]

	return ReportSummary(
		total_units=len(records.units),
		active_units=sum(1 for unit in records.units if unit.is_active),
		harvested_units=len(harvested),
		total_area=round_money(math.fsum(finite(unit.area) or 0.0 for unit in records.units)) or 0.0,
		total_expenses=round_money(total_expenses) or 0.0,
		total_revenue=round_money(total_revenue) or 0.0,
		projected_revenue=round_money(math.fsum(compute_projected_revenue(unit) for unit in records.units)) or 0.0,
		net_profit=round_money(total_revenue - total_expenses) or 0.0,
		average_roi=round_percent(_mean(metric.roi_percentage for metric in metrics)) or 0.0,
		expense_count=len(records.expenses),
		sale_count=len(records.sales),
		average_expected_yield=round_money(_mean(unit.expected_yield for unit in harvested)),
		average_actual_yield=round_money(_mean(unit.actual_yield for unit in harvested)),
	)


def _build_distribution(records: FilteredRecords) -> ReportDistribution:
	unit_totals = {unit.id: compute_total_expenses(records.unit_expenses(unit.id)) for unit in records.units}

	type_rows: dict[str, dict[str, Any]] = {}
	status_rows: dict[CropStatusEnum, dict[str, Any]] = {}
	for unit in records.units:
		type_row = type_rows.setdefault(unit.type, {"count": 0, "area": [], "expenses": []})
		type_row["count"] += 1
		type_row["area"].append(finite(unit.area) or 0.0)
		type_row["expenses"].append(unit_totals[unit.id])

		status_row = status_rows.setdefault(unit.status, {"count": 0, "expenses": []})
		status_row["count"] += 1
		status_row["expenses"].append(unit_totals[unit.id])

	category_rows: dict[str, list[float]] = defaultdict(list)
	for expense in records.expenses:
		amount = finite(expense.amount)
		if amount is not None:
			category_rows[expense.category.value].append(amount)

	by_type = [
		TypeDistribution(
			type=name,
			count=row["count"],
			total_area=round_money(math.fsum(row["area"])) or 0.0,
			total_expenses=round_money(math.fsum(row["expenses"])) or 0.0,
		)
		for name, row in type_rows.items()
	]
	by_status = [
		StatusDistribution(
			status=status,
			count=row["count"],
			total_expenses=round_money(math.fsum(row["expenses"])) or 0.0,
		)
		for status, row in status_rows.items()
	]
	by_category = [
		CategoryDistribution(
			category=category,
			total_amount=round_money(math.fsum(amounts)) or 0.0,
			expense_count=len(amounts),
		)
		for category, amounts in category_rows.items()
	]

	by_type.sort(key=lambda row: (-row.count, row.type))
	by_status.sort(key=lambda row: (-row.count, row.status.value))
	by_category.sort(key=lambda row: (-row.total_amount, row.category))
	return ReportDistribution(by_type=by_type, by_status=by_status, by_category=by_category)


def _build_trend(records: FilteredRecords, filters: ReportFilters) -> list[PeriodAggregate]:
	entries = list(records.revenue)
	entries.extend(
		LedgerEntry(expense.unit_id, expense.date, expense=amount)
		for expense in records.expenses
		if (amount := finite(expense.amount)) is not None
	)
	return bucket_entries(entries, filters.period_granularity, dense=filters.dense_trend)


def _build_top_by_expense(metrics: Sequence[EntityMetrics], top_n: int) -> list[TopExpenseEntry]:
	ranked = sorted(metrics, key=lambda metric: (-metric.total_expenses, metric.name, str(metric.unit_id)))
	return [
		TopExpenseEntry(
			unit_id=metric.unit_id,
			name=metric.name,
			type=metric.type,
			total_expenses=metric.total_expenses,
			expense_count=metric.expense_count,
		)
		for metric in ranked[:top_n]
	]


def _rank_by_roi(metrics: Sequence[EntityMetrics]) -> list[EntityMetrics]:
	def sort_key(metric: EntityMetrics) -> tuple:
		roi = metric.roi_percentage
		profit = metric.profit
		return (
			roi is None,
			-(roi or 0.0),
			-(profit or 0.0),
			metric.name,
			str(metric.unit_id),
		)

	return sorted(metrics, key=sort_key)


# ── Entry points ────────────────────────────────────────────────────────────


def assemble_report(snapshot: RecordSnapshot | Any, filters: ReportFilters | None = None) -> AnalyticsReport:
	"""Compute the full analytics payload for one snapshot.

	``snapshot`` may be a ``RecordSnapshot`` or a raw mapping of record
	arrays; a mapping missing ``production_units``, ``expenses`` or ``sales``
	raises ``ReportInputError``.  An empty snapshot yields a zeroed report.
	"""
	snapshot = _ensure_snapshot(snapshot)
	filters = filters or ReportFilters()
	records = apply_filters(snapshot, filters)
	metrics = _per_unit_metrics(records)

	return AnalyticsReport(
		summary=_build_summary(records, metrics),
		distribution=_build_distribution(records),
		trend=_build_trend(records, filters),
		top_by_expense=_build_top_by_expense(metrics, filters.top_n),
		per_unit=_rank_by_roi(metrics) if filters.include_per_unit else [],
		generated_from=ReportScope(
			unit_count=len(records.units),
			expense_count=len(records.expenses),
			sale_count=len(records.sales),
			dropped_expense_count=records.dropped_expense_count,
			dropped_sale_count=records.dropped_sale_count,
			filters=filters,
		),
	)


def _require_unit(snapshot: RecordSnapshot, unit_id: uuid.UUID) -> ProductionUnit:
	for unit in snapshot.units:
		if unit.id == unit_id:
			return unit
	raise LookupError(f"Production unit {unit_id} not found")


def assemble_unit_metrics(
	snapshot: RecordSnapshot | Any,
	unit_id: uuid.UUID,
	filters: ReportFilters | None = None,
) -> EntityMetrics:
	snapshot = _ensure_snapshot(snapshot)
	_require_unit(snapshot, unit_id)
	base = filters or ReportFilters()
	records = apply_filters(snapshot, base.model_copy(update={"statuses": None}))
	for metric in _per_unit_metrics(records):
		if metric.unit_id == unit_id:
			return metric
	raise LookupError(f"Production unit {unit_id} not found")


def assemble_growth_timeline(snapshot: RecordSnapshot | Any, unit_id: uuid.UUID) -> GrowthStageReport:
	snapshot = _ensure_snapshot(snapshot)
	unit = _require_unit(snapshot, unit_id)
	return build_growth_timeline(unit, snapshot.expenses)


def previous_range(start: date, end: date) -> tuple[date, date]:
	"""The range of equal length ending the day before ``start``."""
	length = (end - start).days + 1
	previous_end = start - timedelta(days=1)
	return previous_end - timedelta(days=length - 1), previous_end


def assemble_comparison(
	snapshot: RecordSnapshot | Any,
	current_start: date,
	current_end: date,
	previous_start: date | None = None,
	previous_end: date | None = None,
	statuses: Sequence[CropStatusEnum] | None = None,
	stable_threshold: float = DEFAULT_STABLE_THRESHOLD,
) -> ComparisonReport:
	"""Compare two real date ranges of the same snapshot.

	When no previous range is given, the immediately preceding range of the
	same length is used.
	"""
	if current_start > current_end:
		raise ValueError("current_start must not be after current_end")
	if (previous_start is None) != (previous_end is None):
		raise ValueError("provide both previous_start and previous_end, or neither")
	if previous_start is None or previous_end is None:
		previous_start, previous_end = previous_range(current_start, current_end)
	elif previous_start > previous_end:
		raise ValueError("previous_start must not be after previous_end")

	snapshot = _ensure_snapshot(snapshot)
	status_list = list(statuses) if statuses else None

	def summarize(start: date, end: date) -> ReportSummary:
		filters = ReportFilters(statuses=status_list, start_date=start, end_date=end, include_per_unit=False)
		records = apply_filters(snapshot, filters)
		return _build_summary(records, _per_unit_metrics(records))

	current = summarize(current_start, current_end)
	previous = summarize(previous_start, previous_end)

	return ComparisonReport(
		current_start=current_start,
		current_end=current_end,
		previous_start=previous_start,
		previous_end=previous_end,
		current=current,
		previous=previous,
		deltas=compare_summaries(current, previous, stable_threshold=stable_threshold),
	)

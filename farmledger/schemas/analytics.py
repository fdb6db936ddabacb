"""Pydantic schemas for analytics requests and the derived (never stored) results."""

from __future__ import annotations

import uuid
from datetime import date
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from farmledger.config import PeriodGranularity
from farmledger.models.enums import CropStatusEnum
from farmledger.schemas.records import ExpenseRecord, ProductionUnit, SaleRecord, normalize_token


# ── Filters & requests ──────────────────────────────────────────────────────


class ReportFilters(BaseModel):
	statuses: list[CropStatusEnum] | None = None
	start_date: date | None = None
	end_date: date | None = None
	period_granularity: PeriodGranularity = PeriodGranularity.month
	dense_trend: bool = False
	include_per_unit: bool = True
	top_n: int = Field(default=10, ge=1, le=100)

	@field_validator("statuses", mode="before")
	@classmethod
	def _normalize_statuses(cls, value: Any) -> Any:
		if isinstance(value, str):
			value = [value]
		if not isinstance(value, (list, tuple)):
			return value
		statuses: list[Any] = []
		for item in value:
			if isinstance(item, str):
				statuses.extend(normalize_token(token) for token in item.split(",") if token.strip())
			else:
				statuses.append(item)
		return statuses

	@model_validator(mode="after")
	def _validate_range(self) -> "ReportFilters":
		if self.start_date is not None and self.end_date is not None and self.start_date > self.end_date:
			raise ValueError("start_date must not be after end_date")
		return self


class ReportRequest(BaseModel):
	"""Inline record snapshot posted by a caller that already holds the records."""

	production_units: list[ProductionUnit]
	expenses: list[ExpenseRecord]
	sales: list[SaleRecord]
	filters: ReportFilters | None = None


# ── Per-entity results ──────────────────────────────────────────────────────


class EntityMetrics(BaseModel):
	unit_id: uuid.UUID
	name: str
	type: str
	status: CropStatusEnum
	revenue: float | None = None
	projected_revenue: float = 0.0
	total_expenses: float = 0.0
	expense_count: int = 0
	profit: float | None = None
	roi_percentage: float | None = None
	cost_per_yield_unit: float | None = None
	yield_per_area_unit: float | None = None
	days_to_harvest: int | None = None


class GrowthStageAllocation(BaseModel):
	stage: str
	start_date: date
	end_date: date
	duration_days: int
	total_expenses: float = 0.0
	expense_count: int = 0


class GrowthStageReport(BaseModel):
	unit_id: uuid.UUID | None = None
	planting_date: date
	harvest_date: date | None = None
	stages: list[GrowthStageAllocation] = Field(default_factory=list)
	allocated_total: float = 0.0
	unallocated_total: float = 0.0
	unallocated_count: int = 0


# ── Grouped results ─────────────────────────────────────────────────────────


class PeriodAggregate(BaseModel):
	period: str
	period_start: date
	period_end: date
	unit_count: int = 0
	record_count: int = 0
	total_revenue: float = 0.0
	total_expenses: float = 0.0
	net_profit: float = 0.0
	average_roi: float = 0.0
	average_net_profit: float = 0.0


class ComparativeDelta(BaseModel):
	metric: str
	current: float
	previous: float
	delta: float
	percent_change: float
	sign: Literal[-1, 0, 1]
	trend: Literal["up", "down", "stable"]


# ── Report payload ──────────────────────────────────────────────────────────


class ReportSummary(BaseModel):
	total_units: int = 0
	active_units: int = 0
	harvested_units: int = 0
	total_area: float = 0.0
	total_expenses: float = 0.0
	total_revenue: float = 0.0
	projected_revenue: float = 0.0
	net_profit: float = 0.0
	average_roi: float = 0.0
	expense_count: int = 0
	sale_count: int = 0
	average_expected_yield: float | None = None
	average_actual_yield: float | None = None


class TypeDistribution(BaseModel):
	type: str
	count: int
	total_area: float = 0.0
	total_expenses: float = 0.0


class StatusDistribution(BaseModel):
	status: CropStatusEnum
	count: int
	total_expenses: float = 0.0


class CategoryDistribution(BaseModel):
	category: str
	total_amount: float
	expense_count: int


class ReportDistribution(BaseModel):
	by_type: list[TypeDistribution] = Field(default_factory=list)
	by_status: list[StatusDistribution] = Field(default_factory=list)
	by_category: list[CategoryDistribution] = Field(default_factory=list)


class TopExpenseEntry(BaseModel):
	unit_id: uuid.UUID
	name: str
	type: str
	total_expenses: float
	expense_count: int


class ReportScope(BaseModel):
	"""Echo of what the report was computed from."""

	unit_count: int = 0
	expense_count: int = 0
	sale_count: int = 0
	dropped_expense_count: int = 0
	dropped_sale_count: int = 0
	filters: ReportFilters


class AnalyticsReport(BaseModel):
	summary: ReportSummary
	distribution: ReportDistribution
	trend: list[PeriodAggregate] = Field(default_factory=list)
	top_by_expense: list[TopExpenseEntry] = Field(default_factory=list)
	per_unit: list[EntityMetrics] = Field(default_factory=list)
	generated_from: ReportScope


# ── Comparison ──────────────────────────────────────────────────────────────


class MetricPair(BaseModel):
	metric: str = Field(min_length=1)
	current: float = Field(allow_inf_nan=False)
	previous: float = Field(allow_inf_nan=False)


class CompareRequest(BaseModel):
	metrics: list[MetricPair] = Field(min_length=1)
	stable_threshold: float | None = Field(default=None, ge=0)


class CompareResponse(BaseModel):
	deltas: list[ComparativeDelta] = Field(default_factory=list)


class ComparisonReport(BaseModel):
	current_start: date
	current_end: date
	previous_start: date
	previous_end: date
	current: ReportSummary
	previous: ReportSummary
	deltas: list[ComparativeDelta] = Field(default_factory=list)

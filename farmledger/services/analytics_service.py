"""Analytics service: loads a record snapshot and runs the aggregation engine over it."""

from __future__ import annotations

import time
import uuid
from datetime import date

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from farmledger.config import get_settings
from farmledger.engine import comparison, report
from farmledger.models.enums import CropStatusEnum
from farmledger.schemas.analytics import (
	AnalyticsReport,
	CompareRequest,
	CompareResponse,
	ComparisonReport,
	EntityMetrics,
	GrowthStageReport,
	ReportFilters,
	ReportRequest,
)
from farmledger.schemas.records import RecordSnapshot
from farmledger.services.records_service import RecordService

logger = structlog.get_logger("farmledger.analytics")


def default_filters() -> ReportFilters:
	settings = get_settings()
	return ReportFilters(
		period_granularity=settings.analytics_default_granularity,
		dense_trend=settings.analytics_dense_trend,
		top_n=settings.analytics_top_n,
	)


class AnalyticsService:
	def __init__(self, db: AsyncSession | None = None):
		self.db = db

	async def build_report(self, filters: ReportFilters | None = None) -> AnalyticsReport:
		snapshot = await self._load_snapshot()
		return self._assemble(snapshot, filters or default_filters(), source="database")

	def compute_report(self, payload: ReportRequest) -> AnalyticsReport:
		snapshot = RecordSnapshot(
			units=tuple(payload.production_units),
			expenses=tuple(payload.expenses),
			sales=tuple(payload.sales),
		)
		return self._assemble(snapshot, payload.filters or default_filters(), source="inline")

	async def get_unit_metrics(self, unit_id: uuid.UUID, filters: ReportFilters | None = None) -> EntityMetrics:
		await self._records().get_unit(unit_id)
		snapshot = await self._load_snapshot()
		return report.assemble_unit_metrics(snapshot, unit_id, filters)

	async def get_growth_stages(self, unit_id: uuid.UUID) -> GrowthStageReport:
		await self._records().get_unit(unit_id)
		snapshot = await self._load_snapshot()
		return report.assemble_growth_timeline(snapshot, unit_id)

	async def compare_periods(
		self,
		current_start: date,
		current_end: date,
		previous_start: date | None = None,
		previous_end: date | None = None,
		statuses: list[CropStatusEnum] | None = None,
	) -> ComparisonReport:
		snapshot = await self._load_snapshot()
		result = report.assemble_comparison(
			snapshot,
			current_start,
			current_end,
			previous_start,
			previous_end,
			statuses=statuses,
			stable_threshold=get_settings().analytics_trend_threshold_pct,
		)
		logger.info(
			"analytics_comparison_generated",
			current_start=result.current_start.isoformat(),
			current_end=result.current_end.isoformat(),
			previous_start=result.previous_start.isoformat(),
			previous_end=result.previous_end.isoformat(),
		)
		return result

	@staticmethod
	def compare_metrics(payload: CompareRequest) -> CompareResponse:
		threshold = payload.stable_threshold
		if threshold is None:
			threshold = get_settings().analytics_trend_threshold_pct
		return CompareResponse(deltas=comparison.compare_metrics(payload.metrics, threshold))

	def _records(self) -> RecordService:
		if self.db is None:
			raise RuntimeError("analytics service has no database session")
		return RecordService(self.db)

	async def _load_snapshot(self) -> RecordSnapshot:
		return await self._records().load_snapshot()

	@staticmethod
	def _assemble(snapshot: RecordSnapshot, filters: ReportFilters, source: str) -> AnalyticsReport:
		start = time.perf_counter()
		result = report.assemble_report(snapshot, filters)
		duration_ms = (time.perf_counter() - start) * 1000.0

		scope = result.generated_from
		if scope.dropped_expense_count or scope.dropped_sale_count:
			logger.warning(
				"analytics_orphan_records_dropped",
				dropped_expenses=scope.dropped_expense_count,
				dropped_sales=scope.dropped_sale_count,
			)
		logger.info(
			"analytics_report_generated",
			source=source,
			units=scope.unit_count,
			expenses=scope.expense_count,
			sales=scope.sale_count,
			periods=len(result.trend),
			duration_ms=round(duration_ms, 2),
		)
		return result

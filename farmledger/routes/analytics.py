"""Financial & operational analytics routes."""

from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from farmledger.config import PeriodGranularity, get_settings
from farmledger.database import get_db
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
from farmledger.services.analytics_service import AnalyticsService

router = APIRouter(prefix="/analytics", tags=["analytics"])


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="analytics failure")


def _report_filters(
	statuses: list[str] | None = Query(default=None),
	start_date: date | None = Query(default=None),
	end_date: date | None = Query(default=None),
	granularity: PeriodGranularity | None = Query(default=None),
	dense: bool | None = Query(default=None),
	include_per_unit: bool = Query(default=True),
	top_n: int | None = Query(default=None, ge=1, le=100),
) -> ReportFilters:
	settings = get_settings()
	try:
		return ReportFilters(
			statuses=statuses,
			start_date=start_date,
			end_date=end_date,
			period_granularity=granularity or settings.analytics_default_granularity,
			dense_trend=settings.analytics_dense_trend if dense is None else dense,
			include_per_unit=include_per_unit,
			top_n=top_n or settings.analytics_top_n,
		)
	except ValueError as exc:
		raise _map_error(exc) from exc


@router.post("/report", response_model=AnalyticsReport)
async def compute_report(payload: ReportRequest) -> AnalyticsReport:
	"""Aggregate a record snapshot supplied in the request body."""
	try:
		return AnalyticsService().compute_report(payload)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.get("/report", response_model=AnalyticsReport)
async def get_report(
	filters: ReportFilters = Depends(_report_filters),
	db: AsyncSession = Depends(get_db),
) -> AnalyticsReport:
	service = AnalyticsService(db)
	try:
		return await service.build_report(filters)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.get("/units/{unit_id}/metrics", response_model=EntityMetrics)
async def get_unit_metrics(
	unit_id: uuid.UUID,
	start_date: date | None = Query(default=None),
	end_date: date | None = Query(default=None),
	db: AsyncSession = Depends(get_db),
) -> EntityMetrics:
	service = AnalyticsService(db)
	try:
		filters = ReportFilters(start_date=start_date, end_date=end_date)
		return await service.get_unit_metrics(unit_id, filters)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.get("/units/{unit_id}/growth-stages", response_model=GrowthStageReport)
async def get_growth_stages(
	unit_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
) -> GrowthStageReport:
	service = AnalyticsService(db)
	try:
		return await service.get_growth_stages(unit_id)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.get("/compare", response_model=ComparisonReport)
async def compare_periods(
	current_start: date = Query(...),
	current_end: date = Query(...),
	previous_start: date | None = Query(default=None),
	previous_end: date | None = Query(default=None),
	statuses: list[str] | None = Query(default=None),
	db: AsyncSession = Depends(get_db),
) -> ComparisonReport:
	service = AnalyticsService(db)
	try:
		status_filter = ReportFilters(statuses=statuses).statuses
		return await service.compare_periods(
			current_start,
			current_end,
			previous_start,
			previous_end,
			statuses=status_filter,
		)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.post("/compare", response_model=CompareResponse)
async def compare_metrics(payload: CompareRequest) -> CompareResponse:
	try:
		return AnalyticsService.compare_metrics(payload)
	except Exception as exc:
		raise _map_error(exc) from exc

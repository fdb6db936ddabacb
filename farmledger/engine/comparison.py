"""Current-vs-previous comparison of two already materialized snapshots.

The analyzer never decides what "previous" means; callers hand it real
historical figures (a prior date range, a prior bucket).
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from farmledger.engine.metrics import finite, round_money, round_percent
from farmledger.schemas.analytics import ComparativeDelta, MetricPair, PeriodAggregate, ReportSummary

DEFAULT_STABLE_THRESHOLD = 5.0

SUMMARY_METRICS: tuple[str, ...] = (
	"total_units",
	"active_units",
	"total_expenses",
	"total_revenue",
	"projected_revenue",
	"net_profit",
	"average_roi",
)

TREND_METRICS: tuple[str, ...] = (
	"total_revenue",
	"total_expenses",
	"net_profit",
	"average_roi",
	"average_net_profit",
	"unit_count",
)


def percent_change(current: float, previous: float) -> float:
	"""``(current - previous) / previous × 100``; 0 unless previous is positive."""
	if previous <= 0:
		return 0.0
	return (current - previous) / previous * 100.0


def compare_metric(
	metric: str,
	current: float | None,
	previous: float | None,
	stable_threshold: float = DEFAULT_STABLE_THRESHOLD,
) -> ComparativeDelta:
	current_value = finite(current) or 0.0
	previous_value = finite(previous) or 0.0
	delta = current_value - previous_value
	change = round_percent(percent_change(current_value, previous_value)) or 0.0

	if change > stable_threshold:
		trend = "up"
	elif change < -stable_threshold:
		trend = "down"
	else:
		trend = "stable"

	return ComparativeDelta(
		metric=metric,
		current=round_money(current_value) or 0.0,
		previous=round_money(previous_value) or 0.0,
		delta=round_money(delta) or 0.0,
		percent_change=change,
		sign=(delta > 0) - (delta < 0),
		trend=trend,
	)


def compare_metrics(
	pairs: Iterable[MetricPair | tuple[str, float | None, float | None]],
	stable_threshold: float = DEFAULT_STABLE_THRESHOLD,
) -> list[ComparativeDelta]:
	"""Deltas for each metric pair, in input order."""
	deltas: list[ComparativeDelta] = []
	for pair in pairs:
		if isinstance(pair, MetricPair):
			name, current, previous = pair.metric, pair.current, pair.previous
		else:
			name, current, previous = pair
		deltas.append(compare_metric(name, current, previous, stable_threshold))
	return deltas


def compare_summaries(
	current: ReportSummary,
	previous: ReportSummary,
	metrics: Sequence[str] = SUMMARY_METRICS,
	stable_threshold: float = DEFAULT_STABLE_THRESHOLD,
) -> list[ComparativeDelta]:
	return compare_metrics(
		((name, getattr(current, name), getattr(previous, name)) for name in metrics),
		stable_threshold,
	)


def period_over_period(
	trend: Sequence[PeriodAggregate],
	metric: str = "total_expenses",
	stable_threshold: float = DEFAULT_STABLE_THRESHOLD,
) -> list[ComparativeDelta]:
	"""Compare each trend bucket with the bucket before it.

	The metric name on each delta is suffixed with the current period label
	(``total_expenses@2024-03``) so rows stay self-describing.
	"""
	if metric not in TREND_METRICS:
		raise ValueError(f"unsupported trend metric: {metric}")
	return [
		compare_metric(f"{metric}@{current.period}", getattr(current, metric), getattr(previous, metric), stable_threshold)
		for previous, current in zip(trend, trend[1:])
	]

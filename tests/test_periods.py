from __future__ import annotations

import uuid
from datetime import date

import pytest

from farmledger.config import PeriodGranularity
from farmledger.engine.periods import LedgerEntry, bucket_entries, next_period_start, period_key

UNIT_A = uuid.UUID("00000000-0000-0000-0000-0000000000a1")
UNIT_B = uuid.UUID("00000000-0000-0000-0000-0000000000b1")


@pytest.mark.parametrize(
	("day", "granularity", "expected"),
	[
		(date(2024, 3, 15), PeriodGranularity.month, ("2024-03", date(2024, 3, 1))),
		(date(2024, 1, 3), PeriodGranularity.week, ("2024-W01", date(2024, 1, 1))),
		(date(2021, 1, 1), PeriodGranularity.week, ("2020-W53", date(2020, 12, 28))),
		(date(2024, 5, 20), PeriodGranularity.quarter, ("2024-Q2", date(2024, 4, 1))),
		(date(2024, 12, 31), PeriodGranularity.year, ("2024", date(2024, 1, 1))),
	],
)
def test_period_keys(day: date, granularity: PeriodGranularity, expected: tuple[str, date]) -> None:
	assert period_key(day, granularity) == expected


def test_next_period_start_rolls_over_years() -> None:
	assert next_period_start(date(2024, 12, 1), PeriodGranularity.month) == date(2025, 1, 1)
	assert next_period_start(date(2024, 10, 1), PeriodGranularity.quarter) == date(2025, 1, 1)
	assert next_period_start(date(2024, 12, 30), "week") == date(2025, 1, 6)


def test_bucket_aggregates_per_unit() -> None:
	entries = [
		LedgerEntry(UNIT_A, date(2024, 1, 20), revenue=200.0),
		LedgerEntry(UNIT_A, date(2024, 1, 5), expense=100.0),
		LedgerEntry(UNIT_B, date(2024, 1, 9), expense=50.0),
	]

	[bucket] = bucket_entries(entries)

	assert bucket.period == "2024-01"
	assert bucket.period_start == date(2024, 1, 1)
	assert bucket.period_end == date(2024, 1, 31)
	assert bucket.unit_count == 2
	assert bucket.record_count == 3
	assert bucket.total_revenue == 200.0
	assert bucket.total_expenses == 150.0
	assert bucket.net_profit == 50.0
	# (+100% and -100%) / 2
	assert bucket.average_roi == 0.0
	assert bucket.average_net_profit == 25.0


def test_sparse_buckets_skip_empty_periods() -> None:
	entries = [
		LedgerEntry(UNIT_A, date(2024, 3, 2), expense=30.0),
		LedgerEntry(UNIT_A, date(2024, 1, 2), expense=10.0),
	]

	trend = bucket_entries(entries, PeriodGranularity.month)

	assert [bucket.period for bucket in trend] == ["2024-01", "2024-03"]


def test_dense_buckets_fill_gaps_with_zeros() -> None:
	entries = [
		LedgerEntry(UNIT_A, date(2024, 3, 2), expense=30.0),
		LedgerEntry(UNIT_A, date(2024, 1, 2), expense=10.0),
	]

	trend = bucket_entries(entries, PeriodGranularity.month, dense=True)

	assert [bucket.period for bucket in trend] == ["2024-01", "2024-02", "2024-03"]
	february = trend[1]
	assert february.period_end == date(2024, 2, 29)
	assert february.unit_count == 0
	assert february.total_expenses == 0.0
	assert february.average_roi == 0.0


def test_quarter_buckets_sum_to_entry_totals() -> None:
	entries = [
		LedgerEntry(UNIT_A, date(2024, 2, 1), revenue=10.0, expense=4.0),
		LedgerEntry(UNIT_B, date(2024, 5, 1), revenue=20.0),
		LedgerEntry(UNIT_B, date(2024, 6, 30), expense=7.5),
	]

	trend = bucket_entries(entries, PeriodGranularity.quarter)

	assert [bucket.period for bucket in trend] == ["2024-Q1", "2024-Q2"]
	assert sum(bucket.total_revenue for bucket in trend) == pytest.approx(30.0)
	assert sum(bucket.total_expenses for bucket in trend) == pytest.approx(11.5)
	assert trend[1].period_end == date(2024, 6, 30)


def test_no_entries_no_buckets() -> None:
	assert bucket_entries([], dense=True) == []

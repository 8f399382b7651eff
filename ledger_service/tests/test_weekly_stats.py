from __future__ import annotations

from datetime import datetime, timedelta, timezone

from ledger_service.app.services.stats_service import weekly_stats, weekly_window_start
from ledger_service.tests.fakes import NOW


LABELS = ["17/02", "24/02", "02/03", "09/03"]


def _counts(buckets) -> list[int]:
    return [b.count for b in buckets]


def test_empty_input_returns_four_zero_buckets() -> None:
    buckets = weekly_stats([], now=NOW)

    assert [b.week for b in buckets] == LABELS
    assert _counts(buckets) == [0, 0, 0, 0]


def test_window_starts_four_weeks_before_end_of_day() -> None:
    assert weekly_window_start(NOW) == datetime(2024, 2, 17, tzinfo=timezone.utc)


def test_counts_records_per_week() -> None:
    records = [
        {"timestamp": datetime(2024, 2, 17, 0, 0, tzinfo=timezone.utc)},
        {"timestamp": datetime(2024, 2, 23, 23, 59, tzinfo=timezone.utc)},
        {"timestamp": datetime(2024, 2, 24, 0, 0, tzinfo=timezone.utc)},
        {"timestamp": datetime(2024, 3, 15, 23, 59, tzinfo=timezone.utc)},
        # 창 밖
        {"timestamp": datetime(2024, 2, 16, 23, 59, tzinfo=timezone.utc)},
        {"timestamp": datetime(2024, 3, 16, 0, 0, tzinfo=timezone.utc)},
    ]

    buckets = weekly_stats(records, now=NOW)

    assert [b.week for b in buckets] == LABELS
    assert _counts(buckets) == [2, 1, 0, 1]


def test_unique_key_counts_distinct_values() -> None:
    records = [
        {"user_id": "u1", "timestamp": NOW - timedelta(days=1)},
        {"user_id": "u1", "timestamp": NOW - timedelta(days=2)},
        {"user_id": "u2", "timestamp": NOW - timedelta(days=2)},
        {"user_id": "u1", "timestamp": NOW - timedelta(days=10)},
    ]

    buckets = weekly_stats(records, unique_key="user_id", now=NOW)

    assert _counts(buckets) == [0, 0, 1, 2]


def test_unique_key_falls_back_to_underscore_id() -> None:
    records = [
        {"_id": "u1", "last_credit_at": NOW - timedelta(days=1)},
        {"_id": "u2", "last_credit_at": NOW - timedelta(days=1)},
    ]

    buckets = weekly_stats(
        records, unique_key="user_id", date_field="last_credit_at", now=NOW
    )

    assert _counts(buckets) == [0, 0, 0, 2]


def test_objects_with_attributes_are_supported() -> None:
    class Record:
        def __init__(self, created_at: datetime) -> None:
            self.created_at = created_at

    buckets = weekly_stats(
        [Record(NOW - timedelta(days=15))], date_field="created_at", now=NOW
    )

    assert _counts(buckets) == [0, 1, 0, 0]


def test_malformed_records_yield_zero_buckets() -> None:
    valid = {"timestamp": NOW - timedelta(days=1)}

    for bad in (
        {"timestamp": "2024-03-14"},
        {"other": NOW},
        None,
        42,
    ):
        buckets = weekly_stats([valid, bad], now=NOW)
        assert [b.week for b in buckets] == LABELS
        assert _counts(buckets) == [0, 0, 0, 0]


def test_missing_unique_key_yields_zero_buckets() -> None:
    buckets = weekly_stats(
        [{"timestamp": NOW - timedelta(days=1)}], unique_key="user_id", now=NOW
    )

    assert _counts(buckets) == [0, 0, 0, 0]


def test_naive_timestamps_are_treated_as_utc() -> None:
    buckets = weekly_stats([{"timestamp": datetime(2024, 3, 10, 8, 0)}], now=NOW)

    assert _counts(buckets) == [0, 0, 0, 1]

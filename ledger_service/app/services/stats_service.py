"""대시보드용 주간 집계.

최근 4주를 7일 단위 버킷 4개로 나눠 개수를 센다. 입력이 비었거나 형식이 맞지 않으면
실패하는 대신 0 으로 채운 버킷 4개를 돌려준다 (차트가 항상 4칸을 받도록).
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from datetime import datetime, timedelta, timezone
from typing import Any

from fastapi import Depends

from ..config import DEFAULT_RECENT_CLIENTS_LIMIT, LedgerConfig
from ..models.credit import CreditFilter, CreditStatus
from ..models.stats import CompanyStats, WeeklyBucket, WeeklyChart
from ..repositories.interfaces import CompanyRepositoryInterface, CreditRepositoryInterface
from .company_eligibility import ensure_company_available
from .dependencies import get_company_repository, get_credit_repository, get_ledger_config


logger = logging.getLogger(__name__)

WEEKS = 4
DAYS_PER_WEEK = 7

_MISSING = object()


def _day_end(now: datetime) -> datetime:
    """now 가 속한 날의 다음 자정(UTC)."""

    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    now = now.astimezone(timezone.utc)
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight + timedelta(days=1)


def _week_bounds(now: datetime) -> list[tuple[datetime, datetime]]:
    end = _day_end(now)
    return [
        (
            end - timedelta(days=(WEEKS - i) * DAYS_PER_WEEK),
            end - timedelta(days=(WEEKS - 1 - i) * DAYS_PER_WEEK),
        )
        for i in range(WEEKS)
    ]


def weekly_window_start(now: datetime | None = None) -> datetime:
    """가장 오래된 버킷의 시작 시각. 조회 쿼리의 하한으로 쓴다."""

    return _week_bounds(now or datetime.now(timezone.utc))[0][0]


def empty_weekly_stats(now: datetime | None = None) -> list[WeeklyBucket]:
    return [
        WeeklyBucket(week=start.strftime("%d/%m"), count=0)
        for start, _ in _week_bounds(now or datetime.now(timezone.utc))
    ]


def _field(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name, _MISSING)
    return getattr(record, name, _MISSING)


def _key_value(record: Any, unique_key: str) -> Any:
    # 집계 파이프라인 결과처럼 키가 _id 로만 들어오는 경우를 허용한다.
    for name in (unique_key, "_id", "id"):
        value = _field(record, name)
        if value is not _MISSING and value is not None:
            return value
    return _MISSING


def weekly_stats(
    records: Sequence[Any],
    unique_key: str | None = None,
    date_field: str = "timestamp",
    now: datetime | None = None,
) -> list[WeeklyBucket]:
    """records 를 주간 버킷 4개(오래된 순)로 집계한다.

    Args:
        records: date_field(와 unique_key)를 가진 mapping 또는 객체 목록
        unique_key: 지정하면 버킷 내 해당 키의 고유값 개수를 센다
        date_field: 타임스탬프 필드 이름
        now: 기준 시각 (기본값: 현재 UTC)
    """

    now = now or datetime.now(timezone.utc)
    bounds = _week_bounds(now)

    if not records:
        return empty_weekly_stats(now)

    points: list[tuple[datetime, Any]] = []
    for record in records:
        ts = _field(record, date_field)
        if not isinstance(ts, datetime):
            logger.debug("malformed weekly stats record: %r", record)
            return empty_weekly_stats(now)
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)

        key: Any = None
        if unique_key is not None:
            key = _key_value(record, unique_key)
            if key is _MISSING:
                logger.debug("weekly stats record without %s: %r", unique_key, record)
                return empty_weekly_stats(now)
        points.append((ts, key))

    buckets: list[WeeklyBucket] = []
    for start, end in bounds:
        in_week = [(ts, key) for ts, key in points if start <= ts < end]
        if unique_key is None:
            count = len(in_week)
        else:
            count = len({str(key) for _, key in in_week})
        buckets.append(WeeklyBucket(week=start.strftime("%d/%m"), count=count))
    return buckets


class StatsService:
    """회사 대시보드 통계."""

    def __init__(
        self,
        credit_repo: CreditRepositoryInterface,
        company_repo: CompanyRepositoryInterface,
        recent_clients_limit: int = DEFAULT_RECENT_CLIENTS_LIMIT,
    ) -> None:
        self._credit_repo = credit_repo
        self._company_repo = company_repo
        self._recent_clients_limit = recent_clients_limit

    def company_stats(
        self, company_id: str, now: datetime | None = None
    ) -> CompanyStats:
        ensure_company_available(self._company_repo, company_id)
        now = now or datetime.now(timezone.utc)
        since = weekly_window_start(now)

        recent_clients = self._credit_repo.recent_clients(
            company_id, self._recent_clients_limit
        )

        new_clients = self._credit_repo.latest_credit_by_user(company_id, since)
        new_clients_stats = weekly_stats(
            new_clients, unique_key="user_id", date_field="last_credit_at", now=now
        )

        # 지급 통계는 소프트 삭제 여부와 무관하게 센다.
        credits_given = self._credit_repo.find(
            CreditFilter(
                company_id=company_id,
                statuses=[CreditStatus.AVAILABLE],
                excluded=None,
                created_from=since,
            )
        )
        credits_given_stats = weekly_stats(
            credits_given, date_field="created_at", now=now
        )

        credits_used = self._credit_repo.find(
            CreditFilter(
                company_id=company_id,
                statuses=[CreditStatus.USED],
                excluded=None,
                requested_from=since,
            )
        )
        credits_used_stats = weekly_stats(
            credits_used, date_field="requested_at", now=now
        )

        return CompanyStats(
            recent_clients=recent_clients,
            new_clients_chart=WeeklyChart.from_buckets(new_clients_stats),
            credits_given_chart=WeeklyChart.from_buckets(credits_given_stats),
            credits_used_chart=WeeklyChart.from_buckets(credits_used_stats),
        )


def get_stats_service(
    credit_repo: CreditRepositoryInterface = Depends(get_credit_repository),
    company_repo: CompanyRepositoryInterface = Depends(get_company_repository),
    config: LedgerConfig = Depends(get_ledger_config),
) -> StatsService:
    """FastAPI DI용 StatsService 팩토리."""

    return StatsService(
        credit_repo,
        company_repo,
        recent_clients_limit=config.stats.recent_clients_limit,
    )

from __future__ import annotations

from pydantic import BaseModel

from .credit import UserActivity


class WeeklyBucket(BaseModel):
    """주간 차트 한 칸. week 는 버킷 시작일의 DD/MM 라벨."""

    week: str
    count: int


class WeeklyChart(BaseModel):
    data_key: str = "week"
    data: list[WeeklyBucket]
    total: int

    @classmethod
    def from_buckets(cls, buckets: list[WeeklyBucket]) -> "WeeklyChart":
        return cls(data=buckets, total=sum(b.count for b in buckets))


class CompanyStats(BaseModel):
    """회사 대시보드용 집계 데이터 (렌더링은 클라이언트 몫)."""

    recent_clients: list[UserActivity]
    new_clients_chart: WeeklyChart
    credits_given_chart: WeeklyChart
    credits_used_chart: WeeklyChart

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from ...models.stats import CompanyStats, WeeklyChart


class WeeklyBucketItem(BaseModel):
    week: str
    count: int


class WeeklyChartItem(BaseModel):
    data_key: str
    data: list[WeeklyBucketItem]
    total: int

    @classmethod
    def from_domain(cls, chart: WeeklyChart) -> "WeeklyChartItem":
        return cls(
            data_key=chart.data_key,
            data=[WeeklyBucketItem(week=b.week, count=b.count) for b in chart.data],
            total=chart.total,
        )


class RecentClientItem(BaseModel):
    user_id: str
    last_credit_at: datetime


class CompanyStatsResponse(BaseModel):
    """회사 대시보드 통계."""

    recent_clients: list[RecentClientItem]
    new_clients_chart: WeeklyChartItem
    credits_given_chart: WeeklyChartItem
    credits_used_chart: WeeklyChartItem

    @classmethod
    def from_domain(cls, stats: CompanyStats) -> "CompanyStatsResponse":
        return cls(
            recent_clients=[
                RecentClientItem(user_id=c.user_id, last_credit_at=c.last_credit_at)
                for c in stats.recent_clients
            ],
            new_clients_chart=WeeklyChartItem.from_domain(stats.new_clients_chart),
            credits_given_chart=WeeklyChartItem.from_domain(stats.credits_given_chart),
            credits_used_chart=WeeklyChartItem.from_domain(stats.credits_used_chart),
        )

"""크레딧 도메인 모델.

크레딧 1건 = 특정 카드 리워드를 향한 진행 1단위. 한 명의 소비자와 한 회사에 속한다.
상태 전이: pending -> available | rejected, available -> used (되돌릴 수 없음).
excluded 는 소프트 삭제 플래그이며 status 와 독립적이다.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, StrictInt


class CreditStatus(StrEnum):
    PENDING = "pending"
    AVAILABLE = "available"
    USED = "used"
    REJECTED = "rejected"


class Credit(BaseModel):
    id: str | None = None
    user_id: str
    card_id: str
    company_id: str
    status: CreditStatus
    excluded: bool = False
    expires_at: datetime
    requested_at: datetime | None = None
    redemption_id: str | None = None
    created_at: datetime
    updated_at: datetime

    def is_eligible(self, now: datetime) -> bool:
        """사용(redeem) 대상이 될 수 있는 크레딧인지 여부."""
        return (
            self.status == CreditStatus.AVAILABLE
            and not self.excluded
            and self.expires_at > now
        )


class CreditFilter(BaseModel):
    """크레딧 조회/수정 조건. None 인 필드는 조건에서 제외된다.

    excluded 의 기본값은 False 이며, 소프트 삭제 여부와 무관하게 보려면 None 을 준다.
    """

    ids: list[str] | None = None
    user_id: str | None = None
    card_id: str | None = None
    card_ids: list[str] | None = None
    company_id: str | None = None
    statuses: list[CreditStatus] | None = None
    excluded: bool | None = False
    created_from: datetime | None = None
    requested_from: datetime | None = None
    redemption_id: str | None = None


class CreditPatch(BaseModel):
    """크레딧 부분 수정.

    model_dump(exclude_unset=True) 로 적용하므로 명시적으로 None 을 넣으면 해당 필드를 비운다.
    """

    status: CreditStatus | None = None
    excluded: bool | None = None
    requested_at: datetime | None = None
    redemption_id: str | None = None


class IssueRequest(BaseModel):
    """카드별 발급 요청 단위."""

    card_id: str
    quantity: StrictInt = 1


class IssueResult(BaseModel):
    created_count: int
    credit_ids: list[str]


class RedemptionResult(BaseModel):
    redeemed_credits: int
    card_title: str
    credit_ids: list[str]
    redemption_id: str


class UserActivity(BaseModel):
    """회사 내 유저별 마지막 크레딧 활동 시각 (집계 결과)."""

    user_id: str
    last_credit_at: datetime

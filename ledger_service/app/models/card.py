"""카드(리워드 정의) 도메인 모델.

회사가 정의한 리워드로, credits_needed 만큼 크레딧을 모으면 사용(redeem)할 수 있다.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field


class CardStatus(StrEnum):
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"
    PENDING = "pending"


class ExpirationUnit(StrEnum):
    DAY = "day"
    MONTH = "month"
    YEAR = "year"


class ExpirationPolicy(BaseModel):
    """크레딧 만료 정책 (발급 시점 기준 상대 기간)."""

    amount: int = Field(gt=0)
    unit: ExpirationUnit


class Card(BaseModel):
    id: str | None = None
    company_id: str
    title: str
    credits_needed: int
    expiration_policy: ExpirationPolicy
    status: CardStatus = CardStatus.AVAILABLE
    excluded: bool = False
    created_at: datetime
    updated_at: datetime

    @property
    def is_usable(self) -> bool:
        """발급/사용 가능한 카드인지 여부."""
        return self.status == CardStatus.AVAILABLE and not self.excluded


class CardFilter(BaseModel):
    """카드 조회 조건. None 인 필드는 조건에서 제외된다."""

    ids: list[str] | None = None
    company_id: str | None = None
    statuses: list[CardStatus] | None = None
    excluded: bool | None = False


class CardPatch(BaseModel):
    """카드 부분 수정. 명시적으로 설정한 필드만 반영된다 (exclude_unset)."""

    title: str | None = None
    credits_needed: int | None = None
    expiration_policy: ExpirationPolicy | None = None
    status: CardStatus | None = None
    excluded: bool | None = None


class CardCounts(BaseModel):
    credits: int
    consumers: int


class CardWithCounts(BaseModel):
    card: Card
    counts: CardCounts


class CardProgressCredit(BaseModel):
    id: str
    status: str
    created_at: datetime
    expires_at: datetime


class CardProgress(BaseModel):
    """소비자 관점의 카드 진행 현황."""

    card_id: str
    title: str
    credits_needed: int
    eligible_credits: int
    credits: list[CardProgressCredit]

    @property
    def can_redeem(self) -> bool:
        return self.eligible_credits >= self.credits_needed

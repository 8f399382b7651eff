from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from ...models.credit import Credit


class IssueCreditItem(BaseModel):
    card_id: str
    quantity: int = 1


class IssueCreditsRequest(BaseModel):
    """회사 크레딧 지급 요청 (카드별 수량)."""

    credits: list[IssueCreditItem]


class IssueCreditsResponse(BaseModel):
    created_count: int
    credit_ids: list[str]


class RedeemResponse(BaseModel):
    """크레딧 사용 결과."""

    redeemed_credits: int
    card_title: str
    credit_ids: list[str]
    redemption_id: str


class ReviewCreditRequest(BaseModel):
    """pending 크레딧 심사. status 는 available 또는 rejected."""

    status: str


class CreditItem(BaseModel):
    id: str
    user_id: str
    card_id: str
    status: str
    excluded: bool
    expires_at: datetime
    requested_at: datetime | None = None
    created_at: datetime

    @classmethod
    def from_domain(cls, credit: Credit) -> "CreditItem":
        return cls(
            id=credit.id or "",
            user_id=credit.user_id,
            card_id=credit.card_id,
            status=str(credit.status),
            excluded=credit.excluded,
            expires_at=credit.expires_at,
            requested_at=credit.requested_at,
            created_at=credit.created_at,
        )


class ListCreditsResponse(BaseModel):
    items: list[CreditItem]

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel

from ...models.card import Card, CardProgress, CardWithCounts


class CardCreateRequest(BaseModel):
    """카드 생성 요청. expiration_policy 는 서비스에서 검증한다."""

    title: str
    credits_needed: int
    expiration_policy: dict[str, Any]


class CardUpdateRequest(BaseModel):
    """카드 수정 요청. 보낸 필드만 반영된다."""

    title: str | None = None
    credits_needed: int | None = None
    expiration_policy: dict[str, Any] | None = None


class ExpirationPolicyItem(BaseModel):
    amount: int
    unit: str


class CardItem(BaseModel):
    id: str
    title: str
    credits_needed: int
    expiration_policy: ExpirationPolicyItem
    status: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, card: Card) -> "CardItem":
        return cls(
            id=card.id or "",
            title=card.title,
            credits_needed=card.credits_needed,
            expiration_policy=ExpirationPolicyItem(
                amount=card.expiration_policy.amount,
                unit=str(card.expiration_policy.unit),
            ),
            status=str(card.status),
            created_at=card.created_at,
            updated_at=card.updated_at,
        )


class CardCountsItem(BaseModel):
    credits: int
    consumers: int


class CardDetailResponse(BaseModel):
    card: CardItem
    counts: CardCountsItem

    @classmethod
    def from_domain(cls, item: CardWithCounts) -> "CardDetailResponse":
        return cls(
            card=CardItem.from_domain(item.card),
            counts=CardCountsItem(
                credits=item.counts.credits, consumers=item.counts.consumers
            ),
        )


class ListCardsResponse(BaseModel):
    items: list[CardDetailResponse]


class ProgressCreditItem(BaseModel):
    id: str
    status: str
    created_at: datetime
    expires_at: datetime


class CardProgressItem(BaseModel):
    card_id: str
    title: str
    credits_needed: int
    eligible_credits: int
    can_redeem: bool
    credits: list[ProgressCreditItem]

    @classmethod
    def from_domain(cls, progress: CardProgress) -> "CardProgressItem":
        return cls(
            card_id=progress.card_id,
            title=progress.title,
            credits_needed=progress.credits_needed,
            eligible_credits=progress.eligible_credits,
            can_redeem=progress.can_redeem,
            credits=[
                ProgressCreditItem(
                    id=c.id,
                    status=c.status,
                    created_at=c.created_at,
                    expires_at=c.expires_at,
                )
                for c in progress.credits
            ],
        )


class ListCardProgressResponse(BaseModel):
    items: list[CardProgressItem]

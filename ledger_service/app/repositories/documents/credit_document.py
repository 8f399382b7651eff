"""크레딧 MongoDB 도큐먼트.

만료된 크레딧도 삭제하지 않고 남겨 둔다 (통계/이력용, 사용 대상에서만 제외).
"""

from __future__ import annotations

from common.mongo.types import (
    BaseDocument,
    MongoDateTime,
    OptionalMongoDateTime,
    from_object_id,
)

from ...models.credit import Credit, CreditStatus


class CreditDocument(BaseDocument):
    """MongoDB credits 컬렉션 도큐먼트 모델."""

    user_id: str
    card_id: str
    company_id: str
    status: str
    excluded: bool = False
    expires_at: MongoDateTime
    requested_at: OptionalMongoDateTime = None
    redemption_id: str | None = None

    @classmethod
    def from_domain(cls, credit: Credit) -> "CreditDocument":
        return cls(
            _id=credit.id,
            user_id=credit.user_id,
            card_id=credit.card_id,
            company_id=credit.company_id,
            status=str(credit.status),
            excluded=credit.excluded,
            expires_at=credit.expires_at,
            requested_at=credit.requested_at,
            redemption_id=credit.redemption_id,
            created_at=credit.created_at,
            updated_at=credit.updated_at,
        )

    def to_domain(self) -> Credit:
        return Credit(
            id=from_object_id(self.id),
            user_id=self.user_id,
            card_id=self.card_id,
            company_id=self.company_id,
            status=CreditStatus(self.status),
            excluded=self.excluded,
            expires_at=self.expires_at,
            requested_at=self.requested_at,
            redemption_id=self.redemption_id,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

"""카드 MongoDB 도큐먼트."""

from __future__ import annotations

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from common.mongo.types import BaseDocument, from_object_id

from ...exceptions import ConfigurationError
from ...models.card import Card, CardStatus, ExpirationPolicy


class ExpirationPolicyDocument(BaseModel):
    amount: int
    unit: str


class CardDocument(BaseDocument):
    """MongoDB cards 컬렉션 도큐먼트 모델."""

    company_id: str
    title: str
    credits_needed: int
    expiration_policy: ExpirationPolicyDocument
    status: str
    excluded: bool = False

    @classmethod
    def from_domain(cls, card: Card) -> "CardDocument":
        return cls(
            _id=card.id,
            company_id=card.company_id,
            title=card.title,
            credits_needed=card.credits_needed,
            expiration_policy=ExpirationPolicyDocument(
                amount=card.expiration_policy.amount,
                unit=str(card.expiration_policy.unit),
            ),
            status=str(card.status),
            excluded=card.excluded,
            created_at=card.created_at,
            updated_at=card.updated_at,
        )

    def to_domain(self) -> Card:
        try:
            policy = ExpirationPolicy(
                amount=self.expiration_policy.amount,
                unit=self.expiration_policy.unit,
            )
        except PydanticValidationError as exc:
            raise ConfigurationError(
                f"card {self.id} has an invalid expiration policy",
                card_id=from_object_id(self.id),
                unit=self.expiration_policy.unit,
                amount=self.expiration_policy.amount,
            ) from exc

        return Card(
            id=from_object_id(self.id),
            company_id=self.company_id,
            title=self.title,
            credits_needed=self.credits_needed,
            expiration_policy=policy,
            status=CardStatus(self.status),
            excluded=self.excluded,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from ..models.card import Card, CardFilter, CardPatch
from ..models.company import Company
from ..models.credit import Credit, CreditFilter, CreditPatch, UserActivity


class CardRepositoryInterface(Protocol):
    """카드 저장소가 따라야 할 최소한의 계약.

    Service 레이어는 이 인터페이스에만 의존하고, 구체 구현(Mongo 등)은 몰라도 된다.
    """

    def find_one(self, flt: CardFilter) -> Card | None:  # pragma: no cover - Protocol
        ...

    def list(self, flt: CardFilter) -> list[Card]:  # pragma: no cover - Protocol
        ...

    def insert(self, card: Card) -> Card:  # pragma: no cover - Protocol
        ...

    def update(
        self, flt: CardFilter, patch: CardPatch
    ) -> Card | None:  # pragma: no cover - Protocol
        """flt 에 매칭되는 카드 1건을 수정하고 수정 후 값을 반환한다. 없으면 None."""
        ...


class CreditRepositoryInterface(Protocol):
    """크레딧 저장소가 따라야 할 최소한의 계약.

    - 모든 변경은 조건부 update 로 표현한다 (id + 현재 상태).
    - find 는 created_at, id 오름차순으로 반환한다.
    """

    def find(self, flt: CreditFilter) -> list[Credit]:  # pragma: no cover - Protocol
        ...

    def find_one(
        self, flt: CreditFilter
    ) -> Credit | None:  # pragma: no cover - Protocol
        ...

    def insert_many(
        self, credits: list[Credit]
    ) -> list[Credit]:  # pragma: no cover - Protocol
        """한 번의 bulk insert 로 저장하고 id 가 채워진 크레딧을 반환한다."""
        ...

    def update_many(
        self, flt: CreditFilter, patch: CreditPatch
    ) -> int:  # pragma: no cover - Protocol
        """flt 에 매칭되는 크레딧을 한 번에 수정하고 수정된 개수를 반환한다."""
        ...

    def latest_credit_by_user(
        self, company_id: str, since: datetime
    ) -> list[UserActivity]:  # pragma: no cover - Protocol
        """since 이후 크레딧을 받은 유저별 마지막 크레딧 시각."""
        ...

    def recent_clients(
        self, company_id: str, limit: int
    ) -> list[UserActivity]:  # pragma: no cover - Protocol
        """가장 최근에 크레딧 활동이 있었던 유저 limit 명 (최신순)."""
        ...


class CompanyRepositoryInterface(Protocol):
    """회사 조회 계약. 원장은 회사의 자격(status/excluded)만 읽는다."""

    def find_one(
        self, company_id: str
    ) -> Company | None:  # pragma: no cover - Protocol
        """id 로 회사를 조회한다. 없거나 id 형식이 잘못되면 None."""
        ...

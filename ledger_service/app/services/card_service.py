"""카드(리워드 정의) 관리 서비스.

회사 요청자만 카드를 만들고 고칠 수 있다. 삭제는 excluded=true, status=unavailable 로 하는
소프트 삭제이며, 이미 발급된 크레딧의 expires_at 은 카드 수정과 무관하게 유지된다.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from fastapi import Depends
from pydantic import ValidationError as PydanticValidationError

from ..authorization import Requester, require_company
from ..exceptions import NotAvailableError, NotFoundError, ValidationError
from ..models.card import (
    Card,
    CardCounts,
    CardFilter,
    CardPatch,
    CardProgress,
    CardProgressCredit,
    CardStatus,
    CardWithCounts,
    ExpirationPolicy,
)
from ..models.credit import Credit, CreditFilter, CreditStatus
from ..repositories.interfaces import (
    CardRepositoryInterface,
    CompanyRepositoryInterface,
    CreditRepositoryInterface,
)
from .company_eligibility import ensure_company_available
from .dependencies import (
    get_card_repository,
    get_company_repository,
    get_credit_repository,
)


logger = logging.getLogger(__name__)

EDITABLE_FIELDS = frozenset({"title", "credits_needed", "expiration_policy"})


def _validate_title(title: Any) -> str:
    if not isinstance(title, str) or not title.strip():
        raise ValidationError("title is required", field="title")
    return title.strip()


def _validate_credits_needed(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError(
            "credits_needed must be a positive integer",
            field="credits_needed",
            credits_needed=value,
        )
    return value


def _validate_policy(value: Any) -> ExpirationPolicy:
    if isinstance(value, ExpirationPolicy):
        return value
    try:
        return ExpirationPolicy.model_validate(value)
    except PydanticValidationError as exc:
        raise ValidationError(
            "invalid expiration policy", field="expiration_policy"
        ) from exc


class CardService:
    """카드 CRUD 와 소비자 진행 현황 조회."""

    def __init__(
        self,
        card_repo: CardRepositoryInterface,
        credit_repo: CreditRepositoryInterface,
        company_repo: CompanyRepositoryInterface,
    ) -> None:
        self._card_repo = card_repo
        self._credit_repo = credit_repo
        self._company_repo = company_repo

    def create_card(
        self,
        requester: Requester,
        title: str,
        credits_needed: int,
        expiration_policy: ExpirationPolicy | Mapping[str, Any],
        now: datetime | None = None,
    ) -> Card:
        company_id = self._company_id(requester)
        now = now or datetime.now(timezone.utc)

        card = Card(
            company_id=company_id,
            title=_validate_title(title),
            credits_needed=_validate_credits_needed(credits_needed),
            expiration_policy=_validate_policy(expiration_policy),
            status=CardStatus.AVAILABLE,
            excluded=False,
            created_at=now,
            updated_at=now,
        )
        created = self._card_repo.insert(card)
        logger.info(
            "card created",
            extra={"company_id": company_id, "card_id": created.id},
        )
        return created

    def update_card(
        self,
        requester: Requester,
        card_id: str,
        changes: CardPatch | Mapping[str, Any],
    ) -> Card:
        """title, credits_needed, expiration_policy 만 수정할 수 있다."""

        company_id = self._company_id(requester)
        patch = self._build_patch(changes)

        current = self._card_repo.find_one(
            CardFilter(ids=[card_id], company_id=company_id, excluded=None)
        )
        if current is None:
            raise NotFoundError("card", card_id)
        if not current.is_usable:
            raise NotAvailableError("card", card_id, reason=str(current.status))

        updated = self._card_repo.update(
            CardFilter(
                ids=[card_id],
                company_id=company_id,
                statuses=[CardStatus.AVAILABLE],
                excluded=False,
            ),
            patch,
        )
        if updated is None:
            # 조회와 수정 사이에 삭제되었다.
            raise NotAvailableError("card", card_id, reason="deleted")

        logger.info(
            "card updated",
            extra={"company_id": company_id, "card_id": card_id},
        )
        return updated

    def delete_card(self, requester: Requester, card_id: str) -> Card:
        company_id = self._company_id(requester)

        current = self._card_repo.find_one(
            CardFilter(ids=[card_id], company_id=company_id, excluded=None)
        )
        if current is None:
            raise NotFoundError("card", card_id)

        deleted = self._card_repo.update(
            CardFilter(
                ids=[card_id],
                company_id=company_id,
                statuses=[CardStatus.AVAILABLE],
                excluded=False,
            ),
            CardPatch(excluded=True, status=CardStatus.UNAVAILABLE),
        )
        if deleted is None:
            raise NotAvailableError("card", card_id, reason="already deleted")

        logger.info(
            "card deleted",
            extra={"company_id": company_id, "card_id": card_id},
        )
        return deleted

    def get_card(self, requester: Requester, card_id: str) -> CardWithCounts:
        """카드와 사용 가능/사용된 크레딧 기준 통계."""

        company_id = self._company_id(requester)
        card = self._card_repo.find_one(
            CardFilter(ids=[card_id], company_id=company_id)
        )
        if card is None:
            raise NotFoundError("card", card_id)

        credits = self._credit_repo.find(
            CreditFilter(
                card_id=card_id,
                company_id=company_id,
                statuses=[CreditStatus.AVAILABLE, CreditStatus.USED],
                excluded=False,
            )
        )
        return CardWithCounts(card=card, counts=_count(credits))

    def list_cards(self, requester: Requester) -> list[CardWithCounts]:
        company_id = self._company_id(requester)
        cards = self._card_repo.list(CardFilter(company_id=company_id))
        if not cards:
            return []

        credits = self._credit_repo.find(
            CreditFilter(
                card_ids=[c.id for c in cards if c.id],
                company_id=company_id,
                excluded=None,
            )
        )
        by_card: dict[str, list[Credit]] = defaultdict(list)
        for credit in credits:
            by_card[credit.card_id].append(credit)

        return [
            CardWithCounts(card=card, counts=_count(by_card.get(card.id or "", [])))
            for card in cards
        ]

    def list_progress(
        self, user_id: str, company_id: str, now: datetime | None = None
    ) -> list[CardProgress]:
        """회사의 사용 가능한 카드별로 user_id 의 크레딧 진행 현황을 반환한다."""

        ensure_company_available(self._company_repo, company_id)
        now = now or datetime.now(timezone.utc)
        cards = self._card_repo.list(
            CardFilter(company_id=company_id, statuses=[CardStatus.AVAILABLE])
        )
        if not cards:
            return []

        credits = self._credit_repo.find(
            CreditFilter(
                user_id=user_id,
                company_id=company_id,
                card_ids=[c.id for c in cards if c.id],
                statuses=[CreditStatus.AVAILABLE, CreditStatus.USED],
                excluded=False,
            )
        )
        by_card: dict[str, list[Credit]] = defaultdict(list)
        for credit in credits:
            by_card[credit.card_id].append(credit)

        progress: list[CardProgress] = []
        for card in cards:
            owned = by_card.get(card.id or "", [])
            progress.append(
                CardProgress(
                    card_id=card.id or "",
                    title=card.title,
                    credits_needed=card.credits_needed,
                    eligible_credits=sum(1 for c in owned if c.is_eligible(now)),
                    credits=[
                        CardProgressCredit(
                            id=c.id or "",
                            status=str(c.status),
                            created_at=c.created_at,
                            expires_at=c.expires_at,
                        )
                        for c in owned
                    ],
                )
            )
        return progress

    # --- helpers -----------------------------------------------------------------
    def _company_id(self, requester: Requester) -> str:
        company_id = require_company(requester)
        ensure_company_available(self._company_repo, company_id)
        return company_id

    @staticmethod
    def _build_patch(changes: CardPatch | Mapping[str, Any]) -> CardPatch:
        if isinstance(changes, CardPatch):
            raw = changes.model_dump(exclude_unset=True)
        elif isinstance(changes, Mapping):
            raw = dict(changes)
        else:
            raise ValidationError("invalid card changes")

        unknown = set(raw) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(
                f"fields cannot be updated: {', '.join(sorted(unknown))}",
                field=sorted(unknown)[0],
            )
        if not raw:
            raise ValidationError("at least one field is required to update a card")

        values: dict[str, Any] = {}
        if "title" in raw:
            values["title"] = _validate_title(raw["title"])
        if "credits_needed" in raw:
            values["credits_needed"] = _validate_credits_needed(raw["credits_needed"])
        if "expiration_policy" in raw:
            values["expiration_policy"] = _validate_policy(raw["expiration_policy"])
        return CardPatch(**values)


def _count(credits: list[Credit]) -> CardCounts:
    return CardCounts(
        credits=len(credits),
        consumers=len({c.user_id for c in credits}),
    )


def get_card_service(
    card_repo: CardRepositoryInterface = Depends(get_card_repository),
    credit_repo: CreditRepositoryInterface = Depends(get_credit_repository),
    company_repo: CompanyRepositoryInterface = Depends(get_company_repository),
) -> CardService:
    """FastAPI DI용 CardService 팩토리."""

    return CardService(card_repo, credit_repo, company_repo)

"""소비자가 요청한 pending 크레딧의 승인/거절과 크레딧 소프트 삭제."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import Depends

from ..authorization import Requester, require_company
from ..exceptions import NotAvailableError, NotFoundError, ValidationError
from ..models.card import CardFilter, CardStatus
from ..models.credit import Credit, CreditFilter, CreditPatch, CreditStatus
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

REVIEW_OUTCOMES = (CreditStatus.AVAILABLE, CreditStatus.REJECTED)


class CreditReviewService:
    def __init__(
        self,
        card_repo: CardRepositoryInterface,
        credit_repo: CreditRepositoryInterface,
        company_repo: CompanyRepositoryInterface,
    ) -> None:
        self._card_repo = card_repo
        self._credit_repo = credit_repo
        self._company_repo = company_repo

    def list_pending(self, requester: Requester) -> list[Credit]:
        """사용 가능한 카드에 걸린 pending 크레딧 (오래된 순)."""

        company_id = require_company(requester)
        ensure_company_available(self._company_repo, company_id)
        usable_card_ids = {
            card.id
            for card in self._card_repo.list(
                CardFilter(company_id=company_id, statuses=[CardStatus.AVAILABLE])
            )
        }
        pending = self._credit_repo.find(
            CreditFilter(company_id=company_id, statuses=[CreditStatus.PENDING])
        )
        return [c for c in pending if c.card_id in usable_card_ids]

    def review_credit(
        self,
        requester: Requester,
        credit_id: str,
        status: CreditStatus | str,
        now: datetime | None = None,
    ) -> Credit:
        company_id = require_company(requester)
        ensure_company_available(self._company_repo, company_id)
        now = now or datetime.now(timezone.utc)

        try:
            outcome = CreditStatus(status)
        except ValueError as exc:
            raise ValidationError(
                f"invalid review status: {status!r}", field="status"
            ) from exc
        if outcome not in REVIEW_OUTCOMES:
            raise ValidationError(
                "review status must be available or rejected",
                field="status",
                status=str(outcome),
            )

        credit = self._credit_repo.find_one(
            CreditFilter(ids=[credit_id], company_id=company_id, excluded=None)
        )
        if credit is None:
            raise NotFoundError("credit", credit_id)
        if credit.excluded or credit.status != CreditStatus.PENDING:
            raise NotAvailableError("credit", credit_id, reason=str(credit.status))

        card = self._card_repo.find_one(
            CardFilter(ids=[credit.card_id], company_id=company_id, excluded=None)
        )
        if card is None or not card.is_usable:
            raise NotAvailableError("card", credit.card_id)

        matched = self._credit_repo.update_many(
            CreditFilter(
                ids=[credit_id],
                company_id=company_id,
                statuses=[CreditStatus.PENDING],
                excluded=False,
            ),
            CreditPatch(status=outcome),
        )
        if matched == 0:
            raise NotAvailableError("credit", credit_id, reason="already reviewed")

        logger.info(
            "credit reviewed as %s",
            outcome,
            extra={
                "company_id": company_id,
                "user_id": credit.user_id,
                "card_id": credit.card_id,
                "credit_ids": [credit_id],
            },
        )
        return credit.model_copy(update={"status": outcome, "updated_at": now})

    def remove_credit(
        self, requester: Requester, user_id: str, credit_id: str
    ) -> Credit:
        """user_id 의 사용 가능한 크레딧을 소프트 삭제한다."""

        company_id = require_company(requester)
        ensure_company_available(self._company_repo, company_id)
        flt = CreditFilter(
            ids=[credit_id],
            user_id=user_id,
            company_id=company_id,
            statuses=[CreditStatus.AVAILABLE],
            excluded=False,
        )

        credit = self._credit_repo.find_one(flt)
        if credit is None:
            raise NotFoundError("credit", credit_id)

        if self._credit_repo.update_many(flt, CreditPatch(excluded=True)) == 0:
            raise NotFoundError("credit", credit_id)

        logger.info(
            "credit removed",
            extra={
                "company_id": company_id,
                "user_id": user_id,
                "card_id": credit.card_id,
                "credit_ids": [credit_id],
            },
        )
        return credit.model_copy(update={"excluded": True})


def get_credit_review_service(
    card_repo: CardRepositoryInterface = Depends(get_card_repository),
    credit_repo: CreditRepositoryInterface = Depends(get_credit_repository),
    company_repo: CompanyRepositoryInterface = Depends(get_company_repository),
) -> CreditReviewService:
    """FastAPI DI용 CreditReviewService 팩토리."""

    return CreditReviewService(card_repo, credit_repo, company_repo)

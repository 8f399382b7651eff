"""크레딧 발급 서비스.

회사 지급(available)과 소비자 셀프 요청(pending) 두 경로를 처리한다.
배치 내 요청 하나라도 잘못되면 아무것도 저장하지 않고 ValidationError 를 던진다.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime, timezone
from typing import Any

from fastapi import Depends
from pydantic import ValidationError as PydanticValidationError

from ..authorization import Requester, RequesterRole, can_issue
from ..exceptions import ForbiddenError, NotAvailableError, ValidationError
from ..expiration import compute_expiration
from ..models.card import Card, CardFilter
from ..models.credit import Credit, CreditStatus, IssueRequest, IssueResult
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


class IssuanceService:
    """크레딧 발급 비즈니스 로직."""

    def __init__(
        self,
        card_repo: CardRepositoryInterface,
        credit_repo: CreditRepositoryInterface,
        company_repo: CompanyRepositoryInterface,
    ) -> None:
        self._card_repo = card_repo
        self._credit_repo = credit_repo
        self._company_repo = company_repo

    def issue_credits(
        self,
        requester: Requester,
        user_id: str,
        requests: Sequence[IssueRequest | Mapping[str, Any]],
        now: datetime | None = None,
    ) -> IssueResult:
        """user_id 에게 카드별 quantity 만큼 크레딧을 발급한다.

        - 회사 요청자: 자기 회사 카드에 대해 available 크레딧을 지급한다.
        - 소비자 요청자: 본인에게 카드당 1건의 pending 크레딧만 요청할 수 있다.
        """

        now = now or datetime.now(timezone.utc)
        if not user_id:
            raise ValidationError("user_id is required", field="user_id")

        status = self._resolve_status(requester, user_id)
        parsed = self._parse_requests(requests)
        if requester.role == RequesterRole.CONSUMER:
            for req in parsed:
                if req.quantity != 1:
                    raise ValidationError(
                        "consumers can only request one credit per card",
                        field="quantity",
                        card_id=req.card_id,
                        quantity=req.quantity,
                    )

        cards = self._load_cards(requester, parsed)
        self._check_companies(cards.values())

        credits: list[Credit] = []
        for req in parsed:
            card = cards[req.card_id]
            expires_at = compute_expiration(now, card.expiration_policy)
            for _ in range(req.quantity):
                credits.append(
                    Credit(
                        user_id=user_id,
                        card_id=req.card_id,
                        company_id=card.company_id,
                        status=status,
                        excluded=False,
                        expires_at=expires_at,
                        created_at=now,
                        updated_at=now,
                    )
                )

        created = self._credit_repo.insert_many(credits)
        credit_ids = [c.id for c in created if c.id]

        logger.info(
            "issued %d %s credits",
            len(created),
            status,
            extra={
                "user_id": user_id,
                "company_id": requester.company_id,
                "credit_ids": credit_ids,
            },
        )
        return IssueResult(created_count=len(created), credit_ids=credit_ids)

    def request_credit(
        self, requester: Requester, card_id: str, now: datetime | None = None
    ) -> IssueResult:
        """소비자가 본인 앞으로 pending 크레딧 1건을 요청한다."""

        if requester.role != RequesterRole.CONSUMER:
            raise ForbiddenError(
                "only consumers can request credits", user_id=requester.user_id
            )
        return self.issue_credits(
            requester,
            requester.user_id,
            [IssueRequest(card_id=card_id, quantity=1)],
            now=now,
        )

    # --- helpers -----------------------------------------------------------------
    @staticmethod
    def _resolve_status(requester: Requester, user_id: str) -> CreditStatus:
        if requester.role == RequesterRole.CONSUMER:
            if requester.user_id != user_id:
                raise ForbiddenError(
                    "consumers can only request credits for themselves",
                    user_id=requester.user_id,
                    target_user_id=user_id,
                )
            return CreditStatus.PENDING

        if not requester.is_company:
            raise ForbiddenError(
                "company requester has no company", user_id=requester.user_id
            )
        return CreditStatus.AVAILABLE

    @staticmethod
    def _parse_requests(
        requests: Sequence[IssueRequest | Mapping[str, Any]],
    ) -> list[IssueRequest]:
        if not requests:
            raise ValidationError("at least one credit request is required", field="credits")

        parsed: list[IssueRequest] = []
        for index, raw in enumerate(requests):
            try:
                req = (
                    raw
                    if isinstance(raw, IssueRequest)
                    else IssueRequest.model_validate(raw)
                )
            except PydanticValidationError as exc:
                raise ValidationError(
                    f"invalid credit request at index {index}",
                    field="credits",
                    index=index,
                ) from exc

            if not req.card_id.strip():
                raise ValidationError(
                    "card_id is required", field="credits.card_id", index=index
                )
            if isinstance(req.quantity, bool) or req.quantity <= 0:
                raise ValidationError(
                    "quantity must be a positive integer",
                    field="credits.quantity",
                    index=index,
                    quantity=req.quantity,
                )
            parsed.append(req)
        return parsed

    def _load_cards(
        self, requester: Requester, requests: list[IssueRequest]
    ) -> dict[str, Card]:
        """요청된 카드를 한 번에 조회하고, 모두 발급 가능한지 검증한다."""

        card_ids = sorted({req.card_id for req in requests})
        cards = {
            card.id: card
            for card in self._card_repo.list(CardFilter(ids=card_ids, excluded=None))
            if card.id
        }

        for card_id in card_ids:
            card = cards.get(card_id)
            if card is None or not can_issue(requester, card):
                raise ValidationError(
                    f"card {card_id} not found", field="credits.card_id", card_id=card_id
                )
            if not card.is_usable:
                raise ValidationError(
                    f"card {card_id} is not available",
                    field="credits.card_id",
                    card_id=card_id,
                )
        return cards

    def _check_companies(self, cards: Iterable[Card]) -> None:
        """카드를 소유한 회사가 모두 크레딧을 발급할 수 있는 상태인지 확인한다."""

        for company_id in sorted({card.company_id for card in cards}):
            try:
                ensure_company_available(self._company_repo, company_id)
            except NotAvailableError as exc:
                raise ValidationError(
                    f"company {company_id} is not available",
                    field="company_id",
                    company_id=company_id,
                    reason=exc.context.get("reason"),
                ) from exc


def get_issuance_service(
    card_repo: CardRepositoryInterface = Depends(get_card_repository),
    credit_repo: CreditRepositoryInterface = Depends(get_credit_repository),
    company_repo: CompanyRepositoryInterface = Depends(get_company_repository),
) -> IssuanceService:
    """FastAPI DI용 IssuanceService 팩토리."""

    return IssuanceService(card_repo, credit_repo, company_repo)

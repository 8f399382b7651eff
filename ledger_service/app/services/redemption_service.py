"""크레딧 사용(redeem) 엔진.

카드의 credits_needed 만큼, 만료되지 않은 available 크레딧을 오래된 순(FIFO)으로 골라
한 번의 조건부 update 로 used 처리한다. 부족하면 아무것도 쓰지 않고 실패한다.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from fastapi import Depends

from ..authorization import can_redeem
from ..config import DEFAULT_REDEMPTION_MAX_ATTEMPTS, LedgerConfig
from ..exceptions import (
    ConfigurationError,
    InsufficientCreditsError,
    NotAvailableError,
)
from ..models.card import Card, CardFilter
from ..models.credit import (
    Credit,
    CreditFilter,
    CreditPatch,
    CreditStatus,
    RedemptionResult,
)
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
    get_ledger_config,
)


logger = logging.getLogger(__name__)


def select_credits_to_redeem(
    credits: list[Credit], required: int, now: datetime
) -> list[Credit]:
    """사용 가능한 크레딧 중 오래된 순으로 required 개를 고른다.

    만료(expires_at <= now)되었거나 excluded 인 크레딧은 대상이 아니다.
    created_at 이 같으면 id 오름차순으로 정렬해 결과를 결정적으로 만든다.
    개수가 부족하면 빈 리스트가 아니라 가능한 만큼 반환하므로, 호출 측이 길이를 비교한다.
    """

    eligible = [c for c in credits if c.is_eligible(now)]
    eligible.sort(key=lambda c: (c.created_at, c.id or ""))
    return eligible[:required]


class RedemptionService:
    """카드 단위 크레딧 사용 비즈니스 로직."""

    def __init__(
        self,
        card_repo: CardRepositoryInterface,
        credit_repo: CreditRepositoryInterface,
        company_repo: CompanyRepositoryInterface,
        max_attempts: int = DEFAULT_REDEMPTION_MAX_ATTEMPTS,
    ) -> None:
        self._card_repo = card_repo
        self._credit_repo = credit_repo
        self._company_repo = company_repo
        self._max_attempts = max(1, max_attempts)

    def redeem(
        self,
        company_id: str,
        user_id: str,
        card_id: str,
        now: datetime | None = None,
    ) -> RedemptionResult:
        """user_id 의 card_id 크레딧을 credits_needed 개 사용 처리한다."""

        now = now or datetime.now(timezone.utc)
        card = self._load_card(company_id, card_id)
        required = card.credits_needed

        matched = 0
        for attempt in range(1, self._max_attempts + 1):
            selected = self._select(user_id, card, now)
            redemption_id = uuid.uuid4().hex
            credit_ids = [c.id for c in selected if c.id]

            matched = self._credit_repo.update_many(
                CreditFilter(
                    ids=credit_ids,
                    statuses=[CreditStatus.AVAILABLE],
                    excluded=False,
                ),
                CreditPatch(
                    status=CreditStatus.USED,
                    requested_at=now,
                    redemption_id=redemption_id,
                ),
            )

            if matched == len(credit_ids):
                logger.info(
                    "redeemed %d credits for card %s",
                    matched,
                    card_id,
                    extra={
                        "company_id": company_id,
                        "user_id": user_id,
                        "card_id": card_id,
                        "credit_ids": credit_ids,
                        "redemption_id": redemption_id,
                    },
                )
                return RedemptionResult(
                    redeemed_credits=matched,
                    card_title=card.title,
                    credit_ids=credit_ids,
                    redemption_id=redemption_id,
                )

            # 선택과 update 사이에 다른 요청이 일부 크레딧을 가져갔다.
            # 이번 시도에서 바꾼 것만 되돌리고 처음부터 다시 고른다.
            try:
                self._rollback(redemption_id)
            except Exception:
                # 되돌리지 못한 크레딧은 used 로 남아 redemption_id 로 수동 복구해야 한다.
                logger.error(
                    "failed to roll back partial redemption",
                    extra={
                        "company_id": company_id,
                        "user_id": user_id,
                        "card_id": card_id,
                        "redemption_id": redemption_id,
                        "credit_ids": credit_ids,
                    },
                )
                raise
            logger.warning(
                "concurrent redemption detected (matched %d of %d), retrying",
                matched,
                len(credit_ids),
                extra={
                    "company_id": company_id,
                    "user_id": user_id,
                    "card_id": card_id,
                    "redemption_id": redemption_id,
                    "attempt": attempt,
                },
            )

        raise InsufficientCreditsError(card_id, required, matched, conflict=True)

    # --- helpers -----------------------------------------------------------------
    def _load_card(self, company_id: str, card_id: str) -> Card:
        ensure_company_available(self._company_repo, company_id)
        card = self._card_repo.find_one(CardFilter(ids=[card_id], excluded=None))
        if card is None or not can_redeem(company_id, card):
            raise NotAvailableError("card", card_id, reason="not found")
        if not card.is_usable:
            raise NotAvailableError("card", card_id, reason=str(card.status))
        if card.credits_needed <= 0:
            raise ConfigurationError(
                f"card {card_id} has a non-positive credits_needed",
                card_id=card_id,
                credits_needed=card.credits_needed,
            )
        return card

    def _select(self, user_id: str, card: Card, now: datetime) -> list[Credit]:
        """검증만 수행하는 읽기 단계. 부족하면 쓰기 없이 예외를 던진다."""

        card_id = card.id or ""
        candidates = self._credit_repo.find(
            CreditFilter(
                user_id=user_id,
                card_id=card_id,
                statuses=[CreditStatus.AVAILABLE],
                excluded=False,
            )
        )
        selected = select_credits_to_redeem(candidates, card.credits_needed, now)
        if len(selected) < card.credits_needed:
            raise InsufficientCreditsError(card_id, card.credits_needed, len(selected))
        return selected

    def _rollback(self, redemption_id: str) -> None:
        self._credit_repo.update_many(
            CreditFilter(
                redemption_id=redemption_id,
                statuses=[CreditStatus.USED],
                excluded=None,
            ),
            CreditPatch(
                status=CreditStatus.AVAILABLE,
                requested_at=None,
                redemption_id=None,
            ),
        )


def get_redemption_service(
    card_repo: CardRepositoryInterface = Depends(get_card_repository),
    credit_repo: CreditRepositoryInterface = Depends(get_credit_repository),
    company_repo: CompanyRepositoryInterface = Depends(get_company_repository),
    config: LedgerConfig = Depends(get_ledger_config),
) -> RedemptionService:
    """FastAPI DI용 RedemptionService 팩토리."""

    return RedemptionService(
        card_repo,
        credit_repo,
        company_repo,
        max_attempts=config.redemption.max_attempts,
    )

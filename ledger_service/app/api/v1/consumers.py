"""회사가 특정 소비자에게 하는 크레딧 지급/사용/삭제 내부 API."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, status

from ...authorization import Requester, require_company
from ...services.credit_review_service import (
    CreditReviewService,
    get_credit_review_service,
)
from ...services.issuance_service import IssuanceService, get_issuance_service
from ...services.redemption_service import RedemptionService, get_redemption_service
from ..identity import get_requester
from ..schemas.credits import (
    IssueCreditsRequest,
    IssueCreditsResponse,
    RedeemResponse,
)


router = APIRouter()


@router.post(
    "/{consumer_id}/credits",
    response_model=IssueCreditsResponse,
    status_code=status.HTTP_201_CREATED,
    summary="소비자에게 크레딧 지급",
)
def issue_credits(
    consumer_id: str,
    body: IssueCreditsRequest,
    requester: Annotated[Requester, Depends(get_requester)],
    service: Annotated[IssuanceService, Depends(get_issuance_service)],
) -> IssueCreditsResponse:
    require_company(requester)
    result = service.issue_credits(
        requester,
        consumer_id,
        [item.model_dump() for item in body.credits],
    )
    return IssueCreditsResponse(
        created_count=result.created_count, credit_ids=result.credit_ids
    )


@router.post(
    "/{consumer_id}/cards/{card_id}/redeem",
    response_model=RedeemResponse,
    summary="카드 리워드 사용. 크레딧 부족 시 402.",
)
def redeem_card(
    consumer_id: str,
    card_id: str,
    requester: Annotated[Requester, Depends(get_requester)],
    service: Annotated[RedemptionService, Depends(get_redemption_service)],
) -> RedeemResponse:
    company_id = require_company(requester)
    result = service.redeem(company_id, consumer_id, card_id)
    return RedeemResponse(
        redeemed_credits=result.redeemed_credits,
        card_title=result.card_title,
        credit_ids=result.credit_ids,
        redemption_id=result.redemption_id,
    )


@router.delete("/{consumer_id}/credits/{credit_id}", summary="소비자 크레딧 삭제")
def remove_credit(
    consumer_id: str,
    credit_id: str,
    requester: Annotated[Requester, Depends(get_requester)],
    service: Annotated[CreditReviewService, Depends(get_credit_review_service)],
) -> dict[str, str]:
    service.remove_credit(requester, consumer_id, credit_id)
    return {"message": "credit_deleted"}

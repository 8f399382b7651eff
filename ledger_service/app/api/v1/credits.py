from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from ...authorization import Requester
from ...services.credit_review_service import (
    CreditReviewService,
    get_credit_review_service,
)
from ..identity import get_requester
from ..schemas.credits import CreditItem, ListCreditsResponse, ReviewCreditRequest


router = APIRouter()


@router.get("", response_model=ListCreditsResponse, summary="심사 대기 크레딧 목록")
def list_pending_credits(
    requester: Annotated[Requester, Depends(get_requester)],
    service: Annotated[CreditReviewService, Depends(get_credit_review_service)],
) -> ListCreditsResponse:
    credits = service.list_pending(requester)
    return ListCreditsResponse(items=[CreditItem.from_domain(c) for c in credits])


@router.patch("/{credit_id}", response_model=CreditItem, summary="크레딧 승인/거절")
def review_credit(
    credit_id: str,
    body: ReviewCreditRequest,
    requester: Annotated[Requester, Depends(get_requester)],
    service: Annotated[CreditReviewService, Depends(get_credit_review_service)],
) -> CreditItem:
    credit = service.review_credit(requester, credit_id, body.status)
    return CreditItem.from_domain(credit)

"""소비자용 내부 API (크레딧 요청, 카드 진행 현황)."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, status

from ...authorization import Requester
from ...services.card_service import CardService, get_card_service
from ...services.issuance_service import IssuanceService, get_issuance_service
from ..identity import get_requester
from ..schemas.cards import CardProgressItem, ListCardProgressResponse
from ..schemas.credits import IssueCreditsResponse


router = APIRouter()


@router.post(
    "/cards/{card_id}/request",
    response_model=IssueCreditsResponse,
    status_code=status.HTTP_201_CREATED,
    summary="크레딧 요청 (회사 승인 대기)",
)
def request_credit(
    card_id: str,
    requester: Annotated[Requester, Depends(get_requester)],
    service: Annotated[IssuanceService, Depends(get_issuance_service)],
) -> IssueCreditsResponse:
    result = service.request_credit(requester, card_id)
    return IssueCreditsResponse(
        created_count=result.created_count, credit_ids=result.credit_ids
    )


@router.get(
    "/companies/{company_id}/cards",
    response_model=ListCardProgressResponse,
    summary="회사 카드별 내 크레딧 현황",
)
def list_card_progress(
    company_id: str,
    requester: Annotated[Requester, Depends(get_requester)],
    service: Annotated[CardService, Depends(get_card_service)],
) -> ListCardProgressResponse:
    progress = service.list_progress(requester.user_id, company_id)
    return ListCardProgressResponse(
        items=[CardProgressItem.from_domain(p) for p in progress]
    )

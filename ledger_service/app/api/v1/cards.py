"""회사 카드 관리 내부 API.

Gateway에서 호출하는 내부 API.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, status

from ...authorization import Requester
from ...services.card_service import CardService, get_card_service
from ..identity import get_requester
from ..schemas.cards import (
    CardCreateRequest,
    CardDetailResponse,
    CardItem,
    CardUpdateRequest,
    ListCardsResponse,
)


router = APIRouter()


@router.get("", response_model=ListCardsResponse, summary="회사 카드 목록")
def list_cards(
    requester: Annotated[Requester, Depends(get_requester)],
    service: Annotated[CardService, Depends(get_card_service)],
) -> ListCardsResponse:
    items = service.list_cards(requester)
    return ListCardsResponse(items=[CardDetailResponse.from_domain(i) for i in items])


@router.post(
    "",
    response_model=CardItem,
    status_code=status.HTTP_201_CREATED,
    summary="카드 생성",
)
def create_card(
    body: CardCreateRequest,
    requester: Annotated[Requester, Depends(get_requester)],
    service: Annotated[CardService, Depends(get_card_service)],
) -> CardItem:
    card = service.create_card(
        requester,
        title=body.title,
        credits_needed=body.credits_needed,
        expiration_policy=body.expiration_policy,
    )
    return CardItem.from_domain(card)


@router.get("/{card_id}", response_model=CardDetailResponse, summary="카드 상세 + 통계")
def get_card(
    card_id: str,
    requester: Annotated[Requester, Depends(get_requester)],
    service: Annotated[CardService, Depends(get_card_service)],
) -> CardDetailResponse:
    return CardDetailResponse.from_domain(service.get_card(requester, card_id))


@router.patch("/{card_id}", response_model=CardItem, summary="카드 수정")
def update_card(
    card_id: str,
    body: CardUpdateRequest,
    requester: Annotated[Requester, Depends(get_requester)],
    service: Annotated[CardService, Depends(get_card_service)],
) -> CardItem:
    card = service.update_card(requester, card_id, body.model_dump(exclude_unset=True))
    return CardItem.from_domain(card)


@router.delete("/{card_id}", summary="카드 삭제 (소프트 삭제)")
def delete_card(
    card_id: str,
    requester: Annotated[Requester, Depends(get_requester)],
    service: Annotated[CardService, Depends(get_card_service)],
) -> dict[str, str]:
    service.delete_card(requester, card_id)
    return {"message": "card_deleted"}

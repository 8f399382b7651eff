"""요청자 식별 정보와 권한(capability) 검사.

역할(role) 분기는 이 모듈에만 두고, 원장 로직은 can_* 결과만 사용한다.
"""

from __future__ import annotations

from enum import StrEnum
from typing import cast

from pydantic import BaseModel

from .exceptions import ForbiddenError
from .models.card import Card


class RequesterRole(StrEnum):
    COMPANY = "company"
    CONSUMER = "consumer"


class Requester(BaseModel):
    """게이트웨이가 인증 후 넘겨주는 요청자 정보."""

    user_id: str
    role: RequesterRole
    company_id: str | None = None

    @property
    def is_company(self) -> bool:
        return self.role == RequesterRole.COMPANY and bool(self.company_id)


def require_company(requester: Requester) -> str:
    """회사 소속 요청자만 허용하고 company_id 를 반환한다."""

    if not requester.is_company:
        raise ForbiddenError(
            "operation requires a company requester",
            user_id=requester.user_id,
            role=str(requester.role),
        )
    return cast(str, requester.company_id)


def can_manage(requester: Requester, company_id: str) -> bool:
    return requester.is_company and requester.company_id == company_id


def can_issue(requester: Requester, card: Card) -> bool:
    """회사는 자기 카드에만 크레딧을 지급할 수 있고, 소비자는 어떤 카드든 요청할 수 있다."""

    if requester.role == RequesterRole.CONSUMER:
        return True
    return can_manage(requester, card.company_id)


def can_redeem(company_id: str, card: Card) -> bool:
    return card.company_id == company_id

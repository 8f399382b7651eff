"""게이트웨이가 인증 후 전달하는 요청자 헤더를 Requester 로 변환한다."""

from __future__ import annotations

from fastapi import Header

from ..authorization import Requester, RequesterRole
from ..exceptions import ForbiddenError


def get_requester(
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
    x_company_id: str | None = Header(default=None),
) -> Requester:
    if not x_user_id or not x_user_role:
        raise ForbiddenError("missing requester identity headers")

    try:
        role = RequesterRole(x_user_role.strip().lower())
    except ValueError as exc:
        raise ForbiddenError(
            f"unknown requester role: {x_user_role!r}", user_id=x_user_id
        ) from exc

    return Requester(user_id=x_user_id, role=role, company_id=x_company_id or None)

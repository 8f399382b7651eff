"""회사 자격 확인.

회사가 존재하고 status=available, excluded=false 일 때만 원장 작업을 허용한다.
"""

from __future__ import annotations

import logging

from ..exceptions import NotAvailableError
from ..models.company import Company
from ..repositories.interfaces import CompanyRepositoryInterface


logger = logging.getLogger(__name__)


def ensure_company_available(
    company_repo: CompanyRepositoryInterface, company_id: str
) -> Company:
    """자격이 있는 회사를 반환하고, 아니면 NotAvailableError 를 던진다."""

    company = company_repo.find_one(company_id)
    if company is None:
        reason = "not found"
    elif company.excluded:
        reason = "excluded"
    elif not company.is_eligible:
        reason = str(company.status)
    else:
        return company

    logger.info(
        "company is not available (%s)", reason, extra={"company_id": company_id}
    )
    raise NotAvailableError("company", company_id, reason=reason)

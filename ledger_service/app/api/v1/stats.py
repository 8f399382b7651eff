from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from ...authorization import Requester, require_company
from ...services.stats_service import StatsService, get_stats_service
from ..identity import get_requester
from ..schemas.stats import CompanyStatsResponse


router = APIRouter()


@router.get("", response_model=CompanyStatsResponse, summary="회사 대시보드 통계")
def get_company_stats(
    requester: Annotated[Requester, Depends(get_requester)],
    service: Annotated[StatsService, Depends(get_stats_service)],
) -> CompanyStatsResponse:
    company_id = require_company(requester)
    return CompanyStatsResponse.from_domain(service.company_stats(company_id))

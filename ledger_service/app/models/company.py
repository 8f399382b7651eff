"""회사 도메인 모델.

원장은 회사 정보를 직접 관리하지 않고, 상태(status/excluded)만 읽어 자격을 판단한다.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel


class CompanyStatus(StrEnum):
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"
    PENDING = "pending"


class Company(BaseModel):
    id: str | None = None
    name: str = ""
    status: CompanyStatus = CompanyStatus.AVAILABLE
    excluded: bool = False
    created_at: datetime
    updated_at: datetime

    @property
    def is_eligible(self) -> bool:
        """크레딧 발급/사용/심사를 할 수 있는 회사인지 여부."""
        return self.status == CompanyStatus.AVAILABLE and not self.excluded

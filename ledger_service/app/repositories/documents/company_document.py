"""회사 MongoDB 도큐먼트 (읽기 전용)."""

from __future__ import annotations

from common.mongo.types import BaseDocument, from_object_id

from ...models.company import Company, CompanyStatus


class CompanyDocument(BaseDocument):
    """MongoDB companies 컬렉션 도큐먼트 모델. 자격 판단에 필요한 필드만 읽는다."""

    name: str = ""
    status: str
    excluded: bool = False

    def to_domain(self) -> Company:
        return Company(
            id=from_object_id(self.id),
            name=self.name,
            status=CompanyStatus(self.status),
            excluded=self.excluded,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

from __future__ import annotations

from pymongo.database import Database

from common.mongo.types import parse_object_ids

from ..models.company import Company
from .documents.company_document import CompanyDocument
from .interfaces import CompanyRepositoryInterface


class CompanyRepository(CompanyRepositoryInterface):
    """companies 컬렉션 조회 레이어. 회사 정보의 쓰기는 다른 서비스가 담당한다."""

    PROJECTION = {
        "name": 1,
        "status": 1,
        "excluded": 1,
        "created_at": 1,
        "updated_at": 1,
    }

    def __init__(self, database: Database) -> None:
        self._db = database
        self._col = database["companies"]

    def find_one(self, company_id: str) -> Company | None:
        object_ids = parse_object_ids([company_id])
        if not object_ids:
            return None
        doc = self._col.find_one({"_id": object_ids[0]}, self.PROJECTION)
        if not doc:
            return None
        return CompanyDocument.model_validate(doc).to_domain()

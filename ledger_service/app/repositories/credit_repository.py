"""크레딧 레포지토리 구현체.

크레딧은 카드 단위로 1건씩 저장되며, 모든 상태 변경은 조건부 update_many 로 수행한다.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pymongo.database import Database

from common.mongo.types import ensure_utc_datetime, parse_object_ids

from ..models.credit import Credit, CreditFilter, CreditPatch, UserActivity
from .documents.credit_document import CreditDocument
from .interfaces import CreditRepositoryInterface


class CreditRepository(CreditRepositoryInterface):
    """credits 컬렉션에 대한 MongoDB 접근 레이어."""

    def __init__(self, database: Database) -> None:
        self._db = database
        self._col = database["credits"]

    # --- helpers -----------------------------------------------------------------
    @staticmethod
    def _build_query(flt: CreditFilter) -> dict[str, Any]:
        query: dict[str, Any] = {}
        if flt.ids is not None:
            query["_id"] = {"$in": parse_object_ids(flt.ids)}
        if flt.user_id is not None:
            query["user_id"] = flt.user_id
        if flt.card_id is not None:
            query["card_id"] = flt.card_id
        elif flt.card_ids is not None:
            query["card_id"] = {"$in": list(flt.card_ids)}
        if flt.company_id is not None:
            query["company_id"] = flt.company_id
        if flt.statuses is not None:
            query["status"] = {"$in": [str(s) for s in flt.statuses]}
        if flt.excluded is not None:
            query["excluded"] = flt.excluded
        if flt.created_from is not None:
            query["created_at"] = {"$gte": flt.created_from}
        if flt.requested_from is not None:
            query["requested_at"] = {"$gte": flt.requested_from}
        if flt.redemption_id is not None:
            query["redemption_id"] = flt.redemption_id
        return query

    @staticmethod
    def _build_set(patch: CreditPatch) -> dict[str, Any]:
        changes: dict[str, Any] = {}
        for key, value in patch.model_dump(exclude_unset=True).items():
            changes[key] = value.value if isinstance(value, Enum) else value
        changes["updated_at"] = datetime.now(timezone.utc)
        return changes

    @staticmethod
    def _from_document(doc: dict) -> Credit:
        return CreditDocument.model_validate(doc).to_domain()

    # --- queries -----------------------------------------------------------------
    def find(self, flt: CreditFilter) -> list[Credit]:
        cursor = self._col.find(
            self._build_query(flt),
            sort=[("created_at", 1), ("_id", 1)],
        )
        return [self._from_document(doc) for doc in cursor]

    def find_one(self, flt: CreditFilter) -> Credit | None:
        doc = self._col.find_one(self._build_query(flt))
        if not doc:
            return None
        return self._from_document(doc)

    def latest_credit_by_user(
        self, company_id: str, since: datetime
    ) -> list[UserActivity]:
        pipeline = [
            {
                "$match": {
                    "company_id": company_id,
                    "excluded": False,
                    "created_at": {"$gte": since},
                }
            },
            {"$group": {"_id": "$user_id", "last_credit_at": {"$max": "$created_at"}}},
        ]
        return [
            UserActivity(
                user_id=doc["_id"],
                last_credit_at=ensure_utc_datetime(doc["last_credit_at"]),
            )
            for doc in self._col.aggregate(pipeline)
        ]

    def recent_clients(self, company_id: str, limit: int) -> list[UserActivity]:
        pipeline = [
            {"$match": {"company_id": company_id, "excluded": False}},
            {"$group": {"_id": "$user_id", "last_credit_at": {"$max": "$created_at"}}},
            {"$sort": {"last_credit_at": -1, "_id": 1}},
            {"$limit": limit},
        ]
        return [
            UserActivity(
                user_id=doc["_id"],
                last_credit_at=ensure_utc_datetime(doc["last_credit_at"]),
            )
            for doc in self._col.aggregate(pipeline)
        ]

    # --- commands ----------------------------------------------------------------
    def insert_many(self, credits: list[Credit]) -> list[Credit]:
        if not credits:
            return []

        payloads = [CreditDocument.from_domain(c).to_mongo_record() for c in credits]
        # ordered=True: 중간 실패 시 이후 문서는 쓰지 않는다.
        result = self._col.insert_many(payloads, ordered=True)
        return [
            credit.model_copy(update={"id": str(inserted_id)})
            for credit, inserted_id in zip(credits, result.inserted_ids)
        ]

    def update_many(self, flt: CreditFilter, patch: CreditPatch) -> int:
        query = self._build_query(flt)
        if not query:
            raise ValueError("refusing to update credits without a filter")

        result = self._col.update_many(query, {"$set": self._build_set(patch)})
        return result.modified_count

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pymongo import ReturnDocument
from pymongo.database import Database

from common.mongo.types import parse_object_ids

from ..models.card import Card, CardFilter, CardPatch
from .documents.card_document import CardDocument
from .interfaces import CardRepositoryInterface


class CardRepository(CardRepositoryInterface):
    """cards 컬렉션에 대한 MongoDB 접근 레이어."""

    def __init__(self, database: Database) -> None:
        self._db = database
        self._col = database["cards"]

    # --- helpers -----------------------------------------------------------------
    @staticmethod
    def _build_query(flt: CardFilter) -> dict[str, Any]:
        query: dict[str, Any] = {}
        if flt.ids is not None:
            query["_id"] = {"$in": parse_object_ids(flt.ids)}
        if flt.company_id is not None:
            query["company_id"] = flt.company_id
        if flt.statuses is not None:
            query["status"] = {"$in": [str(s) for s in flt.statuses]}
        if flt.excluded is not None:
            query["excluded"] = flt.excluded
        return query

    @staticmethod
    def _from_document(doc: dict) -> Card:
        return CardDocument.model_validate(doc).to_domain()

    # --- queries -----------------------------------------------------------------
    def find_one(self, flt: CardFilter) -> Card | None:
        doc = self._col.find_one(self._build_query(flt))
        if not doc:
            return None
        return self._from_document(doc)

    def list(self, flt: CardFilter) -> list[Card]:
        cursor = self._col.find(
            self._build_query(flt),
            sort=[("created_at", 1), ("_id", 1)],
        )
        return [self._from_document(doc) for doc in cursor]

    # --- commands ----------------------------------------------------------------
    def insert(self, card: Card) -> Card:
        payload = CardDocument.from_domain(card).to_mongo_record()
        result = self._col.insert_one(payload)
        return card.model_copy(update={"id": str(result.inserted_id)})

    def update(self, flt: CardFilter, patch: CardPatch) -> Card | None:
        changes = patch.model_dump(exclude_unset=True, mode="json")
        changes["updated_at"] = datetime.now(timezone.utc)

        doc = self._col.find_one_and_update(
            self._build_query(flt),
            {"$set": changes},
            return_document=ReturnDocument.AFTER,
        )
        if not doc:
            return None
        return self._from_document(doc)

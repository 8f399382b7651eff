from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field
from pydantic.functional_validators import BeforeValidator
from typing_extensions import Annotated


def ensure_utc_datetime(value: Any) -> Any:
    """datetime 을 UTC 로 정규화한다.

    - tzinfo 가 없으면 (tz_aware=False 로 읽은 값 등) UTC 로 간주한다.
    - 문자열이면 ISO8601 로 파싱한 뒤 정규화한다.
    - None 은 그대로 둔다 (nullable 필드용).
    """

    if value is None:
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if not isinstance(value, datetime):
        return value
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_object_id(value: Any) -> ObjectId:
    """str / ObjectId 를 MongoDB ObjectId 로 변환한다."""

    if isinstance(value, ObjectId):
        return value
    if value is None:
        raise TypeError("ObjectId cannot be None")
    return ObjectId(str(value))


def from_object_id(value: Optional[ObjectId]) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def parse_object_ids(values: Iterable[Any]) -> list[ObjectId]:
    """유효한 값만 ObjectId 로 변환한다.

    형식이 잘못된 id 는 어떤 도큐먼트와도 매칭될 수 없으므로 조용히 제외한다.
    호출 측은 "조회 결과 없음" 으로 동일하게 처리하면 된다.
    """

    result: list[ObjectId] = []
    for value in values:
        if isinstance(value, ObjectId):
            result.append(value)
        elif value is not None and ObjectId.is_valid(str(value)):
            result.append(ObjectId(str(value)))
    return result


PyObjectId = Annotated[ObjectId, BeforeValidator(to_object_id)]
MongoDateTime = Annotated[datetime, BeforeValidator(ensure_utc_datetime)]
OptionalMongoDateTime = Annotated[Optional[datetime], BeforeValidator(ensure_utc_datetime)]


class BaseDocument(BaseModel):
    """MongoDB 도큐먼트 공통 베이스 모델.

    - _id <-> id alias 를 지원한다.
    - created_at / updated_at 은 모든 원장 도큐먼트에 존재한다.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, populate_by_name=True)

    id: Optional[PyObjectId] = Field(default=None, alias="_id")
    created_at: MongoDateTime
    updated_at: MongoDateTime

    def to_mongo_record(self) -> dict[str, Any]:
        """insert 용 dict 로 직렬화한다.

        _id 가 None 이면 제외해 MongoDB 가 ObjectId 를 생성하게 한다.
        나머지 None 값(requested_at 등)은 null 로 저장해 필드 형태를 일정하게 유지한다.
        """

        record = self.model_dump(by_alias=True, mode="python")
        if record.get("_id") is None:
            record.pop("_id", None)
        return record

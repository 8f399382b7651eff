from __future__ import annotations

import os


MONGO_URI_ENV = "MONGO_URI"
MONGO_DB_NAME_ENV = "MONGO_DB_NAME"
MONGO_TZ_AWARE_ENV = "MONGO_TZ_AWARE"


def get_mongo_uri() -> str:
    """MongoDB 연결 URI 를 환경 변수에서 읽는다.

    설정되지 않았으면 서비스가 기동 단계에서 바로 실패하도록 RuntimeError 를 던진다.
    """

    value = os.getenv(MONGO_URI_ENV, "").strip()
    if not value:
        raise RuntimeError(
            f"{MONGO_URI_ENV} environment variable is required for MongoDB",
        )
    return value


def get_mongo_db_name() -> str | None:
    """사용할 데이터베이스 이름. 없으면 None 이고 URI 의 기본 DB 를 쓴다."""

    value = os.getenv(MONGO_DB_NAME_ENV, "").strip()
    return value or None


def get_mongo_tz_aware() -> bool:
    """pymongo 가 tz-aware datetime 을 돌려주도록 할지 여부 (기본 True)."""

    value = os.getenv(MONGO_TZ_AWARE_ENV, "true").strip().lower()
    return value not in {"0", "false", "no", "off"}

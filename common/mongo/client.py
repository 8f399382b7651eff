from __future__ import annotations

import logging
import threading
from typing import Optional, cast

from pymongo import ASCENDING, DESCENDING, IndexModel, MongoClient
from pymongo.database import Database

from .config import get_mongo_db_name, get_mongo_tz_aware, get_mongo_uri


logger = logging.getLogger(__name__)


_client: Optional[MongoClient] = None
_db: Optional[Database] = None
_lock = threading.Lock()


def get_client() -> MongoClient:
    """프로세스 전역 MongoClient 를 반환한다.

    - MONGO_URI 로 접속하고 ping 으로 연결을 확인한다.
    - MONGO_DB_NAME 또는 URI 의 기본 DB 가 없으면 실패한다.
    - cards / credits 컬렉션 인덱스를 최초 1회 보장한다.
    """

    global _client, _db

    if _client is not None:
        return _client

    with _lock:
        if _client is not None:
            return _client

        client = MongoClient(get_mongo_uri(), tz_aware=get_mongo_tz_aware())

        try:
            client.admin.command("ping")
        except Exception as exc:  # noqa: BLE001
            client.close()
            raise RuntimeError(f"failed to connect to MongoDB: {exc}") from exc

        db_name = get_mongo_db_name()
        try:
            db = client[db_name] if db_name else client.get_default_database()
        except Exception as exc:  # noqa: BLE001
            client.close()
            raise RuntimeError(
                "MongoDB database name must be specified via MONGO_DB_NAME or in MONGO_URI (mongodb://.../db_name)",
            ) from exc

        try:
            ensure_indexes(db)
        except Exception as exc:  # noqa: BLE001
            client.close()
            logger.error("failed to ensure MongoDB indexes: %s", exc)
            raise

        _client = client
        _db = db

        logger.info(
            "MongoDB connected and indexes ensured (db=%s)",
            cast(Database, _db).name,
        )
        return _client


def get_database() -> Database:
    """전역 기본 Database 객체를 반환한다. FastAPI Depends 로도 사용한다."""

    if _db is None:
        get_client()
    assert _db is not None  # get_client 가 실패했다면 이미 예외가 발생했다.
    return _db


def close_client() -> None:
    """앱 종료 시 커넥션 풀을 닫는다."""

    global _client, _db

    with _lock:
        if _client is not None:
            _client.close()
        _client = None
        _db = None


def ensure_indexes(db: Database) -> None:
    """원장 컬렉션 인덱스를 만든다. 이미 있으면 MongoDB 가 무시하므로 idempotent 하다.

    만료된 크레딧도 통계/이력에 남아야 하므로 expires_at 에 TTL 을 걸지 않는다.
    """

    db["cards"].create_indexes(
        [
            IndexModel(
                [("company_id", ASCENDING), ("status", ASCENDING), ("excluded", ASCENDING)],
                name="idx_company_status_excluded",
            ),
            IndexModel(
                [("company_id", ASCENDING), ("excluded", ASCENDING)],
                name="idx_company_excluded",
            ),
        ]
    )

    db["credits"].create_indexes(
        [
            IndexModel(
                [("user_id", ASCENDING), ("status", ASCENDING), ("excluded", ASCENDING)],
                name="idx_user_status_excluded",
            ),
            IndexModel(
                [
                    ("user_id", ASCENDING),
                    ("card_id", ASCENDING),
                    ("status", ASCENDING),
                    ("created_at", ASCENDING),
                ],
                name="idx_user_card_status_created",
            ),
            IndexModel([("card_id", ASCENDING)], name="idx_card"),
            IndexModel([("expires_at", ASCENDING)], name="idx_expires_at"),
            IndexModel(
                [("company_id", ASCENDING), ("excluded", ASCENDING), ("created_at", DESCENDING)],
                name="idx_company_excluded_created",
            ),
            IndexModel(
                [("company_id", ASCENDING), ("excluded", ASCENDING), ("status", ASCENDING)],
                name="idx_company_excluded_status",
            ),
            IndexModel(
                [("redemption_id", ASCENDING)],
                name="idx_redemption_id",
                sparse=True,
            ),
        ]
    )

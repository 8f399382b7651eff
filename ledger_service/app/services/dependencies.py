from __future__ import annotations

from fastapi import Depends
from pymongo.database import Database

from common.mongo.client import get_database

from ..config import LedgerConfig, load_config
from ..repositories.card_repository import CardRepository
from ..repositories.company_repository import CompanyRepository
from ..repositories.credit_repository import CreditRepository
from ..repositories.interfaces import (
    CardRepositoryInterface,
    CompanyRepositoryInterface,
    CreditRepositoryInterface,
)


def get_ledger_config() -> LedgerConfig:
    """FastAPI DI용 설정 팩토리 (config.yaml 은 프로세스당 한 번만 읽는다)."""

    return load_config()


def get_card_repository(
    db: Database = Depends(get_database),
) -> CardRepositoryInterface:
    """FastAPI DI용 CardRepository 팩토리."""

    return CardRepository(db)


def get_credit_repository(
    db: Database = Depends(get_database),
) -> CreditRepositoryInterface:
    """FastAPI DI용 CreditRepository 팩토리."""

    return CreditRepository(db)


def get_company_repository(
    db: Database = Depends(get_database),
) -> CompanyRepositoryInterface:
    """FastAPI DI용 CompanyRepository 팩토리."""

    return CompanyRepository(db)

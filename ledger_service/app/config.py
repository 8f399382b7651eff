from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml


DEFAULT_CONFIG_FILE_NAME = "config.yaml"

DEFAULT_REDEMPTION_MAX_ATTEMPTS = 3
DEFAULT_RECENT_CLIENTS_LIMIT = 5


@dataclass(slots=True)
class RedemptionConfig:
    # 동시 사용(redeem) 충돌 시 선택부터 다시 시도하는 최대 횟수
    max_attempts: int = DEFAULT_REDEMPTION_MAX_ATTEMPTS


@dataclass(slots=True)
class StatsConfig:
    recent_clients_limit: int = DEFAULT_RECENT_CLIENTS_LIMIT


@dataclass(slots=True)
class LedgerConfig:
    """ledger-service 설정 루트 (config.yaml 의 ledger 섹션)."""

    redemption: RedemptionConfig = field(default_factory=RedemptionConfig)
    stats: StatsConfig = field(default_factory=StatsConfig)


def _find_config_path() -> Path:
    """현재 작업 디렉토리부터 상위로 올라가며 config.yaml 을 찾는다."""

    current = Path.cwd()
    for directory in (current, *current.parents):
        candidate = directory / DEFAULT_CONFIG_FILE_NAME
        if candidate.is_file():
            return candidate

    raise RuntimeError(
        f"{DEFAULT_CONFIG_FILE_NAME} not found. Place config.yaml in project root.",
    )


def _positive_int(section: dict[str, Any], key: str, default: int, path: Path) -> int:
    raw = section.get(key, default)
    try:
        value = int(raw)
    except (TypeError, ValueError) as exc:  # noqa: TRY003
        raise RuntimeError(f"invalid ledger config {key} in {path}: {raw!r}") from exc
    if value <= 0:
        raise RuntimeError(f"ledger config {key} in {path} must be positive: {raw!r}")
    return value


def parse_ledger_config(data: dict[str, Any], path: Path) -> LedgerConfig:
    ledger = data.get("ledger") or {}
    redemption = ledger.get("redemption") or {}
    stats = ledger.get("stats") or {}

    return LedgerConfig(
        redemption=RedemptionConfig(
            max_attempts=_positive_int(
                redemption, "max_attempts", DEFAULT_REDEMPTION_MAX_ATTEMPTS, path
            ),
        ),
        stats=StatsConfig(
            recent_clients_limit=_positive_int(
                stats, "recent_clients_limit", DEFAULT_RECENT_CLIENTS_LIMIT, path
            ),
        ),
    )


@lru_cache(maxsize=1)
def load_config() -> LedgerConfig:
    """config.yaml 을 읽어 LedgerConfig 로 반환한다. 프로세스당 한 번만 읽는다."""

    path = _find_config_path()
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    return parse_ledger_config(data, path)

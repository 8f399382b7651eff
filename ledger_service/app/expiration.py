"""크레딧 만료 시각 계산.

만료 정책은 {amount, unit} 형태의 상대 기간이며, 달력 기준으로 더한다.
(1월 31일 + 1개월 = 2월 말일. 고정 길이 timedelta 가 아니다.)
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from dateutil.relativedelta import relativedelta

from .exceptions import ConfigurationError
from .models.card import ExpirationPolicy, ExpirationUnit


_UNIT_TO_RELATIVEDELTA_KWARG: dict[ExpirationUnit, str] = {
    ExpirationUnit.DAY: "days",
    ExpirationUnit.MONTH: "months",
    ExpirationUnit.YEAR: "years",
}


def compute_expiration(
    issued_at: datetime, policy: ExpirationPolicy | Mapping[str, Any]
) -> datetime:
    """issued_at 에 정책 기간을 더한 절대 만료 시각을 반환한다.

    단위가 잘못되었거나 amount 가 양의 정수가 아니면 ConfigurationError.
    """

    amount, unit = _unpack_policy(policy)
    return issued_at + relativedelta(**{_UNIT_TO_RELATIVEDELTA_KWARG[unit]: amount})


def _unpack_policy(
    policy: ExpirationPolicy | Mapping[str, Any],
) -> tuple[int, ExpirationUnit]:
    if isinstance(policy, ExpirationPolicy):
        return policy.amount, policy.unit

    if not isinstance(policy, Mapping):
        raise ConfigurationError(f"invalid expiration policy: {policy!r}")

    raw_unit = policy.get("unit")
    try:
        unit = ExpirationUnit(raw_unit)
    except ValueError as exc:
        raise ConfigurationError(
            f"invalid expiration unit: {raw_unit!r}", unit=raw_unit
        ) from exc

    amount = policy.get("amount")
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise ConfigurationError(
            f"invalid expiration amount: {amount!r}", amount=amount
        )

    return amount, unit

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from ledger_service.app.exceptions import ConfigurationError
from ledger_service.app.expiration import compute_expiration
from ledger_service.app.models.card import ExpirationPolicy, ExpirationUnit


def test_month_addition_clamps_to_end_of_february() -> None:
    issued_at = datetime(2023, 1, 31, 9, 30, tzinfo=timezone.utc)

    expires_at = compute_expiration(
        issued_at, ExpirationPolicy(amount=1, unit=ExpirationUnit.MONTH)
    )

    assert expires_at == datetime(2023, 2, 28, 9, 30, tzinfo=timezone.utc)


def test_month_addition_uses_leap_day() -> None:
    issued_at = datetime(2024, 1, 31, tzinfo=timezone.utc)

    expires_at = compute_expiration(issued_at, {"amount": 1, "unit": "month"})

    assert expires_at == datetime(2024, 2, 29, tzinfo=timezone.utc)


def test_day_and_year_units() -> None:
    issued_at = datetime(2024, 2, 29, tzinfo=timezone.utc)

    assert compute_expiration(issued_at, {"amount": 10, "unit": "day"}) == datetime(
        2024, 3, 10, tzinfo=timezone.utc
    )
    assert compute_expiration(issued_at, {"amount": 1, "unit": "year"}) == datetime(
        2025, 2, 28, tzinfo=timezone.utc
    )


@pytest.mark.parametrize(
    "policy",
    [
        {"amount": 1, "unit": "week"},
        {"amount": 0, "unit": "day"},
        {"amount": -2, "unit": "month"},
        {"amount": True, "unit": "day"},
        {"amount": "3", "unit": "day"},
        {"unit": "day"},
        "30d",
    ],
)
def test_invalid_policy_raises_configuration_error(policy) -> None:
    with pytest.raises(ConfigurationError):
        compute_expiration(datetime(2024, 1, 1, tzinfo=timezone.utc), policy)

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

import pytest

from ledger_service.app.authorization import Requester, RequesterRole
from ledger_service.app.exceptions import ForbiddenError, ValidationError
from ledger_service.app.expiration import compute_expiration
from ledger_service.app.models.card import CardStatus, ExpirationUnit
from ledger_service.app.models.company import CompanyStatus
from ledger_service.app.models.credit import CreditStatus, IssueRequest
from ledger_service.app.services.issuance_service import IssuanceService
from ledger_service.tests.fakes import (
    COMPANY_ID,
    CONSUMER_ID,
    NOW,
    OTHER_COMPANY_ID,
    FakeCardRepository,
    FakeCompanyRepository,
    FakeCreditRepository,
    build_card,
    company_requester,
    consumer_requester,
)


@dataclass
class IssuanceFixture:
    service: IssuanceService
    card_repo: FakeCardRepository
    credit_repo: FakeCreditRepository
    company_repo: FakeCompanyRepository


def _build_fixture() -> IssuanceFixture:
    card_repo = FakeCardRepository(
        [
            build_card(card_id="card-001", amount=1, unit=ExpirationUnit.MONTH),
            build_card(card_id="card-002", amount=7, unit=ExpirationUnit.DAY),
            build_card(card_id="card-other", company_id=OTHER_COMPANY_ID),
            build_card(card_id="card-deleted", excluded=True, status=CardStatus.UNAVAILABLE),
            build_card(card_id="card-paused", status=CardStatus.UNAVAILABLE),
        ]
    )
    credit_repo = FakeCreditRepository()
    company_repo = FakeCompanyRepository()
    return IssuanceFixture(
        service=IssuanceService(card_repo, credit_repo, company_repo),
        card_repo=card_repo,
        credit_repo=credit_repo,
        company_repo=company_repo,
    )


def test_company_issues_quantity_credits_with_policy_expiration() -> None:
    fixture = _build_fixture()

    result = fixture.service.issue_credits(
        company_requester(),
        CONSUMER_ID,
        [IssueRequest(card_id="card-001", quantity=3)],
        now=NOW,
    )

    assert result.created_count == 3
    assert len(result.credit_ids) == 3
    credits = list(fixture.credit_repo.credits.values())
    expected_expiry = compute_expiration(NOW, {"amount": 1, "unit": "month"})
    for credit in credits:
        assert credit.status == CreditStatus.AVAILABLE
        assert credit.user_id == CONSUMER_ID
        assert credit.card_id == "card-001"
        assert credit.company_id == "company-001"
        assert credit.excluded is False
        assert credit.expires_at == expected_expiry
        assert credit.created_at == NOW
    assert fixture.credit_repo.insert_many_calls == 1


def test_batch_uses_each_card_policy_and_single_insert() -> None:
    fixture = _build_fixture()

    result = fixture.service.issue_credits(
        company_requester(),
        CONSUMER_ID,
        [
            {"card_id": "card-001", "quantity": 1},
            {"card_id": "card-002", "quantity": 2},
        ],
        now=NOW,
    )

    assert result.created_count == 3
    assert fixture.credit_repo.insert_many_calls == 1
    by_card = {}
    for credit in fixture.credit_repo.credits.values():
        by_card.setdefault(credit.card_id, []).append(credit.expires_at)
    assert by_card["card-001"] == [compute_expiration(NOW, {"amount": 1, "unit": "month"})]
    assert by_card["card-002"] == [compute_expiration(NOW, {"amount": 7, "unit": "day"})] * 2



def test_month_policy_on_january_31_clamps_to_end_of_february() -> None:
    fixture = _build_fixture()
    issued_at = datetime(2023, 1, 31, 9, 30, tzinfo=timezone.utc)

    fixture.service.issue_credits(
        company_requester(),
        CONSUMER_ID,
        [IssueRequest(card_id="card-001", quantity=1)],
        now=issued_at,
    )

    (credit,) = fixture.credit_repo.credits.values()
    assert credit.expires_at == datetime(2023, 2, 28, 9, 30, tzinfo=timezone.utc)

@pytest.mark.parametrize(
    "requests",
    [
        [],
        [{"card_id": "card-001", "quantity": 0}],
        [{"card_id": "card-001", "quantity": -1}],
        [{"card_id": "card-001", "quantity": True}],
        [{"card_id": "card-001", "quantity": "2"}],
        [{"card_id": "  ", "quantity": 1}],
        [{"quantity": 1}],
    ],
)
def test_malformed_requests_raise_validation_error(requests) -> None:
    fixture = _build_fixture()

    with pytest.raises(ValidationError):
        fixture.service.issue_credits(company_requester(), CONSUMER_ID, requests, now=NOW)

    assert fixture.credit_repo.credits == {}
    assert fixture.credit_repo.insert_many_calls == 0


@pytest.mark.parametrize("card_id", ["card-unknown", "card-other", "card-deleted", "card-paused"])
def test_unusable_card_fails_whole_batch(card_id: str) -> None:
    fixture = _build_fixture()

    with pytest.raises(ValidationError) as exc_info:
        fixture.service.issue_credits(
            company_requester(),
            CONSUMER_ID,
            [
                {"card_id": "card-001", "quantity": 2},
                {"card_id": card_id, "quantity": 1},
            ],
            now=NOW,
        )

    assert exc_info.value.context["card_id"] == card_id
    assert fixture.credit_repo.credits == {}


def test_missing_user_id_is_rejected() -> None:
    fixture = _build_fixture()

    with pytest.raises(ValidationError):
        fixture.service.issue_credits(
            company_requester(), "", [{"card_id": "card-001"}], now=NOW
        )


def test_company_requester_without_company_is_forbidden() -> None:
    fixture = _build_fixture()
    requester = Requester(user_id="owner-001", role=RequesterRole.COMPANY)

    with pytest.raises(ForbiddenError):
        fixture.service.issue_credits(
            requester, CONSUMER_ID, [{"card_id": "card-001"}], now=NOW
        )


def test_consumer_request_creates_single_pending_credit() -> None:
    fixture = _build_fixture()

    result = fixture.service.request_credit(consumer_requester(), "card-other", now=NOW)

    assert result.created_count == 1
    (credit,) = fixture.credit_repo.credits.values()
    assert credit.status == CreditStatus.PENDING
    assert credit.user_id == CONSUMER_ID
    assert credit.company_id == OTHER_COMPANY_ID


def test_consumer_cannot_request_for_another_user() -> None:
    fixture = _build_fixture()

    with pytest.raises(ForbiddenError):
        fixture.service.issue_credits(
            consumer_requester(), "user-999", [{"card_id": "card-001"}], now=NOW
        )

    assert fixture.credit_repo.credits == {}


def test_consumer_cannot_request_more_than_one_credit() -> None:
    fixture = _build_fixture()

    with pytest.raises(ValidationError):
        fixture.service.issue_credits(
            consumer_requester(),
            CONSUMER_ID,
            [{"card_id": "card-001", "quantity": 2}],
            now=NOW,
        )


def test_consumer_cannot_request_on_unusable_card() -> None:
    fixture = _build_fixture()

    with pytest.raises(ValidationError):
        fixture.service.request_credit(consumer_requester(), "card-paused", now=NOW)


def test_company_cannot_use_consumer_request_path() -> None:
    fixture = _build_fixture()

    with pytest.raises(ForbiddenError):
        fixture.service.request_credit(company_requester(), "card-001", now=NOW)


@pytest.mark.parametrize(
    "state",
    [
        {"status": CompanyStatus.UNAVAILABLE},
        {"status": CompanyStatus.PENDING},
        {"excluded": True},
    ],
)
def test_company_out_of_service_cannot_issue(state) -> None:
    fixture = _build_fixture()
    fixture.company_repo.set_state(COMPANY_ID, **state)

    with pytest.raises(ValidationError) as exc_info:
        fixture.service.issue_credits(
            company_requester(), CONSUMER_ID, [{"card_id": "card-001"}], now=NOW
        )

    assert exc_info.value.context["company_id"] == COMPANY_ID
    assert fixture.credit_repo.insert_many_calls == 0


def test_unknown_company_cannot_issue() -> None:
    fixture = _build_fixture()
    del fixture.company_repo.companies[COMPANY_ID]

    with pytest.raises(ValidationError):
        fixture.service.issue_credits(
            company_requester(), CONSUMER_ID, [{"card_id": "card-001"}], now=NOW
        )

    assert fixture.credit_repo.credits == {}


def test_consumer_cannot_request_card_of_excluded_company() -> None:
    fixture = _build_fixture()
    fixture.company_repo.set_state(OTHER_COMPANY_ID, excluded=True)

    with pytest.raises(ValidationError) as exc_info:
        fixture.service.request_credit(consumer_requester(), "card-other", now=NOW)

    assert exc_info.value.context["company_id"] == OTHER_COMPANY_ID
    assert fixture.credit_repo.credits == {}

from __future__ import annotations

from dataclasses import dataclass

import pytest
from fastapi.testclient import TestClient

from ledger_service.app.config import LedgerConfig
from ledger_service.app.main import create_app
from ledger_service.app.services.dependencies import (
    get_card_repository,
    get_company_repository,
    get_credit_repository,
    get_ledger_config,
)
from ledger_service.tests.fakes import (
    COMPANY_ID,
    CONSUMER_ID,
    FakeCardRepository,
    FakeCompanyRepository,
    FakeCreditRepository,
    build_card,
)


COMPANY_HEADERS = {
    "X-User-Id": "owner-001",
    "X-User-Role": "company",
    "X-Company-Id": COMPANY_ID,
}
CONSUMER_HEADERS = {"X-User-Id": CONSUMER_ID, "X-User-Role": "consumer"}


@dataclass
class ApiFixture:
    client: TestClient
    card_repo: FakeCardRepository
    credit_repo: FakeCreditRepository
    company_repo: FakeCompanyRepository


@pytest.fixture
def api() -> ApiFixture:
    card_repo = FakeCardRepository([build_card(card_id="card-001", credits_needed=2)])
    credit_repo = FakeCreditRepository()
    company_repo = FakeCompanyRepository()

    app = create_app()
    app.dependency_overrides[get_card_repository] = lambda: card_repo
    app.dependency_overrides[get_credit_repository] = lambda: credit_repo
    app.dependency_overrides[get_company_repository] = lambda: company_repo
    app.dependency_overrides[get_ledger_config] = lambda: LedgerConfig()
    return ApiFixture(
        client=TestClient(app),
        card_repo=card_repo,
        credit_repo=credit_repo,
        company_repo=company_repo,
    )


def _issue(api: ApiFixture, quantity: int):
    return api.client.post(
        f"/api/v1/companies/consumers/{CONSUMER_ID}/credits",
        json={"credits": [{"card_id": "card-001", "quantity": quantity}]},
        headers=COMPANY_HEADERS,
    )


def test_health(api: ApiFixture) -> None:
    response = api.client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_missing_identity_headers_are_forbidden(api: ApiFixture) -> None:
    response = api.client.get("/api/v1/companies/cards")

    assert response.status_code == 403
    assert response.json()["code"] == "forbidden"


def test_issue_then_redeem_flow(api: ApiFixture) -> None:
    issued = _issue(api, 3)
    assert issued.status_code == 201
    assert issued.json()["created_count"] == 3

    redeemed = api.client.post(
        f"/api/v1/companies/consumers/{CONSUMER_ID}/cards/card-001/redeem",
        headers=COMPANY_HEADERS,
    )
    assert redeemed.status_code == 200
    body = redeemed.json()
    assert body["redeemed_credits"] == 2
    assert body["card_title"] == "Free coffee"

    again = api.client.post(
        f"/api/v1/companies/consumers/{CONSUMER_ID}/cards/card-001/redeem",
        headers=COMPANY_HEADERS,
    )
    assert again.status_code == 402
    error = again.json()
    assert error["code"] == "insufficient_credits"
    assert error["context"]["required"] == 2
    assert error["context"]["available"] == 1


def test_consumer_cannot_issue_through_company_route(api: ApiFixture) -> None:
    response = api.client.post(
        f"/api/v1/companies/consumers/{CONSUMER_ID}/credits",
        json={"credits": [{"card_id": "card-001", "quantity": 1}]},
        headers=CONSUMER_HEADERS,
    )

    assert response.status_code == 403
    assert response.json()["code"] == "forbidden"
    assert api.credit_repo.credits == {}


def test_invalid_quantity_is_bad_request(api: ApiFixture) -> None:
    response = _issue(api, 0)

    assert response.status_code == 400
    assert response.json()["code"] == "validation_error"
    assert api.credit_repo.credits == {}


def test_redeem_unknown_card_is_conflict(api: ApiFixture) -> None:
    response = api.client.post(
        f"/api/v1/companies/consumers/{CONSUMER_ID}/cards/card-unknown/redeem",
        headers=COMPANY_HEADERS,
    )

    assert response.status_code == 409
    assert response.json()["code"] == "not_available"


def test_card_crud(api: ApiFixture) -> None:
    created = api.client.post(
        "/api/v1/companies/cards",
        json={
            "title": "Free cake",
            "credits_needed": 5,
            "expiration_policy": {"amount": 1, "unit": "year"},
        },
        headers=COMPANY_HEADERS,
    )
    assert created.status_code == 201
    card_id = created.json()["id"]

    patched = api.client.patch(
        f"/api/v1/companies/cards/{card_id}",
        json={"title": "Free cheesecake"},
        headers=COMPANY_HEADERS,
    )
    assert patched.status_code == 200
    assert patched.json()["title"] == "Free cheesecake"
    assert patched.json()["credits_needed"] == 5

    listed = api.client.get("/api/v1/companies/cards", headers=COMPANY_HEADERS)
    assert {item["card"]["id"] for item in listed.json()["items"]} == {"card-001", card_id}

    deleted = api.client.delete(f"/api/v1/companies/cards/{card_id}", headers=COMPANY_HEADERS)
    assert deleted.status_code == 200

    missing = api.client.get(f"/api/v1/companies/cards/{card_id}", headers=COMPANY_HEADERS)
    assert missing.status_code == 404


def test_consumer_request_and_company_review(api: ApiFixture) -> None:
    requested = api.client.post(
        "/api/v1/users/cards/card-001/request", headers=CONSUMER_HEADERS
    )
    assert requested.status_code == 201
    (credit_id,) = requested.json()["credit_ids"]

    pending = api.client.get("/api/v1/companies/credits", headers=COMPANY_HEADERS)
    assert [item["id"] for item in pending.json()["items"]] == [credit_id]

    reviewed = api.client.patch(
        f"/api/v1/companies/credits/{credit_id}",
        json={"status": "available"},
        headers=COMPANY_HEADERS,
    )
    assert reviewed.status_code == 200
    assert reviewed.json()["status"] == "available"

    progress = api.client.get(
        f"/api/v1/users/companies/{COMPANY_ID}/cards", headers=CONSUMER_HEADERS
    )
    (item,) = progress.json()["items"]
    assert item["card_id"] == "card-001"
    assert item["eligible_credits"] == 1
    assert item["can_redeem"] is False


def test_consumer_cannot_read_company_stats(api: ApiFixture) -> None:
    response = api.client.get("/api/v1/companies/stats", headers=CONSUMER_HEADERS)

    assert response.status_code == 403


def test_company_stats_shape(api: ApiFixture) -> None:
    _issue(api, 3)

    response = api.client.get("/api/v1/companies/stats", headers=COMPANY_HEADERS)

    assert response.status_code == 200
    body = response.json()
    chart = body["credits_given_chart"]
    assert chart["data_key"] == "week"
    assert len(chart["data"]) == 4
    assert chart["total"] == 3
    assert [c["user_id"] for c in body["recent_clients"]] == [CONSUMER_ID]


def test_remove_credit(api: ApiFixture) -> None:
    (credit_id, *_) = _issue(api, 1).json()["credit_ids"]

    removed = api.client.delete(
        f"/api/v1/companies/consumers/{CONSUMER_ID}/credits/{credit_id}",
        headers=COMPANY_HEADERS,
    )
    assert removed.status_code == 200

    again = api.client.delete(
        f"/api/v1/companies/consumers/{CONSUMER_ID}/credits/{credit_id}",
        headers=COMPANY_HEADERS,
    )
    assert again.status_code == 404


def test_excluded_company_cannot_issue_or_redeem(api: ApiFixture) -> None:
    _issue(api, 2)
    api.company_repo.set_state(COMPANY_ID, excluded=True)

    issued = _issue(api, 1)
    assert issued.status_code == 400
    assert issued.json()["context"]["company_id"] == COMPANY_ID

    redeemed = api.client.post(
        f"/api/v1/companies/consumers/{CONSUMER_ID}/cards/card-001/redeem",
        headers=COMPANY_HEADERS,
    )
    assert redeemed.status_code == 409
    assert redeemed.json()["context"]["resource"] == "company"
    assert len(api.credit_repo.credits) == 2

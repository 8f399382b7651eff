from __future__ import annotations

import pytest

from ledger_service.app.authorization import (
    Requester,
    RequesterRole,
    can_issue,
    can_manage,
    can_redeem,
    require_company,
)
from ledger_service.app.exceptions import ForbiddenError
from ledger_service.tests.fakes import (
    COMPANY_ID,
    OTHER_COMPANY_ID,
    build_card,
    company_requester,
    consumer_requester,
)


def test_require_company_returns_company_id() -> None:
    assert require_company(company_requester()) == COMPANY_ID


@pytest.mark.parametrize(
    "requester",
    [
        consumer_requester(),
        Requester(user_id="owner-001", role=RequesterRole.COMPANY),
        Requester(user_id="owner-001", role=RequesterRole.COMPANY, company_id=""),
        Requester(user_id="user-001", role=RequesterRole.CONSUMER, company_id=COMPANY_ID),
    ],
)
def test_require_company_rejects_requesters_without_company(requester) -> None:
    with pytest.raises(ForbiddenError) as exc_info:
        require_company(requester)

    assert exc_info.value.context["user_id"] == requester.user_id


def test_company_capabilities_are_scoped_to_own_company() -> None:
    own = build_card(card_id="card-001")
    other = build_card(card_id="card-other", company_id=OTHER_COMPANY_ID)

    assert can_manage(company_requester(), COMPANY_ID) is True
    assert can_manage(company_requester(), OTHER_COMPANY_ID) is False
    assert can_issue(company_requester(), own) is True
    assert can_issue(company_requester(), other) is False
    assert can_issue(consumer_requester(), other) is True
    assert can_redeem(COMPANY_ID, own) is True
    assert can_redeem(COMPANY_ID, other) is False

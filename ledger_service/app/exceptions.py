from __future__ import annotations

from typing import Any


class LedgerError(Exception):
    """Base exception for all ledger errors.

    ``code`` is a stable machine-readable tag and ``context`` carries the
    values a caller needs to render its own message.
    """

    code = "ledger_error"

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context: dict[str, Any] = context


class ValidationError(LedgerError):
    """Malformed or missing input (zero quantity, unknown card reference...)."""

    code = "validation_error"

    def __init__(self, message: str, *, field: str | None = None, **context: Any) -> None:
        if field is not None:
            context["field"] = field
        super().__init__(message, **context)
        self.field = field


class NotFoundError(LedgerError):
    """The referenced resource does not exist for the requester."""

    code = "not_found"

    def __init__(self, resource: str, resource_id: str | None = None) -> None:
        super().__init__(
            f"{resource} not found", resource=resource, resource_id=resource_id
        )
        self.resource = resource
        self.resource_id = resource_id


class ForbiddenError(LedgerError):
    """The requester lacks the capability for the operation."""

    code = "forbidden"


class NotAvailableError(LedgerError):
    """A card, credit or company is not in an eligible state."""

    code = "not_available"

    def __init__(
        self, resource: str, resource_id: str | None = None, *, reason: str | None = None
    ) -> None:
        message = f"{resource} is not available"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(
            message, resource=resource, resource_id=resource_id, reason=reason
        )
        self.resource = resource
        self.resource_id = resource_id


class InsufficientCreditsError(LedgerError):
    """Redemption eligibility not met.

    ``conflict`` is True when the shortfall was caused by a concurrent
    redemption consuming the selected credits; retrying later is safe.
    """

    code = "insufficient_credits"

    def __init__(
        self, card_id: str, required: int, available: int, *, conflict: bool = False
    ) -> None:
        if conflict:
            message = (
                f"credits for card {card_id} were consumed concurrently "
                f"(required {required}, matched {available})"
            )
        else:
            message = (
                f"card {card_id} requires {required} credits, {available} eligible"
            )
        super().__init__(
            message,
            card_id=card_id,
            required=required,
            available=available,
            conflict=conflict,
        )
        self.card_id = card_id
        self.required = required
        self.available = available
        self.conflict = conflict


class ConfigurationError(LedgerError):
    """Invalid stored configuration such as an unknown expiration unit. A defect."""

    code = "configuration_error"

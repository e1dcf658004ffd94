"""Payment gateway port (abstract interface).

Defines the contract that all payment gateway adapters must implement.
This enables swapping between FakeGateway (dev/test) and StripeGateway
(production) without changing any domain or application code.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum

_CURRENCY = re.compile(r"^[a-z]{3}$")


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------
class GatewayError(Exception):
    """Base class for failures talking to the payment provider.

    ``ids`` names the order or session the failed call was about; callers
    that know more attach it with ``bind`` before re-raising.
    """

    code = "GatewayError"

    def __init__(self, message: str = "", **ids) -> None:
        super().__init__(message)
        self.ids = {key: str(value) for key, value in ids.items() if value is not None}

    def bind(self, **ids) -> "GatewayError":
        for key, value in ids.items():
            if value is not None:
                self.ids.setdefault(key, str(value))
        return self

    def context(self) -> dict:
        return dict(self.ids)


class NotConfigured(GatewayError):
    """No provider credentials are set for this deployment."""

    code = "NotConfigured"


class GatewayRejected(GatewayError):
    """The provider (or local validation) refused the request."""

    code = "GatewayRejected"


class GatewayUnavailable(GatewayError):
    """Transport failure, timeout or provider outage. Safe to retry."""

    code = "GatewayUnavailable"


class UnknownSession(GatewayError):
    """The provider has no session with the given id."""

    code = "UnknownSession"

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Provider has no session {session_id}", session_id=session_id)
        self.session_id = session_id


# ---------------------------------------------------------------------------
# Value types
# ---------------------------------------------------------------------------
class SessionOutcome(Enum):
    COMPLETED = "completed"
    FAILED = "failed"
    PENDING = "pending"


@dataclass(frozen=True)
class LineItem:
    """A line shown on the hosted checkout page."""

    name: str
    description: str
    unit_amount: int  # minor currency units
    currency: str
    quantity: int


@dataclass(frozen=True)
class SessionHandle:
    """Result of creating a hosted checkout session."""

    session_id: str
    redirect_url: str


@dataclass(frozen=True)
class SessionStatus:
    """Canonical status of a session, as last observed from the provider."""

    session_id: str
    outcome: SessionOutcome
    metadata: dict = field(default_factory=dict)


def validate_line_items(items: list[LineItem]) -> None:
    """Reject line items the provider would refuse, before any network call."""
    if not items:
        raise GatewayRejected("At least one line item is required")
    for index, item in enumerate(items):
        if not item.name or not item.name.strip():
            raise GatewayRejected(f"Line item {index} has no name")
        if not isinstance(item.unit_amount, int) or item.unit_amount <= 0:
            raise GatewayRejected(f"Line item {index} has a non-positive amount: {item.unit_amount}")
        if not isinstance(item.quantity, int) or item.quantity <= 0:
            raise GatewayRejected(f"Line item {index} has a non-positive quantity: {item.quantity}")
        if not _CURRENCY.match(item.currency or ""):
            raise GatewayRejected(f"Line item {index} has an invalid currency: {item.currency!r}")


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def is_configured(self) -> bool:
        """Whether provider credentials are available."""
        ...

    @abstractmethod
    def create_session(
        self,
        order_id: str,
        items: list[LineItem],
        success_url: str,
        cancel_url: str,
        idempotency_key: str | None = None,
    ) -> SessionHandle:
        """Create a hosted checkout session for an order."""
        ...

    @abstractmethod
    def query_session_status(self, session_id: str) -> SessionStatus:
        """Fetch the provider's current view of a session."""
        ...

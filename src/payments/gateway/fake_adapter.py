"""Configurable fake payment gateway for development and testing.

This adapter simulates a hosted checkout provider without any external
calls. Sessions live in memory and stay pending until a test completes or
fails them, which makes reconciliation scenarios deterministic:
- Automated tests with predictable outcomes
- Manual API testing without real provider credentials
- Simulating provider outages via ``should_fail_transport``
"""

import threading
from uuid import uuid4

from payments.configuration import PaymentConfiguration
from payments.gateway.port import (
    GatewayUnavailable,
    LineItem,
    NotConfigured,
    PaymentGateway,
    SessionHandle,
    SessionOutcome,
    SessionStatus,
    UnknownSession,
    validate_line_items,
)


class FakeGateway(PaymentGateway):
    """In-memory hosted checkout provider."""

    base_url = "https://checkout.fake-gateway.example.com/pay"

    def __init__(self, configuration: PaymentConfiguration | None = None) -> None:
        self.configuration = configuration or PaymentConfiguration()
        self.should_fail_transport: bool = False
        self.calls: list[dict] = []
        self._sessions: dict[str, dict] = {}
        self._by_idempotency_key: dict[str, str] = {}
        self._lock = threading.Lock()

    def configure(self, should_fail_transport: bool) -> None:
        """Configure gateway behavior at runtime."""
        self.should_fail_transport = should_fail_transport

    def is_configured(self) -> bool:
        return self.configuration.is_configured()

    def _ensure_reachable(self) -> None:
        if not self.is_configured():
            raise NotConfigured("Payment provider credentials are not set")
        if self.should_fail_transport:
            raise GatewayUnavailable("Fake gateway is simulating an outage")

    def create_session(
        self,
        order_id: str,
        items: list[LineItem],
        success_url: str,
        cancel_url: str,
        idempotency_key: str | None = None,
    ) -> SessionHandle:
        self.calls.append(
            {
                "method": "create_session",
                "order_id": order_id,
                "items": list(items),
                "success_url": success_url,
                "cancel_url": cancel_url,
                "idempotency_key": idempotency_key,
            }
        )
        self._ensure_reachable()
        validate_line_items(items)

        with self._lock:
            if idempotency_key and idempotency_key in self._by_idempotency_key:
                session = self._sessions[self._by_idempotency_key[idempotency_key]]
                return SessionHandle(session_id=session["id"], redirect_url=session["url"])

            session_id = f"cs_fake_{uuid4().hex[:16]}"
            session = {
                "id": session_id,
                "url": f"{self.base_url}/{session_id}",
                "order_id": order_id,
                "amount_total": sum(item.unit_amount * item.quantity for item in items),
                "currency": items[0].currency,
                "outcome": SessionOutcome.PENDING,
            }
            self._sessions[session_id] = session
            if idempotency_key:
                self._by_idempotency_key[idempotency_key] = session_id

        return SessionHandle(session_id=session_id, redirect_url=session["url"])

    def query_session_status(self, session_id: str) -> SessionStatus:
        self.calls.append({"method": "query_session_status", "session_id": session_id})
        self._ensure_reachable()

        session = self._sessions.get(session_id)
        if session is None:
            raise UnknownSession(session_id)
        return SessionStatus(
            session_id=session_id,
            outcome=session["outcome"],
            metadata={
                "client_reference_id": session["order_id"],
                "amount_total": session["amount_total"],
                "currency": session["currency"],
            },
        )

    # -------------------------------------------------------------------
    # Test controls
    # -------------------------------------------------------------------
    def complete_session(self, session_id: str) -> None:
        """Simulate the buyer paying on the hosted page."""
        self._set_outcome(session_id, SessionOutcome.COMPLETED)

    def fail_session(self, session_id: str) -> None:
        """Simulate a declined payment or an expired session."""
        self._set_outcome(session_id, SessionOutcome.FAILED)

    def _set_outcome(self, session_id: str, outcome: SessionOutcome) -> None:
        with self._lock:
            if session_id not in self._sessions:
                raise UnknownSession(session_id)
            self._sessions[session_id]["outcome"] = outcome

    def calls_to(self, method: str) -> list[dict]:
        return [call for call in self.calls if call["method"] == method]

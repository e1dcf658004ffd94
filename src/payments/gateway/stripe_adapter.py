"""Stripe payment gateway adapter.

Talks to the Stripe Checkout REST API with httpx:
- POST /v1/checkout/sessions creates a hosted checkout session
- GET /v1/checkout/sessions/{id} reads its status back

Requests are form-encoded as Stripe expects, authenticated with the bearer
secret key from the injected PaymentConfiguration, and every response is
reduced by ``payments.gateway.sanitize`` before anything in it is trusted.
"""

import os

import httpx
import structlog

from payments.configuration import PaymentConfiguration
from payments.gateway.port import (
    GatewayRejected,
    GatewayUnavailable,
    LineItem,
    NotConfigured,
    PaymentGateway,
    SessionHandle,
    SessionStatus,
    UnknownSession,
    validate_line_items,
)
from payments.gateway.sanitize import CanonicalResponse, outcome_for, reduce_response

logger = structlog.get_logger(__name__)

DEFAULT_API_BASE = "https://api.stripe.com"
DEFAULT_TIMEOUT_SECONDS = 10.0


def encode_session_form(
    order_id: str,
    items: list[LineItem],
    success_url: str,
    cancel_url: str,
    allowed_countries: tuple[str, ...],
) -> list[tuple[str, str]]:
    """Build the form body for a Checkout Session in Stripe's bracket notation."""
    form = [
        ("mode", "payment"),
        ("success_url", success_url),
        ("cancel_url", cancel_url),
        ("client_reference_id", order_id),
        ("metadata[order_id]", order_id),
    ]
    for index, item in enumerate(items):
        prefix = f"line_items[{index}]"
        form.extend(
            [
                (f"{prefix}[price_data][currency]", item.currency),
                (f"{prefix}[price_data][product_data][name]", item.name),
                (f"{prefix}[price_data][unit_amount]", str(item.unit_amount)),
                (f"{prefix}[quantity]", str(item.quantity)),
            ]
        )
        if item.description:
            form.append((f"{prefix}[price_data][product_data][description]", item.description))
    for index, country in enumerate(allowed_countries):
        form.append((f"shipping_address_collection[allowed_countries][{index}]", country))
    return form


class StripeGateway(PaymentGateway):
    """Production Stripe Checkout adapter."""

    def __init__(
        self,
        configuration: PaymentConfiguration,
        api_base: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.configuration = configuration
        self.api_base = (api_base or os.environ.get("STRIPE_API_BASE") or DEFAULT_API_BASE).rstrip("/")
        self.timeout = timeout or float(os.environ.get("STRIPE_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS))
        self._transport = transport

    def is_configured(self) -> bool:
        return self.configuration.is_configured()

    def _client(self) -> httpx.Client:
        if not self.is_configured():
            raise NotConfigured("Stripe secret key is not set")
        return httpx.Client(
            base_url=self.api_base,
            headers=self.configuration.authorization_header(),
            timeout=self.timeout,
            transport=self._transport,
        )

    def _send(self, method: str, path: str, **kwargs) -> CanonicalResponse:
        with self._client() as client:
            try:
                response = client.request(method, path, **kwargs)
            except httpx.TransportError as exc:
                logger.warning("Stripe request failed", method=method, path=path, error=str(exc))
                raise GatewayUnavailable(f"Could not reach Stripe: {exc}") from exc
        return reduce_response(response.status_code, response.content)

    def create_session(
        self,
        order_id: str,
        items: list[LineItem],
        success_url: str,
        cancel_url: str,
        idempotency_key: str | None = None,
    ) -> SessionHandle:
        validate_line_items(items)

        headers = {"Idempotency-Key": idempotency_key} if idempotency_key else {}
        form = encode_session_form(
            order_id, items, success_url, cancel_url, self.configuration.allowed_countries
        )
        result = self._send("POST", "/v1/checkout/sessions", data=dict(form), headers=headers)

        if result.status_code >= 500 or result.status_code == 429:
            raise GatewayUnavailable(f"Stripe responded with {result.status_code}")
        if result.status_code >= 400:
            message = result.body.get("error", {}).get("message", "request rejected")
            raise GatewayRejected(f"Stripe rejected the session for order {order_id}: {message}")

        session_id = result.body.get("id")
        redirect_url = result.body.get("url")
        if not session_id or not redirect_url:
            raise GatewayUnavailable("Stripe response is missing the session id or url")

        logger.info("Stripe checkout session created", order_id=order_id, session_id=session_id)
        return SessionHandle(session_id=session_id, redirect_url=redirect_url)

    def query_session_status(self, session_id: str) -> SessionStatus:
        result = self._send(
            "GET",
            f"/v1/checkout/sessions/{session_id}",
            params={"expand[]": "payment_intent"},
        )

        if result.status_code == 404:
            raise UnknownSession(session_id)
        if result.status_code >= 500 or result.status_code == 429:
            raise GatewayUnavailable(f"Stripe responded with {result.status_code}")
        if result.status_code >= 400:
            message = result.body.get("error", {}).get("message", "request rejected")
            raise GatewayRejected(f"Stripe rejected the status query for {session_id}: {message}")

        return SessionStatus(
            session_id=session_id,
            outcome=outcome_for(result.body),
            metadata=result.body,
        )

"""Hosted payment sessions for placed orders.

A buyer who placed an order while a payment provider was configured is sent
to the provider's hosted checkout page. The display line items are built
from the order's own snapshot; amounts sent by the client are never used.

Creating a session is idempotent per order. A pending order that already
has a session gets the same session back, and the provider call itself
carries an idempotency key derived from the order id so that concurrent
first calls converge on a single provider session. The provider call is
made without holding any lock; the first session attached to the order
wins.
"""

from dataclasses import dataclass

from marketplace.domain import logger
from marketplace.identity.principal import Principal, get_access_policy
from marketplace.order.queries import get_order, get_order_for
from marketplace.order.settlement import AttachPaymentSession, process_order_command
from payments.configuration import PaymentConfiguration
from payments.gateway import get_configuration, get_gateway
from payments.gateway.port import GatewayError, LineItem, NotConfigured, PaymentGateway


@dataclass(frozen=True)
class CheckoutSession:
    order_id: str
    session_id: str
    redirect_url: str
    reused: bool = False


def idempotency_key_for(order_id) -> str:
    return f"order-{order_id}"


def line_items_for(order) -> list[LineItem]:
    return [
        LineItem(
            name=item.name,
            description=item.description or "",
            unit_amount=item.unit_price,
            currency=order.currency,
            quantity=item.quantity,
        )
        for item in order.items
    ]


def create_checkout_session(
    buyer_id,
    order_id,
    success_url: str,
    cancel_url: str,
    gateway: PaymentGateway | None = None,
) -> CheckoutSession:
    """Create (or reuse) the hosted payment session for a buyer's order.

    Raises:
        OrderNotFound: no such order, or it belongs to another buyer.
        NotConfigured: no provider credentials are set.
        OrderNotPayable: the order is settled, or was placed without payment.
        GatewayRejected / GatewayUnavailable: the provider call failed.
    """
    gateway = gateway or get_gateway()

    order = get_order_for(Principal(id=str(buyer_id)), order_id)
    if not gateway.is_configured():
        raise NotConfigured("Payment provider credentials are not set", order_id=str(order.id))
    order.assert_payable()

    if order.payment_session_id:
        return CheckoutSession(
            order_id=str(order.id),
            session_id=order.payment_session_id,
            redirect_url=order.checkout_url,
            reused=True,
        )

    try:
        handle = gateway.create_session(
            order_id=str(order.id),
            items=line_items_for(order),
            success_url=success_url,
            cancel_url=cancel_url,
            idempotency_key=idempotency_key_for(order.id),
        )
    except GatewayError as exc:
        logger.warning("Checkout session not created", order_id=str(order.id), error=exc.code, detail=str(exc))
        raise exc.bind(order_id=str(order.id))

    attached = process_order_command(
        AttachPaymentSession(
            order_id=str(order.id),
            session_id=handle.session_id,
            checkout_url=handle.redirect_url,
        )
    )
    if attached:
        logger.info("Checkout session created", order_id=str(order.id), session_id=handle.session_id)
        return CheckoutSession(order_id=str(order.id), session_id=handle.session_id, redirect_url=handle.redirect_url)

    # Another caller attached a session first; theirs is the one the order keeps.
    order = get_order(order_id)
    return CheckoutSession(
        order_id=str(order.id),
        session_id=order.payment_session_id,
        redirect_url=order.checkout_url,
        reused=True,
    )


def is_payment_configured() -> bool:
    return get_gateway().is_configured()


def set_payment_configuration(
    principal: Principal,
    secret_key: str,
    allowed_countries=None,
    configuration: PaymentConfiguration | None = None,
) -> None:
    """Set the process-wide provider credentials. Administrators only.

    Raises:
        Unauthorized: ``principal`` is not an administrator.
        InvalidKeyFormat: the key does not start with ``sk_`` or a country
            code is malformed.
    """
    get_access_policy().require_admin(principal, "set the payment configuration")
    configuration = configuration or get_configuration()
    configuration.configure(secret_key, allowed_countries)
    logger.info(
        "Payment configuration updated",
        updated_by=principal.id,
        allowed_countries=",".join(configuration.allowed_countries),
    )

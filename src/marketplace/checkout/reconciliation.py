"""Reconciliation of provider payment outcomes into order status.

Callers (typically the buyer's browser polling after the provider redirects
back) ask for the status of a session; the handler pulls the authoritative
outcome from the provider and applies it to the bound order:

    completed → order PAID
    failed    → order FAILED
    pending   → order unchanged, caller told to keep waiting

An order that is already settled is answered from the ledger without calling
the provider again. A provider that cannot be reached is reported as
``GatewayUnavailable`` and never turns into a failed order. Retry policy
belongs to the caller; nothing here schedules another attempt.
"""

from dataclasses import dataclass, field

from marketplace.domain import logger
from marketplace.errors import SessionNotFound
from marketplace.identity.principal import Principal
from marketplace.order.order import OrderStatus
from marketplace.order.queries import get_order, order_for_session
from marketplace.order.settlement import RecordPaymentOutcome, process_order_command
from payments.gateway import get_gateway
from payments.gateway.port import GatewayError, PaymentGateway, SessionOutcome, UnknownSession


@dataclass(frozen=True)
class ReconciliationResult:
    order_id: str
    session_id: str
    status: str
    outcome: str
    still_waiting: bool = False
    applied: bool = False
    details: dict = field(default_factory=dict)


def _settled(order, session_id) -> ReconciliationResult:
    return ReconciliationResult(
        order_id=str(order.id),
        session_id=session_id,
        status=order.status,
        outcome=SessionOutcome.COMPLETED.value if order.status == OrderStatus.PAID.value else SessionOutcome.FAILED.value,
        details={"order_number": order.number, "settled_at": order.settled_at.isoformat() if order.settled_at else None},
    )


def reconcile(session_id: str, gateway: PaymentGateway | None = None) -> ReconciliationResult:
    """Apply the provider's current view of ``session_id`` to its order.

    Safe to call any number of times, concurrently, for the same session.

    Raises:
        SessionNotFound: no order is bound to the session, or the provider
            does not know it.
        GatewayUnavailable: the provider could not be reached. The order is
            left untouched.
    """
    order = order_for_session(session_id)
    if order.is_terminal:
        logger.debug("Reconciliation short-circuited", order_id=str(order.id), session_id=session_id)
        return _settled(order, session_id)

    gateway = gateway or get_gateway()
    try:
        status = gateway.query_session_status(session_id)
    except UnknownSession:
        raise SessionNotFound(session_id) from None
    except GatewayError as exc:
        logger.warning(
            "Session status unavailable",
            order_id=str(order.id),
            session_id=session_id,
            error=exc.code,
            detail=str(exc),
        )
        raise exc.bind(session_id=session_id, order_id=str(order.id))

    if status.outcome == SessionOutcome.PENDING:
        return ReconciliationResult(
            order_id=str(order.id),
            session_id=session_id,
            status=order.status,
            outcome=SessionOutcome.PENDING.value,
            still_waiting=True,
            details=dict(status.metadata),
        )

    changed = process_order_command(
        RecordPaymentOutcome(
            order_id=str(order.id),
            session_id=session_id,
            outcome=status.outcome.value,
            reason=None if status.outcome == SessionOutcome.COMPLETED else "payment not completed at provider",
        )
    )
    order = get_order(order.id)
    logger.info(
        "Session reconciled",
        order_id=str(order.id),
        session_id=session_id,
        outcome=status.outcome.value,
        status=order.status,
        changed=changed,
    )
    return ReconciliationResult(
        order_id=str(order.id),
        session_id=session_id,
        status=order.status,
        outcome=status.outcome.value,
        applied=changed,
        details=dict(status.metadata),
    )


def get_session_status(
    session_id: str,
    principal: Principal | None = None,
    gateway: PaymentGateway | None = None,
) -> ReconciliationResult:
    """Status of a payment session for display, reconciling it on the way.

    With a ``principal``, sessions bound to someone else's order are reported
    as ``SessionNotFound`` before the provider is asked anything.
    """
    if principal is not None:
        order = order_for_session(session_id)
        if not principal.is_admin and str(order.buyer_id) != str(principal.id):
            raise SessionNotFound(session_id)
    return reconcile(session_id, gateway=gateway)

"""Order payment settlement: commands and handler.

All three commands mutate one order and are processed under that order's
lock, so concurrent reconciliations of the same session apply a status
transition at most once. Each handler returns whether anything changed.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from marketplace.checkout.locks import locks, order_key
from marketplace.domain import logger, marketplace
from marketplace.identity.principal import get_access_policy
from marketplace.order.order import Order, OrderStatus
from marketplace.order.queries import get_order


@marketplace.command(part_of="Order")
class AttachPaymentSession:
    order_id = Identifier(required=True)
    session_id = String(required=True, max_length=255)
    checkout_url = String(required=True, max_length=2048)


@marketplace.command(part_of="Order")
class RecordPaymentOutcome:
    """Apply a terminal outcome reported by the payment provider."""

    order_id = Identifier(required=True)
    session_id = String(required=True, max_length=255)
    outcome = String(required=True, max_length=20)  # "completed" or "failed"
    reason = String(max_length=500)


@marketplace.command(part_of="Order")
class UpdateOrderStatus:
    """Administrative status override, for trusted callers only."""

    order_id = Identifier(required=True)
    status = String(required=True, choices=OrderStatus)
    updated_by = Identifier(required=True)
    reason = String(max_length=500)


def process_order_command(command):
    with locks.holding(order_key(command.order_id)):
        return current_domain.process(command, asynchronous=False)


@marketplace.command_handler(part_of=Order)
class OrderSettlementHandler:
    @handle(AttachPaymentSession)
    def attach_payment_session(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        attached = order.attach_payment_session(command.session_id, command.checkout_url)
        if attached:
            repo.add(order)
            logger.info("Payment session attached", order_id=command.order_id, session_id=command.session_id)
        return attached

    @handle(RecordPaymentOutcome)
    def record_payment_outcome(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        if command.outcome == "completed":
            changed = order.mark_paid(source="reconciliation")
        else:
            changed = order.mark_failed(reason=command.reason, source="reconciliation")
        if changed:
            repo.add(order)
            logger.info(
                "Payment outcome recorded",
                order_id=command.order_id,
                session_id=command.session_id,
                status=order.status,
            )
        return changed

    @handle(UpdateOrderStatus)
    def update_order_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        changed = order.transition_to(
            OrderStatus(command.status),
            source=f"admin:{command.updated_by}",
            reason=command.reason,
        )
        if changed:
            repo.add(order)
            logger.info(
                "Order status updated by administrator",
                order_id=command.order_id,
                status=order.status,
                updated_by=command.updated_by,
            )
        return changed


def update_order_status(principal, order_id, status, reason=None) -> bool:
    """Administrative status update. Returns whether the status changed.

    Raises:
        Unauthorized: ``principal`` is not an administrator.
        OrderNotFound: no such order.
    """
    get_access_policy().require_admin(principal, f"update the status of order {order_id}")
    get_order(order_id)
    return process_order_command(
        UpdateOrderStatus(
            order_id=str(order_id),
            status=status,
            updated_by=principal.id,
            reason=reason,
        )
    )

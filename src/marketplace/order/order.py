"""Order aggregate (CQRS): the durable record of a purchase.

An order is a snapshot of the cart at placement time (products, names and
prices as they were) plus a status that is updated in place. The snapshot
and total never change after creation; only the status, the payment session
reference and the settlement fields do.

State Machine:
    PENDING → PAID     (provider reported a completed payment)
    PENDING → FAILED   (provider reported a declined or expired payment)

PAID and FAILED are terminal. Re-applying any transition to a terminal order
is absorbed silently so duplicate or out-of-order provider signals never
surface as errors.

Orders placed while no payment provider was configured carry
``payment_requirement = not_required``: they stay PENDING and are shown to
the buyer as placed and awaiting seller fulfillment.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String, Text

from marketplace.domain import logger, marketplace
from marketplace.errors import OrderNotPayable
from marketplace.order.events import OrderPaid, OrderPaymentFailed, OrderPlaced, PaymentSessionAttached


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


class PaymentRequirement(Enum):
    AWAITING_PAYMENT = "awaiting_payment"
    NOT_REQUIRED = "not_required"


# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PAID, OrderStatus.FAILED},
    OrderStatus.PAID: set(),  # Terminal
    OrderStatus.FAILED: set(),  # Terminal
}

TERMINAL_STATUSES = {status for status, targets in _VALID_TRANSITIONS.items() if not targets}


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@marketplace.entity(part_of="Order")
class OrderItem:
    """A product line as it was when the order was placed.

    Name, description and unit price are copied from the catalogue so that
    later edits or removal of the product never alter a placed order.
    """

    product_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    description = Text()
    unit_price = Integer(required=True, min_value=1)
    quantity = Integer(required=True, min_value=1)

    @property
    def line_total(self) -> int:
        return self.unit_price * self.quantity


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@marketplace.aggregate
class Order:
    number = Integer(required=True, min_value=1)
    buyer_id = Identifier(required=True)
    items = HasMany(OrderItem)
    total = Integer(required=True, min_value=0)
    currency = String(required=True, max_length=3)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    payment_requirement = String(
        choices=PaymentRequirement,
        default=PaymentRequirement.AWAITING_PAYMENT.value,
    )
    payment_session_id = String(max_length=255)
    checkout_url = String(max_length=2048)
    failure_reason = String(max_length=500)
    placed_at = DateTime()
    settled_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def total_must_match_items(self):
        if self.items and self.total != sum(item.unit_price * item.quantity for item in self.items):
            raise ValidationError({"total": ["Order total must equal the sum of its items"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(cls, buyer_id, number, lines, currency, payment_required):
        """Create a pending order from priced cart lines.

        Args:
            buyer_id: The buyer placing the order.
            number: Order number allocated by the order-number sequence.
            lines: List of dicts with product_id, name, description,
                   unit_price and quantity, in cart order.
            currency: ISO currency code of every unit price.
            payment_required: Whether a payment provider is configured.
        """
        if not lines:
            raise ValidationError({"items": ["An order needs at least one item"]})

        now = datetime.now(UTC)
        requirement = PaymentRequirement.AWAITING_PAYMENT if payment_required else PaymentRequirement.NOT_REQUIRED

        order = cls(
            number=number,
            buyer_id=buyer_id,
            items=[OrderItem(**line) for line in lines],
            total=sum(line["unit_price"] * line["quantity"] for line in lines),
            currency=currency,
            status=OrderStatus.PENDING.value,
            payment_requirement=requirement.value,
            placed_at=now,
            updated_at=now,
        )
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                number=number,
                buyer_id=str(buyer_id),
                total=order.total,
                currency=currency,
                item_count=len(lines),
                payment_requirement=requirement.value,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def is_terminal(self) -> bool:
        return OrderStatus(self.status) in TERMINAL_STATUSES

    @property
    def display_status(self) -> str:
        """Status as shown to people, splitting PENDING by payment requirement."""
        if OrderStatus(self.status) != OrderStatus.PENDING:
            return self.status
        if self.payment_requirement == PaymentRequirement.NOT_REQUIRED.value:
            return "pending_no_payment_required"
        return "pending_awaiting_payment"

    def assert_payable(self):
        if self.is_terminal:
            raise OrderNotPayable(str(self.id), f"order is already {self.status}")
        if self.payment_requirement == PaymentRequirement.NOT_REQUIRED.value:
            raise OrderNotPayable(str(self.id), "order was placed without a payment requirement")

    # -------------------------------------------------------------------
    # Payment session
    # -------------------------------------------------------------------
    def attach_payment_session(self, session_id, checkout_url) -> bool:
        """Bind a hosted payment session. The first session attached wins.

        Returns False, changing nothing, when a session is already attached.
        """
        self.assert_payable()
        if self.payment_session_id:
            return False

        self.payment_session_id = session_id
        self.checkout_url = checkout_url
        self.updated_at = datetime.now(UTC)

        self.raise_(PaymentSessionAttached(order_id=str(self.id), session_id=session_id))
        return True

    # -------------------------------------------------------------------
    # Status transitions
    # -------------------------------------------------------------------
    def transition_to(self, target_status: OrderStatus, source, reason=None) -> bool:
        """Move the order to ``target_status`` if the state machine allows it.

        Returns True when the status changed. Requests that the state machine
        rejects (anything out of a terminal state, or PENDING as a target)
        are no-ops and return False.
        """
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS[current]:
            logger.info(
                "Order status transition ignored",
                order_id=str(self.id),
                current_status=current.value,
                requested_status=target_status.value,
                source=source,
            )
            return False

        now = datetime.now(UTC)
        self.status = target_status.value
        self.settled_at = now
        self.updated_at = now

        if target_status == OrderStatus.PAID:
            self.raise_(
                OrderPaid(
                    order_id=str(self.id),
                    session_id=self.payment_session_id,
                    total=self.total,
                    source=source,
                    settled_at=now,
                )
            )
        else:
            self.failure_reason = reason
            self.raise_(
                OrderPaymentFailed(
                    order_id=str(self.id),
                    session_id=self.payment_session_id,
                    reason=reason,
                    source=source,
                    settled_at=now,
                )
            )
        return True

    def mark_paid(self, source="reconciliation") -> bool:
        return self.transition_to(OrderStatus.PAID, source=source)

    def mark_failed(self, reason=None, source="reconciliation") -> bool:
        return self.transition_to(OrderStatus.FAILED, source=source, reason=reason)

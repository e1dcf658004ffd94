"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Identifier, Integer, String

from marketplace.domain import marketplace


@marketplace.event(part_of="Order")
class OrderPlaced:
    """A cart was converted into an order and its stock committed."""

    __version__ = 1

    order_id = Identifier(required=True)
    number = Integer(required=True)
    buyer_id = Identifier(required=True)
    total = Integer(required=True)
    currency = String(required=True)
    item_count = Integer(required=True)
    payment_requirement = String(required=True)
    placed_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class PaymentSessionAttached:
    """A hosted payment session was bound to the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    session_id = String(required=True)


@marketplace.event(part_of="Order")
class OrderPaid:
    __version__ = 1

    order_id = Identifier(required=True)
    session_id = String()
    total = Integer(required=True)
    source = String(required=True)
    settled_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class OrderPaymentFailed:
    """The provider reported a declined, expired or abandoned payment."""

    __version__ = 1

    order_id = Identifier(required=True)
    session_id = String()
    reason = String()
    source = String(required=True)
    settled_at = DateTime(required=True)

"""Read access to the order ledger."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from marketplace.errors import OrderNotFound, SessionNotFound
from marketplace.order.order import Order


def get_order(order_id) -> Order:
    try:
        return current_domain.repository_for(Order).get(order_id)
    except ObjectNotFoundError:
        raise OrderNotFound(str(order_id)) from None


def get_order_for(principal, order_id) -> Order:
    """Fetch an order visible to ``principal``: its buyer, or an administrator.

    Orders belonging to someone else are reported as not found.
    """
    order = get_order(order_id)
    if not principal.is_admin and str(order.buyer_id) != str(principal.id):
        raise OrderNotFound(str(order_id))
    return order


def order_for_session(session_id) -> Order:
    repo = current_domain.repository_for(Order)
    matches = repo._dao.query.filter(payment_session_id=session_id).all().items
    if not matches:
        raise SessionNotFound(session_id)
    return matches[0]


def orders_for_buyer(buyer_id) -> list[Order]:
    """A buyer's orders, newest first."""
    repo = current_domain.repository_for(Order)
    return repo._dao.query.filter(buyer_id=str(buyer_id)).order_by("-number").all().items


def all_orders() -> list[Order]:
    repo = current_domain.repository_for(Order)
    return repo._dao.query.order_by("-number").all().items

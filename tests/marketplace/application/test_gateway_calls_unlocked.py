"""Provider calls are made without holding any cart, stock or order lock."""

import threading

import pytest
from marketplace.catalogue.product import Product
from marketplace.checkout.placement import place_order
from marketplace.checkout.reconciliation import reconcile
from marketplace.checkout.session import create_checkout_session
from marketplace.domain import marketplace
from marketplace.errors import OrderNotPayable
from marketplace.order.order import Order, OrderStatus
from marketplace.order.settlement import update_order_status
from payments.gateway import set_gateway
from payments.gateway.fake_adapter import FakeGateway
from protean import current_domain

TIMEOUT = 5


class PausingGateway(FakeGateway):
    """Holds one provider method open until the test lets it through."""

    def __init__(self, configuration, pause_on):
        super().__init__(configuration)
        self.pause_on = pause_on
        self.entered = threading.Event()
        self.release = threading.Event()

    def _pause(self, method):
        if method == self.pause_on:
            self.entered.set()
            self.release.wait(timeout=30)

    def create_session(self, *args, **kwargs):
        self._pause("create_session")
        return super().create_session(*args, **kwargs)

    def query_session_status(self, session_id):
        self._pause("query_session_status")
        return super().query_session_status(session_id)


def _start(target):
    """Run ``target`` in its own thread and domain context."""
    outcome = {"result": None, "error": None}

    def run():
        with marketplace.domain_context():
            try:
                outcome["result"] = target()
            except Exception as exc:
                outcome["error"] = exc

    thread = threading.Thread(target=run)
    thread.start()
    return thread, outcome


def _checkout(order_id):
    return create_checkout_session(
        "buyer-001",
        order_id,
        "https://market.example.com/payment-success",
        "https://market.example.com/payment-failure",
    )


@pytest.fixture()
def product_id(list_product):
    return list_product(name="Lamp", price=5000, stock=10)


def test_session_creation_does_not_block_stock_or_order(configuration, product_id, add_to_cart, admin):
    gateway = PausingGateway(configuration, "create_session")
    set_gateway(gateway)
    add_to_cart("buyer-001", product_id, 2)
    order_id = place_order("buyer-001")
    add_to_cart("buyer-002", product_id, 1)

    checkout, checkout_outcome = _start(lambda: _checkout(order_id))
    try:
        assert gateway.entered.wait(timeout=TIMEOUT)

        def meanwhile():
            place_order("buyer-002")
            return update_order_status(admin, order_id, "failed")

        other, other_outcome = _start(meanwhile)
        other.join(timeout=TIMEOUT)
        assert not other.is_alive()
        assert other_outcome["error"] is None
        assert other_outcome["result"] is True
    finally:
        gateway.release.set()
        checkout.join(timeout=TIMEOUT)

    # The order settled while the provider call was in flight; the late session is not attached.
    assert isinstance(checkout_outcome["error"], OrderNotPayable)
    assert current_domain.repository_for(Order).get(order_id).payment_session_id is None
    assert current_domain.repository_for(Product).get(product_id).stock == 7


def test_status_query_does_not_block_stock_or_order(configuration, product_id, add_to_cart, admin):
    gateway = PausingGateway(configuration, "query_session_status")
    set_gateway(gateway)
    add_to_cart("buyer-001", product_id, 2)
    order_id = place_order("buyer-001")
    session = _checkout(order_id)
    gateway.complete_session(session.session_id)
    add_to_cart("buyer-002", product_id, 1)

    poll, poll_outcome = _start(lambda: reconcile(session.session_id))
    try:
        assert gateway.entered.wait(timeout=TIMEOUT)

        def meanwhile():
            place_order("buyer-002")
            return update_order_status(admin, order_id, "paid")

        other, other_outcome = _start(meanwhile)
        other.join(timeout=TIMEOUT)
        assert not other.is_alive()
        assert other_outcome["error"] is None
        assert other_outcome["result"] is True
    finally:
        gateway.release.set()
        poll.join(timeout=TIMEOUT)

    result = poll_outcome["result"]
    assert poll_outcome["error"] is None
    assert result.status == OrderStatus.PAID.value
    assert result.applied is False
    assert current_domain.repository_for(Product).get(product_id).stock == 7

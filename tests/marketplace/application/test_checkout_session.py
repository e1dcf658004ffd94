"""Application tests for hosted checkout session creation."""

import pytest
from marketplace.checkout.placement import place_order
from marketplace.checkout.session import CheckoutSession, create_checkout_session
from marketplace.errors import OrderNotFound, OrderNotPayable
from marketplace.order.order import Order
from marketplace.order.settlement import AttachPaymentSession, RecordPaymentOutcome, process_order_command
from payments.gateway.fake_adapter import FakeGateway
from payments.gateway.port import GatewayUnavailable, NotConfigured
from protean import current_domain

SUCCESS_URL = "https://market.example.com/payment-success"
CANCEL_URL = "https://market.example.com/payment-failure"


@pytest.fixture()
def placed_order(list_product, add_to_cart, gateway):
    add_to_cart("buyer-001", list_product(name="A", price=5000), 2)
    add_to_cart("buyer-001", list_product(name="B", price=10000), 1)
    return place_order("buyer-001")


def _create(order_id, buyer_id="buyer-001", gateway=None):
    return create_checkout_session(buyer_id, order_id, SUCCESS_URL, CANCEL_URL, gateway=gateway)


class TestCreateCheckoutSession:
    def test_returns_redirect_and_binds_session(self, placed_order, gateway):
        session = _create(placed_order)

        assert isinstance(session, CheckoutSession)
        assert session.redirect_url.endswith(session.session_id)
        assert session.reused is False
        order = current_domain.repository_for(Order).get(placed_order)
        assert order.payment_session_id == session.session_id
        assert order.checkout_url == session.redirect_url

    def test_line_items_come_from_order_snapshot(self, placed_order, gateway):
        _create(placed_order)

        call = gateway.calls_to("create_session")[0]
        assert [(i.name, i.unit_amount, i.quantity, i.currency) for i in call["items"]] == [
            ("A", 5000, 2, "inr"),
            ("B", 10000, 1, "inr"),
        ]
        assert call["idempotency_key"] == f"order-{placed_order}"
        assert call["success_url"] == SUCCESS_URL

    def test_second_call_reuses_session(self, placed_order, gateway):
        first = _create(placed_order)
        second = _create(placed_order)

        assert second.session_id == first.session_id
        assert second.order_id == first.order_id
        assert second.reused is True
        assert len(gateway.calls_to("create_session")) == 1
        assert len(current_domain.repository_for(Order)._dao.query.all().items) == 1

    def test_first_attached_session_wins(self, placed_order, configuration):
        class RacingGateway(FakeGateway):
            """Another tab attaches its session while this call is in flight."""

            def create_session(self, order_id, items, success_url, cancel_url, idempotency_key=None):
                process_order_command(
                    AttachPaymentSession(order_id=order_id, session_id="cs_other_tab", checkout_url="https://x/cs")
                )
                return super().create_session(order_id, items, success_url, cancel_url)

        session = _create(placed_order, gateway=RacingGateway(configuration))

        assert session.session_id == "cs_other_tab"
        assert session.reused is True
        order = current_domain.repository_for(Order).get(placed_order)
        assert order.payment_session_id == "cs_other_tab"


class TestCheckoutSessionFailures:
    def test_not_configured(self, placed_order, unconfigured_gateway):
        with pytest.raises(NotConfigured) as exc_info:
            _create(placed_order)
        assert exc_info.value.context()["order_id"] == placed_order
        assert unconfigured_gateway.calls_to("create_session") == []

    def test_order_of_another_buyer(self, placed_order, gateway):
        with pytest.raises(OrderNotFound) as exc_info:
            _create(placed_order, buyer_id="buyer-002")
        assert exc_info.value.order_id == placed_order
        assert gateway.calls == []

    def test_unknown_order(self, gateway):
        with pytest.raises(OrderNotFound):
            _create("does-not-exist")

    def test_order_placed_without_payment(self, list_product, add_to_cart, unconfigured_gateway, configuration):
        add_to_cart("buyer-001", list_product(), 1)
        order_id = place_order("buyer-001")

        with pytest.raises(OrderNotPayable) as exc_info:
            _create(order_id, gateway=FakeGateway(configuration))
        assert exc_info.value.order_id == order_id

    def test_settled_order(self, placed_order, gateway):
        session = _create(placed_order)
        process_order_command(
            RecordPaymentOutcome(order_id=placed_order, session_id=session.session_id, outcome="completed")
        )

        with pytest.raises(OrderNotPayable):
            _create(placed_order)

    def test_gateway_unavailable_leaves_order_unbound(self, placed_order, gateway):
        gateway.configure(should_fail_transport=True)

        with pytest.raises(GatewayUnavailable) as exc_info:
            _create(placed_order)
        assert exc_info.value.context() == {"order_id": placed_order}

        order = current_domain.repository_for(Order).get(placed_order)
        assert order.payment_session_id is None
        assert order.status == "pending"

        gateway.configure(should_fail_transport=False)
        assert _create(placed_order).session_id is not None

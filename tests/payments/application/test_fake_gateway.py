"""Tests for the in-memory payment gateway."""

import pytest
from payments.configuration import PaymentConfiguration
from payments.gateway.fake_adapter import FakeGateway
from payments.gateway.port import (
    GatewayRejected,
    GatewayUnavailable,
    NotConfigured,
    SessionHandle,
    SessionOutcome,
    UnknownSession,
)


@pytest.fixture()
def fake(configuration):
    return FakeGateway(configuration)


def _create(gateway, items, order_id="order-1", idempotency_key=None):
    return gateway.create_session(
        order_id,
        items,
        success_url="https://market.example.com/payment-success",
        cancel_url="https://market.example.com/payment-failure",
        idempotency_key=idempotency_key,
    )


class TestCreateSession:
    def test_returns_handle(self, fake, line_items):
        handle = _create(fake, line_items)
        assert isinstance(handle, SessionHandle)
        assert handle.session_id.startswith("cs_fake_")
        assert handle.redirect_url == f"{FakeGateway.base_url}/{handle.session_id}"

    def test_records_call(self, fake, line_items):
        _create(fake, line_items, idempotency_key="order-order-1")
        [call] = fake.calls_to("create_session")
        assert call["order_id"] == "order-1"
        assert call["idempotency_key"] == "order-order-1"
        assert call["items"] == line_items

    def test_same_idempotency_key_same_session(self, fake, line_items):
        first = _create(fake, line_items, idempotency_key="order-order-1")
        second = _create(fake, line_items, idempotency_key="order-order-1")
        assert first == second

    def test_without_key_each_call_is_new(self, fake, line_items):
        assert _create(fake, line_items).session_id != _create(fake, line_items).session_id

    def test_unconfigured(self, line_items):
        gateway = FakeGateway(PaymentConfiguration())
        with pytest.raises(NotConfigured):
            _create(gateway, line_items)
        assert len(gateway.calls_to("create_session")) == 1

    def test_simulated_outage(self, fake, line_items):
        fake.configure(should_fail_transport=True)
        with pytest.raises(GatewayUnavailable):
            _create(fake, line_items)

    def test_invalid_items_rejected(self, fake):
        with pytest.raises(GatewayRejected):
            _create(fake, [])


class TestQuerySessionStatus:
    def test_new_session_is_pending(self, fake, line_items):
        handle = _create(fake, line_items)
        status = fake.query_session_status(handle.session_id)
        assert status.outcome is SessionOutcome.PENDING
        assert status.metadata == {"client_reference_id": "order-1", "amount_total": 20000, "currency": "inr"}

    def test_completed(self, fake, line_items):
        handle = _create(fake, line_items)
        fake.complete_session(handle.session_id)
        assert fake.query_session_status(handle.session_id).outcome is SessionOutcome.COMPLETED

    def test_failed(self, fake, line_items):
        handle = _create(fake, line_items)
        fake.fail_session(handle.session_id)
        assert fake.query_session_status(handle.session_id).outcome is SessionOutcome.FAILED

    def test_unknown_session(self, fake):
        with pytest.raises(UnknownSession) as exc_info:
            fake.query_session_status("cs_missing")
        assert exc_info.value.session_id == "cs_missing"

    def test_outage_during_query(self, fake, line_items):
        handle = _create(fake, line_items)
        fake.configure(should_fail_transport=True)
        with pytest.raises(GatewayUnavailable):
            fake.query_session_status(handle.session_id)

    def test_completing_unknown_session(self, fake):
        with pytest.raises(UnknownSession):
            fake.complete_session("cs_missing")

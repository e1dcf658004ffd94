"""Tests for selecting and swapping the active gateway."""

import pytest
from payments.gateway import get_configuration, get_gateway, reset_gateway, set_gateway
from payments.gateway.fake_adapter import FakeGateway
from payments.gateway.stripe_adapter import StripeGateway


class TestGetGateway:
    def test_defaults_to_fake(self, monkeypatch):
        monkeypatch.delenv("PAYMENT_GATEWAY", raising=False)
        assert isinstance(get_gateway(), FakeGateway)

    def test_stripe_from_environment(self, monkeypatch):
        monkeypatch.setenv("PAYMENT_GATEWAY", "Stripe")
        gateway = get_gateway()
        assert isinstance(gateway, StripeGateway)
        assert gateway.configuration is get_configuration()

    def test_unknown_kind(self, monkeypatch):
        monkeypatch.setenv("PAYMENT_GATEWAY", "paypal")
        with pytest.raises(ValueError):
            get_gateway()

    def test_gateway_is_reused(self, monkeypatch):
        monkeypatch.delenv("PAYMENT_GATEWAY", raising=False)
        assert get_gateway() is get_gateway()


class TestSharedConfiguration:
    def test_configuring_makes_default_gateway_configured(self, monkeypatch):
        monkeypatch.delenv("PAYMENT_GATEWAY", raising=False)
        assert get_gateway().is_configured() is False
        get_configuration().configure("sk_test_abc")
        assert get_gateway().is_configured() is True

    def test_reset_forgets_credentials(self):
        get_configuration().configure("sk_test_abc")
        reset_gateway()
        assert get_configuration().is_configured() is False


def test_set_gateway_overrides(configuration):
    fake = FakeGateway(configuration)
    set_gateway(fake)
    assert get_gateway() is fake

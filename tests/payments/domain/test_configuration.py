"""Tests for PaymentConfiguration."""

import threading

import pytest
from payments.configuration import DEFAULT_ALLOWED_COUNTRIES, InvalidKeyFormat, PaymentConfiguration


class TestConfigure:
    def test_starts_unconfigured(self):
        config = PaymentConfiguration()
        assert config.is_configured() is False
        assert config.authorization_header() == {}
        assert config.allowed_countries == DEFAULT_ALLOWED_COUNTRIES

    def test_configure_with_secret_key(self):
        config = PaymentConfiguration()
        config.configure("sk_test_123")
        assert config.is_configured() is True
        assert config.authorization_header() == {"Authorization": "Bearer sk_test_123"}

    def test_key_is_stripped(self):
        config = PaymentConfiguration()
        config.configure("  sk_live_abc  ")
        assert config.authorization_header() == {"Authorization": "Bearer sk_live_abc"}

    @pytest.mark.parametrize("key", ["", "   ", "pk_test_123", "sk_", "rk_live_1", None])
    def test_rejects_malformed_keys(self, key):
        config = PaymentConfiguration()
        with pytest.raises(InvalidKeyFormat):
            config.configure(key)
        assert config.is_configured() is False

    def test_reconfigure_replaces_key(self):
        config = PaymentConfiguration()
        config.configure("sk_test_old")
        config.configure("sk_test_new")
        assert config.authorization_header()["Authorization"] == "Bearer sk_test_new"

    def test_failed_reconfigure_keeps_previous_key(self):
        config = PaymentConfiguration()
        config.configure("sk_test_old", ["IN"])
        with pytest.raises(InvalidKeyFormat):
            config.configure("sk_test_new", ["INDIA"])
        assert config.authorization_header()["Authorization"] == "Bearer sk_test_old"
        assert config.allowed_countries == ("IN",)

    def test_clear(self):
        config = PaymentConfiguration()
        config.configure("sk_test_123", ["GB"])
        config.clear()
        assert config.is_configured() is False
        assert config.allowed_countries == DEFAULT_ALLOWED_COUNTRIES


class TestAllowedCountries:
    def test_codes_are_upper_cased(self):
        config = PaymentConfiguration()
        config.configure("sk_test_123", ["in", " us "])
        assert config.allowed_countries == ("IN", "US")

    def test_empty_list_falls_back_to_defaults(self):
        config = PaymentConfiguration()
        config.configure("sk_test_123", [])
        assert config.allowed_countries == DEFAULT_ALLOWED_COUNTRIES

    def test_rejects_non_alpha2_codes(self):
        config = PaymentConfiguration()
        with pytest.raises(InvalidKeyFormat):
            config.configure("sk_test_123", ["IND"])


def test_repr_never_shows_the_key():
    config = PaymentConfiguration()
    config.configure("sk_test_supersecret")
    assert "supersecret" not in repr(config)
    assert "configured" in repr(config)


def test_concurrent_configure_leaves_one_consistent_key():
    config = PaymentConfiguration()
    keys = [f"sk_test_{i}" for i in range(8)]
    threads = [threading.Thread(target=config.configure, args=(key,)) for key in keys]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    header = config.authorization_header()["Authorization"]
    assert header.removeprefix("Bearer ") in keys

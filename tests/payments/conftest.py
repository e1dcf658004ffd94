import pytest


@pytest.fixture(autouse=True)
def _reset_gateway():
    """Forget the active gateway and credentials between tests."""
    from payments.gateway import reset_gateway

    reset_gateway()
    yield
    reset_gateway()


@pytest.fixture()
def configuration():
    from payments.configuration import PaymentConfiguration

    config = PaymentConfiguration()
    config.configure("sk_test_payments", ["in"])
    return config


@pytest.fixture()
def line_items():
    from payments.gateway.port import LineItem

    return [
        LineItem(name="Basket", description="Palm leaf", unit_amount=5000, currency="inr", quantity=2),
        LineItem(name="Lamp", description="", unit_amount=10000, currency="inr", quantity=1),
    ]

"""Payment gateway factory.

Provides get_gateway() / set_gateway() to swap implementations:
- FakeGateway for development and testing
- StripeGateway for production

The adapter is chosen by the PAYMENT_GATEWAY environment variable ("fake" or
"stripe", default "fake"). Both read the same process-wide
PaymentConfiguration returned by get_configuration().
"""

import os

from payments.configuration import PaymentConfiguration
from payments.gateway.fake_adapter import FakeGateway
from payments.gateway.port import PaymentGateway
from payments.gateway.stripe_adapter import StripeGateway

_current_gateway: PaymentGateway | None = None
_configuration: PaymentConfiguration | None = None


def get_configuration() -> PaymentConfiguration:
    """Return the process-wide payment configuration."""
    global _configuration
    if _configuration is None:
        _configuration = PaymentConfiguration()
    return _configuration


def get_gateway() -> PaymentGateway:
    """Return the current payment gateway. Defaults to FakeGateway."""
    global _current_gateway
    if _current_gateway is None:
        kind = os.environ.get("PAYMENT_GATEWAY", "fake").lower()
        if kind == "stripe":
            _current_gateway = StripeGateway(get_configuration())
        elif kind == "fake":
            _current_gateway = FakeGateway(get_configuration())
        else:
            raise ValueError(f"Unknown PAYMENT_GATEWAY '{kind}'")
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    """Override the active payment gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    """Reset to default gateway and forget any configured credentials."""
    global _current_gateway, _configuration
    _current_gateway = None
    _configuration = None

import pytest
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def marketplace_bed():
    from marketplace.domain import marketplace

    bed = DomainFixture(marketplace)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(marketplace_bed):
    with marketplace_bed.domain_context():
        yield

        from protean import current_domain

        # Clear all databases
        for _, provider in current_domain.providers.items():
            provider._data_reset()

        # Drain event stores
        current_domain.event_store.store._data_reset()


@pytest.fixture(autouse=True)
def _reset_process_state():
    """Forget gateways, credentials, locks and order numbers between tests."""
    from marketplace.checkout.locks import locks
    from marketplace.identity.principal import reset_access_policy
    from marketplace.order.sequence import order_numbers
    from payments.gateway import reset_gateway

    yield

    reset_gateway()
    reset_access_policy()
    order_numbers.reset()
    locks.clear()


@pytest.fixture()
def configuration():
    from payments.configuration import PaymentConfiguration

    config = PaymentConfiguration()
    config.configure("sk_test_marketplace")
    return config


@pytest.fixture()
def gateway(configuration):
    """A configured fake provider installed as the active gateway."""
    from payments.gateway import set_gateway
    from payments.gateway.fake_adapter import FakeGateway

    fake = FakeGateway(configuration)
    set_gateway(fake)
    return fake


@pytest.fixture()
def unconfigured_gateway():
    from payments.configuration import PaymentConfiguration
    from payments.gateway import set_gateway
    from payments.gateway.fake_adapter import FakeGateway

    fake = FakeGateway(PaymentConfiguration())
    set_gateway(fake)
    return fake


@pytest.fixture()
def admin():
    from marketplace.identity.principal import AccessPolicy, set_access_policy

    policy = AccessPolicy(["admin-001"])
    set_access_policy(policy)
    return policy.principal("admin-001")


@pytest.fixture()
def list_product():
    """Factory: list a product as a seller and return its id."""
    from marketplace.catalogue.listing import ListProduct, process_product_command

    def _list(name="Product", price=5000, stock=10, seller_id="seller-001", description=None):
        return process_product_command(
            ListProduct(
                seller_id=seller_id,
                name=name,
                description=description or f"{name} description",
                category="General",
                price=price,
                stock=stock,
            )
        )

    return _list


@pytest.fixture()
def add_to_cart():
    """Factory: add a product to a buyer's cart."""
    from marketplace.cart.items import AddToCart, process_cart_command

    def _add(buyer_id, product_id, quantity=1):
        process_cart_command(AddToCart(buyer_id=buyer_id, product_id=product_id, quantity=quantity))

    return _add

"""Shared BDD fixtures and step definitions for checkout scenarios."""

import pytest
from pytest_bdd import given, parsers


# ---------------------------------------------------------------------------
# Scalar fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def buyer_id():
    return "buyer-001"


@pytest.fixture()
def seller_id():
    return "seller-001"


@pytest.fixture()
def products():
    """Product ids by the name used in the scenario."""
    return {}


@pytest.fixture()
def checkout():
    """What the scenario has produced so far: order, session, error."""
    return {"order_id": None, "session_id": None, "redirect_url": None, "error": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a product "{name}" priced {price:d} with {stock:d} in stock'))
def a_listed_product(products, list_product, seller_id, name, price, stock):
    products[name] = list_product(name=name, price=price, stock=stock, seller_id=seller_id)


@given(parsers.cfparse('the buyer has {quantity:d} of "{name}" in the cart'))
def buyer_has_in_cart(products, add_to_cart, buyer_id, quantity, name):
    add_to_cart(buyer_id, products[name], quantity)


@given("the payment provider is configured", target_fixture="provider")
def provider_configured(gateway):
    return gateway


@given("the payment provider is not configured", target_fixture="provider")
def provider_not_configured(unconfigured_gateway):
    return unconfigured_gateway

"""Order placement: turning a buyer's cart into a pending order.

Placement is atomic from the caller's point of view: every cart line is
re-validated against the catalogue (product still listed, stock sufficient)
before anything is written, and the order, the stock decrements and the
cleared cart are then committed together in one unit of work. A failed
check leaves cart, stock and order ledger exactly as they were.

The buyer's cart lock and the lock of every product in the cart are held
for the whole unit of work, so two buyers racing for the last unit of a
product are serialized and only one of them gets it.
"""

import os

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Boolean, Identifier, String
from protean.utils.globals import current_domain

from marketplace.cart.cart import Cart
from marketplace.cart.items import load_cart
from marketplace.catalogue.product import Product
from marketplace.checkout.locks import cart_key, locks, product_key
from marketplace.domain import logger, marketplace
from marketplace.errors import EmptyCart, ProductRemoved
from marketplace.order.order import Order
from marketplace.order.sequence import order_numbers
from payments.gateway import get_gateway

DEFAULT_CURRENCY = "inr"


def order_currency() -> str:
    return os.environ.get("PAYMENT_CURRENCY", DEFAULT_CURRENCY).lower()


@marketplace.command(part_of="Order")
class PlaceOrder:
    buyer_id = Identifier(required=True)
    currency = String(required=True, max_length=3)
    payment_required = Boolean(default=False)


@marketplace.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        cart = load_cart(command.buyer_id)
        if cart is None or cart.is_empty():
            raise EmptyCart(command.buyer_id)

        product_repo = current_domain.repository_for(Product)
        priced = []
        for product_id, quantity in cart.lines():
            product = _listed_product(product_repo, product_id)
            product.ensure_available(quantity)
            priced.append((product, quantity))

        # Every line checked; from here on nothing can fail on stock.
        lines = []
        for product, quantity in priced:
            product.decrement_stock(quantity)
            product_repo.add(product)
            lines.append(
                {
                    "product_id": str(product.id),
                    "name": product.name,
                    "description": product.description,
                    "unit_price": product.price,
                    "quantity": quantity,
                }
            )

        order = Order.place(
            buyer_id=command.buyer_id,
            number=order_numbers.next(),
            lines=lines,
            currency=command.currency,
            payment_required=command.payment_required,
        )
        current_domain.repository_for(Order).add(order)

        cart.clear()
        current_domain.repository_for(Cart).add(cart)

        logger.info(
            "Order placed",
            order_id=str(order.id),
            order_number=order.number,
            buyer_id=command.buyer_id,
            total=order.total,
            payment_requirement=order.payment_requirement,
        )
        return str(order.id)


def _listed_product(repo, product_id) -> Product:
    try:
        product = repo.get(product_id)
    except ObjectNotFoundError:
        raise ProductRemoved(product_id) from None
    if not product.is_listed:
        raise ProductRemoved(product_id)
    return product


def place_order(buyer_id, gateway=None) -> str:
    """Place an order from the buyer's cart and return the new order id.

    Raises:
        EmptyCart: the buyer has no cart lines.
        ProductRemoved: a product in the cart no longer exists or is delisted.
        OutOfStock: a line asks for more than the product's current stock.
    """
    gateway = gateway or get_gateway()
    payment_required = gateway.is_configured()

    with locks.holding(cart_key(buyer_id)):
        cart = load_cart(buyer_id)
        product_ids = [product_id for product_id, _ in cart.lines()] if cart else []
        with locks.holding(*(product_key(pid) for pid in product_ids)):
            return current_domain.process(
                PlaceOrder(
                    buyer_id=buyer_id,
                    currency=order_currency(),
                    payment_required=payment_required,
                ),
                asynchronous=False,
            )

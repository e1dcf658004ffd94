"""Cart line management: commands and handler.

Carts are created lazily on the first add. Every cart command runs under
the buyer's cart lock so it serializes with order placement, which reads
and clears the same cart.
"""

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, Integer
from protean.utils.globals import current_domain

from marketplace.cart.cart import Cart
from marketplace.catalogue.product import Product
from marketplace.checkout.locks import cart_key, locks
from marketplace.domain import marketplace
from marketplace.errors import ProductRemoved


@marketplace.command(part_of="Cart")
class AddToCart:
    buyer_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@marketplace.command(part_of="Cart")
class UpdateCartQuantity:
    buyer_id = Identifier(required=True)
    product_id = Identifier(required=True)
    new_quantity = Integer(required=True, min_value=1)


@marketplace.command(part_of="Cart")
class RemoveFromCart:
    buyer_id = Identifier(required=True)
    product_id = Identifier(required=True)


@marketplace.command(part_of="Cart")
class ClearCart:
    buyer_id = Identifier(required=True)


def process_cart_command(command):
    with locks.holding(cart_key(command.buyer_id)):
        return current_domain.process(command, asynchronous=False)


def load_cart(buyer_id) -> Cart | None:
    try:
        return current_domain.repository_for(Cart).get(buyer_id)
    except ObjectNotFoundError:
        return None


@marketplace.command_handler(part_of=Cart)
class ManageCartItemsHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        try:
            product = current_domain.repository_for(Product).get(command.product_id)
        except ObjectNotFoundError:
            raise ProductRemoved(command.product_id) from None
        if not product.is_listed:
            raise ProductRemoved(command.product_id)

        cart = load_cart(command.buyer_id) or Cart.create(command.buyer_id)
        cart.add_item(product_id=command.product_id, quantity=command.quantity)
        current_domain.repository_for(Cart).add(cart)

    @handle(UpdateCartQuantity)
    def update_cart_quantity(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.get(command.buyer_id)
        cart.update_quantity(product_id=command.product_id, new_quantity=command.new_quantity)
        repo.add(cart)

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.get(command.buyer_id)
        cart.remove_item(product_id=command.product_id)
        repo.add(cart)

    @handle(ClearCart)
    def clear_cart(self, command):
        cart = load_cart(command.buyer_id)
        if cart is None:
            return
        cart.clear()
        current_domain.repository_for(Cart).add(cart)

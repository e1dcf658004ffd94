"""Product listing and maintenance: commands and handler.

Sellers may only change their own products; administrators may change any.
Commands that touch a product's stock are processed while holding that
product's lock so they serialize with order placement.
"""

from protean import handle
from protean.fields import Boolean, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from marketplace.catalogue.product import Product
from marketplace.checkout.locks import locks, product_key
from marketplace.domain import marketplace, logger
from marketplace.errors import Unauthorized


@marketplace.command(part_of="Product")
class ListProduct:
    seller_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    description = Text()
    category = String(max_length=100)
    price = Integer(required=True, min_value=1)
    stock = Integer(required=True, min_value=0)


@marketplace.command(part_of="Product")
class UpdateProduct:
    product_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    actor_is_admin = Boolean(default=False)
    name = String(max_length=255)
    description = Text()
    category = String(max_length=100)
    price = Integer(min_value=1)


@marketplace.command(part_of="Product")
class RestockProduct:
    product_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    actor_is_admin = Boolean(default=False)
    stock = Integer(required=True, min_value=0)


@marketplace.command(part_of="Product")
class MarkOutOfStock:
    product_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    actor_is_admin = Boolean(default=False)


@marketplace.command(part_of="Product")
class RemoveProduct:
    product_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    actor_is_admin = Boolean(default=False)


def process_product_command(command):
    """Process a product command under the product's lock.

    ``ListProduct`` creates a new product and needs no lock.
    """
    product_id = getattr(command, "product_id", None)
    if product_id is None:
        return current_domain.process(command, asynchronous=False)
    with locks.holding(product_key(product_id)):
        return current_domain.process(command, asynchronous=False)


@marketplace.command_handler(part_of=Product)
class ProductListingHandler:
    def _load_owned(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        if not command.actor_is_admin and str(product.seller_id) != str(command.actor_id):
            raise Unauthorized(command.actor_id, f"modify product {command.product_id}")
        return repo, product

    @handle(ListProduct)
    def list_product(self, command):
        product = Product.create(
            seller_id=command.seller_id,
            name=command.name,
            description=command.description,
            category=command.category,
            price=command.price,
            stock=command.stock,
        )
        current_domain.repository_for(Product).add(product)
        logger.info("Product listed", product_id=str(product.id), seller_id=command.seller_id)
        return str(product.id)

    @handle(UpdateProduct)
    def update_product(self, command):
        repo, product = self._load_owned(command)
        product.update_details(
            name=command.name,
            description=command.description,
            category=command.category,
            price=command.price,
        )
        repo.add(product)

    @handle(RestockProduct)
    def restock_product(self, command):
        repo, product = self._load_owned(command)
        product.restock(command.stock)
        repo.add(product)

    @handle(MarkOutOfStock)
    def mark_out_of_stock(self, command):
        repo, product = self._load_owned(command)
        product.mark_out_of_stock()
        repo.add(product)

    @handle(RemoveProduct)
    def remove_product(self, command):
        repo, product = self._load_owned(command)
        product.remove()
        repo.add(product)
        logger.info("Product removed", product_id=command.product_id)

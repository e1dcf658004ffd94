"""Product aggregate (CQRS): the catalogue entry and its stock ledger.

The catalogue itself is a collaborator of checkout: all the core reads from a
product is its authoritative price and available stock, and all it writes is
a stock decrement when an order is placed. Prices are integers in minor
currency units.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, Integer, String, Text

from marketplace.catalogue.events import (
    ProductDelisted,
    ProductDetailsUpdated,
    ProductListed,
    ProductRestocked,
    StockDecremented,
)
from marketplace.domain import marketplace
from marketplace.errors import OutOfStock, ProductRemoved


@marketplace.aggregate
class Product:
    seller_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    description = Text()
    category = String(max_length=100)
    price = Integer(required=True, min_value=1)
    stock = Integer(min_value=0, default=0)
    is_listed = Boolean(default=True)
    listed_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, seller_id, name, price, stock=0, description=None, category=None):
        now = datetime.now(UTC)
        product = cls(
            seller_id=seller_id,
            name=name,
            description=description,
            category=category,
            price=price,
            stock=stock,
            is_listed=True,
            listed_at=now,
            updated_at=now,
        )
        product.raise_(
            ProductListed(
                product_id=str(product.id),
                seller_id=str(seller_id),
                name=name,
                price=price,
                stock=stock,
            )
        )
        return product

    # -------------------------------------------------------------------
    # Seller maintenance
    # -------------------------------------------------------------------
    def _assert_listed(self):
        if not self.is_listed:
            raise ProductRemoved(str(self.id))

    def update_details(self, name=None, description=None, category=None, price=None):
        """Change descriptive fields or the price. Placed orders are unaffected."""
        self._assert_listed()
        previous_price = self.price

        if name is not None:
            self.name = name
        if description is not None:
            self.description = description
        if category is not None:
            self.category = category
        if price is not None:
            self.price = price
        self.updated_at = datetime.now(UTC)

        self.raise_(
            ProductDetailsUpdated(
                product_id=str(self.id),
                name=self.name,
                previous_price=previous_price,
                new_price=self.price,
            )
        )

    def restock(self, quantity):
        """Set the available stock to an absolute quantity."""
        self._assert_listed()
        if quantity is None or quantity < 0:
            raise ValidationError({"stock": ["Stock cannot be negative"]})

        previous_stock = self.stock
        self.stock = quantity
        self.updated_at = datetime.now(UTC)

        self.raise_(
            ProductRestocked(
                product_id=str(self.id),
                previous_stock=previous_stock,
                new_stock=quantity,
            )
        )

    def mark_out_of_stock(self):
        self.restock(0)

    def remove(self):
        """Take the product off sale. The record stays for existing orders."""
        self._assert_listed()
        self.is_listed = False
        self.updated_at = datetime.now(UTC)

        self.raise_(
            ProductDelisted(
                product_id=str(self.id),
                seller_id=str(self.seller_id),
            )
        )

    # -------------------------------------------------------------------
    # Stock ledger
    # -------------------------------------------------------------------
    def ensure_available(self, quantity):
        """Raise if ``quantity`` units cannot be sold right now."""
        self._assert_listed()
        if quantity > self.stock:
            raise OutOfStock(str(self.id), requested=quantity, available=self.stock)

    def decrement_stock(self, quantity):
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be positive"]})
        self.ensure_available(quantity)

        self.stock -= quantity
        self.updated_at = datetime.now(UTC)

        self.raise_(
            StockDecremented(
                product_id=str(self.id),
                quantity=quantity,
                remaining=self.stock,
            )
        )

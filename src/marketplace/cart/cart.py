"""Cart aggregate (CQRS): one cart per buyer, keyed by the buyer id.

A cart maps products to quantities. Lines are created and destroyed by buyer
actions and the whole cart is cleared when an order is placed from it.
Prices are deliberately absent: they are read from the catalogue at
placement time.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer

from marketplace.cart.events import CartCleared, CartItemAdded, CartItemRemoved, CartQuantityUpdated
from marketplace.domain import marketplace


@marketplace.entity(part_of="Cart")
class CartItem:
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    added_at = DateTime()


@marketplace.aggregate
class Cart:
    buyer_id = Identifier(identifier=True)
    items = HasMany(CartItem)
    updated_at = DateTime()

    @classmethod
    def create(cls, buyer_id):
        return cls(buyer_id=buyer_id, updated_at=datetime.now(UTC))

    def _line(self, product_id):
        return next((i for i in self.items if str(i.product_id) == str(product_id)), None)

    def lines(self) -> list[tuple[str, int]]:
        """(product_id, quantity) pairs in the order they were added."""
        return [(str(item.product_id), item.quantity) for item in self.items]

    def is_empty(self) -> bool:
        return not self.items

    def add_item(self, product_id, quantity):
        """Add a product, or increase its quantity if it is already in the cart."""
        if quantity is None or quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        now = datetime.now(UTC)
        existing = self._line(product_id)
        if existing:
            existing.quantity += quantity
            line_quantity = existing.quantity
        else:
            self.add_items(CartItem(product_id=product_id, quantity=quantity, added_at=now))
            line_quantity = quantity
        self.updated_at = now

        self.raise_(
            CartItemAdded(
                buyer_id=str(self.buyer_id),
                product_id=str(product_id),
                quantity=quantity,
                line_quantity=line_quantity,
            )
        )

    def update_quantity(self, product_id, new_quantity):
        if new_quantity is None or new_quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        item = self._line(product_id)
        if item is None:
            raise ValidationError({"product_id": ["Product is not in the cart"]})

        previous_quantity = item.quantity
        item.quantity = new_quantity
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartQuantityUpdated(
                buyer_id=str(self.buyer_id),
                product_id=str(product_id),
                previous_quantity=previous_quantity,
                new_quantity=new_quantity,
            )
        )

    def remove_item(self, product_id):
        item = self._line(product_id)
        if item is None:
            raise ValidationError({"product_id": ["Product is not in the cart"]})

        self.remove_items(item)
        self.updated_at = datetime.now(UTC)

        self.raise_(CartItemRemoved(buyer_id=str(self.buyer_id), product_id=str(product_id)))

    def clear(self):
        line_count = len(self.items)
        if line_count == 0:
            return
        self.remove_items(list(self.items))
        self.updated_at = datetime.now(UTC)

        self.raise_(CartCleared(buyer_id=str(self.buyer_id), line_count=line_count))

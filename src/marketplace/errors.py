"""Domain errors raised by checkout, ordering and reconciliation.

Every error names the entity it is about so callers can retry the right
thing. Input validation problems stay Protean ``ValidationError``s; the
classes here are the business conflicts the HTTP layer maps to specific
status codes.
"""


class MarketplaceError(Exception):
    """Base class for marketplace business errors."""

    code = "MarketplaceError"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def context(self) -> dict:
        """Entity identifiers to report alongside the error."""
        return {}


class EmptyCart(MarketplaceError):
    code = "EmptyCart"

    def __init__(self, buyer_id: str) -> None:
        super().__init__(f"Cart of buyer {buyer_id} is empty")
        self.buyer_id = buyer_id

    def context(self) -> dict:
        return {"buyer_id": self.buyer_id}


class ProductUnavailable(MarketplaceError):
    """A cart line can no longer be fulfilled."""

    code = "ProductUnavailable"

    def __init__(self, product_id: str, message: str) -> None:
        super().__init__(message)
        self.product_id = product_id

    def context(self) -> dict:
        return {"product_id": self.product_id}


class OutOfStock(ProductUnavailable):
    code = "OutOfStock"

    def __init__(self, product_id: str, requested: int, available: int) -> None:
        super().__init__(
            product_id,
            f"Insufficient stock for product {product_id}: {available} available, {requested} requested",
        )
        self.requested = requested
        self.available = available

    def context(self) -> dict:
        return {"product_id": self.product_id, "requested": self.requested, "available": self.available}


class ProductRemoved(ProductUnavailable):
    code = "ProductRemoved"

    def __init__(self, product_id: str) -> None:
        super().__init__(product_id, f"Product {product_id} is no longer listed")


class OrderNotFound(MarketplaceError):
    code = "OrderNotFound"

    def __init__(self, order_id: str) -> None:
        super().__init__(f"Order {order_id} not found")
        self.order_id = order_id

    def context(self) -> dict:
        return {"order_id": self.order_id}


class OrderNotPayable(MarketplaceError):
    """The order cannot be sent to the payment provider."""

    code = "OrderNotPayable"

    def __init__(self, order_id: str, reason: str) -> None:
        super().__init__(f"Order {order_id} cannot be paid: {reason}")
        self.order_id = order_id
        self.reason = reason

    def context(self) -> dict:
        return {"order_id": self.order_id}


class SessionNotFound(MarketplaceError):
    code = "SessionNotFound"

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Payment session {session_id} not found")
        self.session_id = session_id

    def context(self) -> dict:
        return {"session_id": self.session_id}


class Unauthorized(MarketplaceError):
    code = "Unauthorized"

    def __init__(self, principal_id: str | None, action: str) -> None:
        super().__init__(f"Principal {principal_id or 'anonymous'} may not {action}")
        self.principal_id = principal_id
        self.action = action

    def context(self) -> dict:
        return {"principal_id": self.principal_id}

"""Pydantic request/response schemas for the Marketplace API.

These are external contracts (anti-corruption layer), separate from
internal Protean commands. Money is always an integer amount in minor
currency units.
"""

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------
class ListProductRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    category: str | None = None
    price: int = Field(ge=1)
    stock: int = Field(ge=0, default=0)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Handwoven basket",
                    "description": "Palm leaf, 30cm",
                    "category": "Home",
                    "price": 5000,
                    "stock": 12,
                }
            ]
        }
    }


class UpdateProductRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    category: str | None = None
    price: int | None = Field(default=None, ge=1)


class RestockRequest(BaseModel):
    stock: int = Field(ge=0)


class ProductResponse(BaseModel):
    product_id: str
    seller_id: str
    name: str
    description: str | None = None
    category: str | None = None
    price: int
    stock: int
    is_listed: bool


class ProductIdResponse(BaseModel):
    product_id: str


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class AddToCartRequest(BaseModel):
    product_id: str
    quantity: int = Field(ge=1, default=1)


class UpdateCartQuantityRequest(BaseModel):
    quantity: int = Field(ge=1)


class CartLineSchema(BaseModel):
    product_id: str
    quantity: int


class CartResponse(BaseModel):
    buyer_id: str
    items: list[CartLineSchema] = []


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class OrderItemSchema(BaseModel):
    product_id: str
    name: str
    description: str | None = None
    unit_price: int
    quantity: int


class OrderResponse(BaseModel):
    order_id: str
    number: int
    buyer_id: str
    items: list[OrderItemSchema]
    total: int
    currency: str
    status: str
    display_status: str
    payment_requirement: str
    payment_session_id: str | None = None
    failure_reason: str | None = None
    placed_at: datetime | None = None
    settled_at: datetime | None = None


class OrderIdResponse(BaseModel):
    order_id: str


class UpdateOrderStatusRequest(BaseModel):
    status: str = Field(pattern="^(pending|paid|failed)$")
    reason: str | None = None


class StatusChangeResponse(BaseModel):
    order_id: str
    status: str
    changed: bool


# ---------------------------------------------------------------------------
# Checkout sessions
# ---------------------------------------------------------------------------
class CreateCheckoutSessionRequest(BaseModel):
    order_id: str
    success_url: str
    cancel_url: str

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "order_id": "3f0b8b0e-0000-0000-0000-000000000000",
                    "success_url": "https://market.example.com/payment-success",
                    "cancel_url": "https://market.example.com/payment-failure",
                }
            ]
        }
    }


class CheckoutSessionResponse(BaseModel):
    order_id: str
    session_id: str
    redirect_url: str
    reused: bool = False


class SessionStatusResponse(BaseModel):
    order_id: str
    session_id: str
    status: str
    outcome: str
    still_waiting: bool
    details: dict = {}


# ---------------------------------------------------------------------------
# Payment configuration
# ---------------------------------------------------------------------------
class PaymentConfigurationRequest(BaseModel):
    secret_key: str
    allowed_countries: list[str] | None = None


class PaymentConfiguredResponse(BaseModel):
    configured: bool


class StatusResponse(BaseModel):
    status: str = "ok"

"""FastAPI routes for the Marketplace: products, cart, orders and checkout.

The caller is identified by the ``X-Principal-Id`` header. Endpoints that
talk to the payment provider are plain ``def`` functions so the blocking
provider call runs in the threadpool instead of the event loop.
"""

from fastapi import APIRouter, Depends
from protean.utils.globals import current_domain

from marketplace.api.dependencies import current_admin, current_principal
from marketplace.api.schemas import (
    AddToCartRequest,
    CartLineSchema,
    CartResponse,
    CheckoutSessionResponse,
    CreateCheckoutSessionRequest,
    ListProductRequest,
    OrderIdResponse,
    OrderItemSchema,
    OrderResponse,
    PaymentConfigurationRequest,
    PaymentConfiguredResponse,
    ProductIdResponse,
    ProductResponse,
    RestockRequest,
    SessionStatusResponse,
    StatusChangeResponse,
    StatusResponse,
    UpdateCartQuantityRequest,
    UpdateOrderStatusRequest,
    UpdateProductRequest,
)
from marketplace.cart.items import (
    AddToCart,
    ClearCart,
    RemoveFromCart,
    UpdateCartQuantity,
    load_cart,
    process_cart_command,
)
from marketplace.catalogue.listing import (
    ListProduct,
    MarkOutOfStock,
    RemoveProduct,
    RestockProduct,
    UpdateProduct,
    process_product_command,
)
from marketplace.catalogue.product import Product
from marketplace.checkout.placement import place_order
from marketplace.checkout.reconciliation import get_session_status
from marketplace.checkout.session import (
    create_checkout_session,
    is_payment_configured,
    set_payment_configuration,
)
from marketplace.identity.principal import Principal
from marketplace.order.queries import all_orders, get_order_for, orders_for_buyer
from marketplace.order.settlement import update_order_status


def _product_response(product) -> ProductResponse:
    return ProductResponse(
        product_id=str(product.id),
        seller_id=str(product.seller_id),
        name=product.name,
        description=product.description,
        category=product.category,
        price=product.price,
        stock=product.stock,
        is_listed=product.is_listed,
    )


def _cart_response(buyer_id, cart) -> CartResponse:
    lines = cart.lines() if cart else []
    return CartResponse(
        buyer_id=buyer_id,
        items=[CartLineSchema(product_id=product_id, quantity=quantity) for product_id, quantity in lines],
    )


def _order_response(order) -> OrderResponse:
    return OrderResponse(
        order_id=str(order.id),
        number=order.number,
        buyer_id=str(order.buyer_id),
        items=[
            OrderItemSchema(
                product_id=str(item.product_id),
                name=item.name,
                description=item.description,
                unit_price=item.unit_price,
                quantity=item.quantity,
            )
            for item in order.items
        ],
        total=order.total,
        currency=order.currency,
        status=order.status,
        display_status=order.display_status,
        payment_requirement=order.payment_requirement,
        payment_session_id=order.payment_session_id,
        failure_reason=order.failure_reason,
        placed_at=order.placed_at,
        settled_at=order.settled_at,
    )


# ---------------------------------------------------------------------------
# Product Router
# ---------------------------------------------------------------------------
product_router = APIRouter(prefix="/products", tags=["products"])


@product_router.post("", status_code=201, response_model=ProductIdResponse)
async def list_product(body: ListProductRequest, principal: Principal = Depends(current_principal)) -> ProductIdResponse:
    command = ListProduct(
        seller_id=principal.id,
        name=body.name,
        description=body.description,
        category=body.category,
        price=body.price,
        stock=body.stock,
    )
    result = process_product_command(command)
    return ProductIdResponse(product_id=result)


@product_router.get("/{product_id}", response_model=ProductResponse)
async def get_product(product_id: str) -> ProductResponse:
    product = current_domain.repository_for(Product).get(product_id)
    return _product_response(product)


@product_router.put("/{product_id}", response_model=StatusResponse)
async def update_product(
    product_id: str, body: UpdateProductRequest, principal: Principal = Depends(current_principal)
) -> StatusResponse:
    command = UpdateProduct(
        product_id=product_id,
        actor_id=principal.id,
        actor_is_admin=principal.is_admin,
        name=body.name,
        description=body.description,
        category=body.category,
        price=body.price,
    )
    process_product_command(command)
    return StatusResponse()


@product_router.put("/{product_id}/stock", response_model=StatusResponse)
async def restock_product(
    product_id: str, body: RestockRequest, principal: Principal = Depends(current_principal)
) -> StatusResponse:
    command = RestockProduct(
        product_id=product_id,
        actor_id=principal.id,
        actor_is_admin=principal.is_admin,
        stock=body.stock,
    )
    process_product_command(command)
    return StatusResponse()


@product_router.post("/{product_id}/out-of-stock", response_model=StatusResponse)
async def mark_out_of_stock(product_id: str, principal: Principal = Depends(current_principal)) -> StatusResponse:
    command = MarkOutOfStock(
        product_id=product_id,
        actor_id=principal.id,
        actor_is_admin=principal.is_admin,
    )
    process_product_command(command)
    return StatusResponse()


@product_router.delete("/{product_id}", response_model=StatusResponse)
async def remove_product(product_id: str, principal: Principal = Depends(current_principal)) -> StatusResponse:
    command = RemoveProduct(
        product_id=product_id,
        actor_id=principal.id,
        actor_is_admin=principal.is_admin,
    )
    process_product_command(command)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.get("", response_model=CartResponse)
async def get_cart(principal: Principal = Depends(current_principal)) -> CartResponse:
    return _cart_response(principal.id, load_cart(principal.id))


@cart_router.post("/items", response_model=CartResponse)
async def add_cart_item(body: AddToCartRequest, principal: Principal = Depends(current_principal)) -> CartResponse:
    command = AddToCart(
        buyer_id=principal.id,
        product_id=body.product_id,
        quantity=body.quantity,
    )
    process_cart_command(command)
    return _cart_response(principal.id, load_cart(principal.id))


@cart_router.put("/items/{product_id}", response_model=CartResponse)
async def update_cart_item(
    product_id: str, body: UpdateCartQuantityRequest, principal: Principal = Depends(current_principal)
) -> CartResponse:
    command = UpdateCartQuantity(
        buyer_id=principal.id,
        product_id=product_id,
        new_quantity=body.quantity,
    )
    process_cart_command(command)
    return _cart_response(principal.id, load_cart(principal.id))


@cart_router.delete("/items/{product_id}", response_model=CartResponse)
async def remove_cart_item(product_id: str, principal: Principal = Depends(current_principal)) -> CartResponse:
    process_cart_command(RemoveFromCart(buyer_id=principal.id, product_id=product_id))
    return _cart_response(principal.id, load_cart(principal.id))


@cart_router.delete("", response_model=CartResponse)
async def clear_cart(principal: Principal = Depends(current_principal)) -> CartResponse:
    process_cart_command(ClearCart(buyer_id=principal.id))
    return _cart_response(principal.id, load_cart(principal.id))


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderIdResponse)
async def create_order(principal: Principal = Depends(current_principal)) -> OrderIdResponse:
    """Place an order from the caller's cart.

    Totals come from the catalogue; nothing in the request body is trusted.
    """
    order_id = place_order(principal.id)
    return OrderIdResponse(order_id=order_id)


@order_router.get("", response_model=list[OrderResponse])
async def list_my_orders(principal: Principal = Depends(current_principal)) -> list[OrderResponse]:
    return [_order_response(order) for order in orders_for_buyer(principal.id)]


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str, principal: Principal = Depends(current_principal)) -> OrderResponse:
    return _order_response(get_order_for(principal, order_id))


# ---------------------------------------------------------------------------
# Checkout Router
# ---------------------------------------------------------------------------
checkout_router = APIRouter(prefix="/checkout", tags=["checkout"])


@checkout_router.post("/sessions", status_code=201, response_model=CheckoutSessionResponse)
def create_session(
    body: CreateCheckoutSessionRequest, principal: Principal = Depends(current_principal)
) -> CheckoutSessionResponse:
    session = create_checkout_session(
        buyer_id=principal.id,
        order_id=body.order_id,
        success_url=body.success_url,
        cancel_url=body.cancel_url,
    )
    return CheckoutSessionResponse(
        order_id=session.order_id,
        session_id=session.session_id,
        redirect_url=session.redirect_url,
        reused=session.reused,
    )


@checkout_router.get("/sessions/{session_id}", response_model=SessionStatusResponse)
def session_status(session_id: str, principal: Principal = Depends(current_principal)) -> SessionStatusResponse:
    result = get_session_status(session_id, principal=principal)
    return SessionStatusResponse(
        order_id=result.order_id,
        session_id=result.session_id,
        status=result.status,
        outcome=result.outcome,
        still_waiting=result.still_waiting,
        details=result.details,
    )


# ---------------------------------------------------------------------------
# Payments Router
# ---------------------------------------------------------------------------
payments_router = APIRouter(prefix="/payments", tags=["payments"])


@payments_router.get("/configured", response_model=PaymentConfiguredResponse)
async def payment_configured() -> PaymentConfiguredResponse:
    return PaymentConfiguredResponse(configured=is_payment_configured())


# ---------------------------------------------------------------------------
# Admin Router
# ---------------------------------------------------------------------------
admin_router = APIRouter(prefix="/admin", tags=["admin"])


@admin_router.get("/orders", response_model=list[OrderResponse])
async def list_all_orders(principal: Principal = Depends(current_admin)) -> list[OrderResponse]:
    return [_order_response(order) for order in all_orders()]


@admin_router.put("/orders/{order_id}/status", response_model=StatusChangeResponse)
async def set_order_status(
    order_id: str, body: UpdateOrderStatusRequest, principal: Principal = Depends(current_admin)
) -> StatusChangeResponse:
    changed = update_order_status(principal, order_id, body.status, reason=body.reason)
    order = get_order_for(principal, order_id)
    return StatusChangeResponse(order_id=order_id, status=order.status, changed=changed)


@admin_router.put("/payments/configuration", response_model=PaymentConfiguredResponse)
async def configure_payments(
    body: PaymentConfigurationRequest, principal: Principal = Depends(current_principal)
) -> PaymentConfiguredResponse:
    set_payment_configuration(principal, body.secret_key, body.allowed_countries)
    return PaymentConfiguredResponse(configured=is_payment_configured())


routers = [product_router, cart_router, order_router, checkout_router, payments_router, admin_router]

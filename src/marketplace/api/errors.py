"""Mapping of domain and gateway errors onto HTTP responses.

Every error body names the error and carries the id of the offending
entity so clients can retry the right thing:

    {"error": "OutOfStock", "detail": "...", "product_id": "..."}
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from marketplace.domain import logger
from marketplace.errors import (
    EmptyCart,
    MarketplaceError,
    OrderNotFound,
    OrderNotPayable,
    ProductUnavailable,
    SessionNotFound,
    Unauthorized,
)
from payments.configuration import InvalidKeyFormat
from payments.gateway.port import GatewayError, GatewayRejected, GatewayUnavailable, NotConfigured

_MARKETPLACE_STATUS = {
    EmptyCart: 400,
    ProductUnavailable: 409,
    OrderNotFound: 404,
    SessionNotFound: 404,
    OrderNotPayable: 409,
    Unauthorized: 403,
}

_GATEWAY_STATUS = {
    NotConfigured: 503,
    GatewayRejected: 422,
    GatewayUnavailable: 502,
}


def _status_for(exc, table, default):
    for error_type, status_code in table.items():
        if isinstance(exc, error_type):
            return status_code
    return default


async def marketplace_error_handler(request: Request, exc: MarketplaceError) -> JSONResponse:
    status_code = _status_for(exc, _MARKETPLACE_STATUS, 400)
    logger.info("Request rejected", path=request.url.path, error=exc.code, status_code=status_code)
    return JSONResponse(
        status_code=status_code,
        content={"error": exc.code, "detail": exc.message, **exc.context()},
    )


async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    status_code = _status_for(exc, _GATEWAY_STATUS, 502)
    logger.warning("Payment provider error", path=request.url.path, error=exc.code, detail=str(exc), **exc.context())
    return JSONResponse(
        status_code=status_code,
        content={"error": exc.code, "detail": str(exc), **exc.context()},
    )


async def invalid_key_handler(request: Request, exc: InvalidKeyFormat) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": exc.code, "detail": str(exc)})


def install_error_handlers(app: FastAPI) -> None:
    """Register marketplace and gateway handlers next to Protean's own.

    Protean's handlers cover ``ValidationError`` (400) and
    ``ObjectNotFoundError`` (404).
    """
    register_exception_handlers(app)
    app.add_exception_handler(MarketplaceError, marketplace_error_handler)
    app.add_exception_handler(GatewayError, gateway_error_handler)
    app.add_exception_handler(InvalidKeyFormat, invalid_key_handler)

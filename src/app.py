"""Marketplace FastAPI application.

Web server that processes commands synchronously via HTTP. Every request
under a marketplace route is wrapped in the marketplace domain context.

Usage:
    uvicorn src.app:app --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV selects the config overlay and the log format.
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from marketplace.domain import marketplace  # noqa: E402
from marketplace.utils.logging import add_context, clear_context

marketplace.init()

_DOMAIN_PREFIXES = ("/products", "/cart", "/orders", "/checkout", "/payments", "/admin")


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Marketplace API",
    description="Local marketplace: carts, orders and payment reconciliation",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the Protean domain context for each marketplace request."""
    if request.url.path.startswith(_DOMAIN_PREFIXES):
        add_context(path=request.url.path, principal_id=request.headers.get("x-principal-id"))
        try:
            with marketplace.domain_context():
                response = await call_next(request)
        finally:
            clear_context()
        return response
    # No domain match; pass through (health check, docs, etc.)
    return await call_next(request)


# ---------------------------------------------------------------------------
# Routers and error handlers
# ---------------------------------------------------------------------------
from marketplace.api.errors import install_error_handlers  # noqa: E402
from marketplace.api.routes import routers  # noqa: E402
from payments.gateway import get_gateway  # noqa: E402

for router in routers:
    app.include_router(router)

install_error_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domain": marketplace.name,
            "payments_configured": get_gateway().is_configured(),
        }
    )

"""Campus marketplace storefront — FastAPI application.

Web server that processes storefront commands synchronously via HTTP.
Each request is wrapped in the storefront domain context.

Usage:
    uvicorn src.app:app --host 0.0.0.0 --port 8000 --reload
"""

import logging
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

import storefront.catalog  # noqa: F401  (load adapter packages before domain traversal)
import storefront.identity  # noqa: F401
import storefront.order_service  # noqa: F401
from storefront.domain import storefront
from storefront.utils.logging import configure_logging

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# Initialized at module level so uvicorn workers share it.
configure_logging(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    json_logs=os.environ.get("LOG_FORMAT", "console") == "json",
)
logging.getLogger("protean").setLevel(logging.WARNING)

storefront.init()

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Campus Marketplace Storefront API",
    description="Single-store carts, three-step checkout and escrow-backed orders",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the storefront domain context for every API request."""
    if request.url.path == "/health":
        return await call_next(request)
    with storefront.domain_context():
        response = await call_next(request)
    return response


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from storefront.api.routes import (  # noqa: E402
    cart_router,
    checkout_router,
    maintenance_router,
    order_router,
    store_router,
)

app.include_router(cart_router)
app.include_router(checkout_router)
app.include_router(order_router)
app.include_router(store_router)
app.include_router(maintenance_router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domains": {
                "storefront": {"name": storefront.name},
            },
        }
    )

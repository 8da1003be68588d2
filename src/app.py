"""Commerce FastAPI application.

Processes commands synchronously via HTTP inside the Commerce domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV controls which config overlay is applied.
from commerce.config import get_settings
from commerce.domain import commerce
from commerce.utils.logging import bind_request_context, clear_request_context, configure_logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

configure_logging(log_file_prefix="commerce")
commerce.init()

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Commerce API",
    description="Cart, orders, inventory and payments",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in get_settings().allowed_origins.split(",")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the Commerce domain context and bind request info to log lines."""
    bind_request_context(method=request.method, path=request.url.path, user_id=request.headers.get("x-user-id"))
    try:
        with commerce.domain_context():
            response = await call_next(request)
        return response
    finally:
        clear_request_context()


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from commerce.api import (  # noqa: E402
    cart_router,
    customization_router,
    install_error_handlers,
    order_router,
    product_router,
)

app.include_router(cart_router)
app.include_router(order_router)
app.include_router(customization_router)
app.include_router(product_router)
install_error_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domain": {"name": commerce.name},
            "gateway": get_settings().gateway,
        }
    )

"""Ordering service FastAPI application.

Web server for the cart, checkout and payment flows. Commands are processed
synchronously per request inside the ordering domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

import asyncio

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ordering.domain import ordering
from ordering.utils import settings
from ordering.utils.logging import configure_logging

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# Initialized at module level so uvicorn workers share it.
configure_logging()
ordering.init()

logger = structlog.get_logger(__name__)

# Paths that run inside the ordering domain context and under the request timeout
_DOMAIN_PREFIXES = ("/cart", "/orders", "/payment")


def _in_domain(path: str) -> bool:
    return path.startswith(_DOMAIN_PREFIXES)


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Ordering API",
    description="Shopping cart, checkout and payment reconciliation",
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
    """Push the ordering domain context for cart, order and payment requests."""
    if _in_domain(request.url.path):
        with ordering.domain_context():
            response = await call_next(request)
        return response
    # No domain match, pass through (health check, docs, etc.)
    return await call_next(request)


@app.middleware("http")
async def request_timeout_middleware(request: Request, call_next):
    """Answer 408 when a request outlives REQUEST_TIMEOUT_SECONDS.

    Writes already made by the abandoned request are not rolled back.
    """
    if not _in_domain(request.url.path):
        return await call_next(request)
    try:
        return await asyncio.wait_for(call_next(request), timeout=settings.REQUEST_TIMEOUT_SECONDS)
    except TimeoutError:
        logger.warning(
            "Request timed out",
            method=request.method,
            path=request.url.path,
            timeout_seconds=settings.REQUEST_TIMEOUT_SECONDS,
        )
        return JSONResponse(
            status_code=408,
            content={
                "success": False,
                "kind": "RequestTimeout",
                "message": "Request timeout. Please try again.",
            },
        )


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from ordering.api.errors import register_error_handlers  # noqa: E402
from ordering.api.live import live_router  # noqa: E402
from ordering.api.routes import cart_router, order_router, payment_router  # noqa: E402

app.include_router(cart_router)
app.include_router(order_router)
app.include_router(payment_router)
app.include_router(live_router)
register_error_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domains": {"ordering": {"name": ordering.name}},
            "paymentGateway": settings.PAYMENT_GATEWAY,
        }
    )

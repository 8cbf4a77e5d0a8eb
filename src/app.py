"""Pharmacy marketplace FastAPI application.

Serves the storefront order/review endpoints and the staff back office.
Every request runs inside the pharmacy domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

from contextlib import asynccontextmanager
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pharmacy.domain import pharmacy
from pharmacy.utils.logging import bind_request_context, clear_request_context, configure_logging

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# PROTEAN_ENV selects the config overlay from domain.toml
configure_logging()
pharmacy.init()

from pharmacy.api import admin_router, medicine_router, order_router, review_router  # noqa: E402
from pharmacy.api.deps import get_dispatcher  # noqa: E402
from pharmacy.api.errors import register_error_handlers  # noqa: E402


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # Let queued notifications finish before the process exits
    if get_dispatcher.cache_info().currsize:
        get_dispatcher().shutdown(wait=True)


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Pharmacy Marketplace API",
    description="Order lifecycle, reviews and back-office analytics",
    lifespan=lifespan,
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
    """Push the pharmacy domain context and tag log lines with a request id."""
    bind_request_context(request_id=request.headers.get("X-Request-Id") or uuid4().hex)
    try:
        with pharmacy.domain_context():
            return await call_next(request)
    finally:
        clear_request_context()


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
app.include_router(order_router)
app.include_router(review_router)
app.include_router(medicine_router)
app.include_router(admin_router)
register_error_handlers(app)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": {"name": pharmacy.name}})

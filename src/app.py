"""Storefront FastAPI application.

Single web server for the identity, catalogue, cart, order and analytics
APIs. Commands are processed synchronously via HTTP inside the storefront
domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

import os
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from protean.exceptions import ExpectedVersionError, ObjectNotFoundError
from protean.exceptions import ValidationError as ProteanValidationError

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV selects the config overlay (``test`` runs on mongomock).
from shared.domain import init_domain  # noqa: E402

storefront = init_domain()

from analytics.api import analytics_router  # noqa: E402
from catalogue.api import product_router  # noqa: E402
from identity.api import user_router  # noqa: E402
from ordering.api import cart_router, order_router  # noqa: E402
from shared.errors import (  # noqa: E402
    ConcurrencyConflictError,
    NotFoundError,
    StorefrontError,
    ValidationFailedError,
)
from shared.utils.db import setup_db  # noqa: E402
from shared.utils.logging import add_context, clear_context, configure_logging, get_logger  # noqa: E402

logger = get_logger(__name__)

ERROR_STATUS_CODES = {
    "NotFound": 404,
    "Unavailable": 400,
    "InsufficientStock": 400,
    "InvalidQuantity": 400,
    "EmptyCart": 400,
    "InvalidState": 400,
    "Forbidden": 403,
    "ValidationFailed": 422,
    "Conflict": 409,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(log_dir=os.getenv("LOG_DIR", "logs"))
    setup_db(storefront)
    logger.info("storefront_started")
    yield
    logger.info("storefront_stopped")


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Storefront API",
    description="E-commerce platform: Identity, Catalogue, Ordering & Analytics",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ORIGINS", "*").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the storefront domain context for each request."""
    with storefront.domain_context():
        response = await call_next(request)
    return response


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    """Bind a request id to every log line emitted while handling the request."""
    request_id = request.headers.get("X-Request-Id") or uuid.uuid4().hex
    clear_context()
    add_context(request_id=request_id, method=request.method, path=request.url.path)
    try:
        response = await call_next(request)
    finally:
        clear_context()
    response.headers["X-Request-Id"] = request_id
    return response


# ---------------------------------------------------------------------------
# Error handling
# ---------------------------------------------------------------------------
@app.exception_handler(StorefrontError)
async def storefront_error_handler(request: Request, exc: StorefrontError) -> JSONResponse:
    status_code = ERROR_STATUS_CODES.get(exc.kind, 400)
    logger.info("request_rejected", kind=exc.kind, status_code=status_code, error=exc.message)
    return JSONResponse(status_code=status_code, content={"success": False, **jsonable_encoder(exc.to_dict())})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return await storefront_error_handler(request, ValidationFailedError.from_pydantic(exc))


@app.exception_handler(ProteanValidationError)
async def domain_validation_handler(request: Request, exc: ProteanValidationError) -> JSONResponse:
    return await storefront_error_handler(request, ValidationFailedError.from_protean(exc))


@app.exception_handler(ObjectNotFoundError)
async def object_not_found_handler(request: Request, exc: ObjectNotFoundError) -> JSONResponse:
    return await storefront_error_handler(request, NotFoundError("Resource not found"))


@app.exception_handler(ExpectedVersionError)
async def version_conflict_handler(request: Request, exc: ExpectedVersionError) -> JSONResponse:
    conflict = ConcurrencyConflictError("The resource was modified by another request; please retry")
    return await storefront_error_handler(request, conflict)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error", error=str(exc))
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "InternalError", "message": "Internal server error"},
    )


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
app.include_router(user_router)
app.include_router(product_router)
app.include_router(cart_router)
app.include_router(order_router)
app.include_router(analytics_router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domain": storefront.name,
            "contexts": ["identity", "catalogue", "ordering", "analytics"],
        }
    )

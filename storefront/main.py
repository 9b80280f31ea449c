"""Storefront API built with FastAPI.

This module assembles the application: JSON logging, CORS, request-id and
size-limit middleware, the payment, catalog and feedback routers, a health
check, and the exception handlers that turn domain errors into generic JSON
error bodies. Internal details (gateway answers, database errors) are logged
server-side and never returned to the caller.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import db, settings
from .catalog.domain import (
    CatalogError,
    ImageUploadError,
    InvalidProduct,
    ProductNotFound,
    StoreError,
)
from .catalog.views import feedback_router, router as catalog_router
from .logging_filters import configure_logging
from .middleware import request_id_middleware, size_limit_middleware
from .payments.domain import (
    GatewayRejected,
    InvalidRequest,
    PaymentError,
    PaymentInitiationFailed,
)
from .payments.views import router as payments_router

logger = configure_logging(settings.LOG_LEVEL)
log = logging.getLogger(__name__)

SERVER_ERROR = {"error": "Server error"}


@asynccontextmanager
async def lifespan(app: FastAPI):
    # brief active wait until the DB accepts connections
    db.wait_for_db()
    db.init_db()
    logger.info("storefront started", extra={"port": settings.PORT})
    yield


app = FastAPI(title="Storefront", version="0.1.0", lifespan=lifespan)

# the last middleware added runs first: CORS wraps every answer, 413 included
app.middleware("http")(size_limit_middleware)
app.middleware("http")(request_id_middleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(payments_router)
app.include_router(catalog_router)
app.include_router(feedback_router)


@app.get("/health")
def health():
    """Liveness/health check endpoint including a database check."""
    db_ok = db.ping()
    return JSONResponse(
        {"ok": db_ok, "components": {"db": {"ok": db_ok}}},
        status_code=200 if db_ok else 503,
    )


# ---------------- Exception handlers ---------------- #

def _describe(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    # drop the "body" / "query" / "form" prefix from the location
    loc = ".".join(str(p) for p in first.get("loc", ())[1:])
    msg = first.get("msg", "invalid value")
    return f"Invalid request: {loc}: {msg}" if loc else f"Invalid request: {msg}"


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse({"error": _describe(exc)}, status_code=400)


@app.exception_handler(InvalidRequest)
async def invalid_request_handler(request: Request, exc: InvalidRequest):
    return JSONResponse({"error": str(exc)}, status_code=400)


@app.exception_handler(PaymentInitiationFailed)
async def initiation_failed_handler(request: Request, exc: PaymentInitiationFailed):
    status_code = 400 if isinstance(exc.__cause__, GatewayRejected) else 500
    return JSONResponse({"error": "Payment initiation failed"}, status_code=status_code)


@app.exception_handler(PaymentError)
async def payment_error_handler(request: Request, exc: PaymentError):
    log.error("unhandled payment error", extra={"error": type(exc).__name__})
    return JSONResponse(SERVER_ERROR, status_code=500)


@app.exception_handler(InvalidProduct)
async def invalid_product_handler(request: Request, exc: InvalidProduct):
    return JSONResponse({"error": str(exc)}, status_code=400)


@app.exception_handler(ProductNotFound)
async def product_not_found_handler(request: Request, exc: ProductNotFound):
    return JSONResponse({"error": "Product not found"}, status_code=404)


@app.exception_handler(StoreError)
@app.exception_handler(ImageUploadError)
async def backend_error_handler(request: Request, exc: CatalogError):
    log.error("backend failure", extra={"error": type(exc).__name__, "path": request.url.path})
    return JSONResponse(SERVER_ERROR, status_code=500)

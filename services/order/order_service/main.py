import logging
import time
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from prometheus_client import CollectorRegistry
from prometheus_fastapi_instrumentator import Instrumentator

from order_service.version import VERSION
from order_service.api import routes
from order_service.core.config import settings
from order_service.core.errors import OrderServiceError
from order_service.core.logging import configure_logging
from order_service.db.session import build_store

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

STARTED_AT = time.monotonic()

# Create instrumentator first, on a registry of its own
registry = CollectorRegistry()
instrumentator = Instrumentator(registry=registry)

app = FastAPI(title="Order Service", version=VERSION)

# Instrument the app BEFORE adding routes or middleware
instrumentator.instrument(app).expose(
    app,
    include_in_schema=False,
    endpoint="/order/metrics",
    should_gzip=True,
)

@app.exception_handler(OrderServiceError)
async def order_error_handler(request: Request, exc: OrderServiceError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())

@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    where = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = f"{where}: {first.get('msg')}" if where else str(first.get("msg", "Invalid request"))
    return JSONResponse(status_code=400, content={"error": "invalid_input", "detail": message})

@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "internal_error", "detail": "Internal server error"})

# Health endpoints
def _health():
    return {
        "status": "ok",
        "service": "order",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": round(time.monotonic() - STARTED_AT, 3),
    }

@app.get("/health")
def health():
    return _health()

@app.get("/order/health")
def order_health():
    return _health()

@app.get("/v1/_info")
def info():
    return {"service": "order", "version": VERSION}

@app.on_event("startup")
async def startup_event():
    for route in app.routes:
        if hasattr(route, "methods") and hasattr(route, "path"):
            logger.debug("%s %s", sorted(route.methods), route.path)

    if getattr(app.state, "store", None) is None:
        app.state.store = build_store(
            settings.POSTGRES_DSN,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_timeout=settings.DB_POOL_TIMEOUT_SECONDS,
        )
        logger.info("order store ready (pool_size=%s, timeout=%ss)", settings.DB_POOL_SIZE, settings.DB_POOL_TIMEOUT_SECONDS)

@app.on_event("shutdown")
async def shutdown_event():
    store = getattr(app.state, "store", None)
    if store is not None:
        store.dispose()

app.include_router(routes.router, prefix="/order", tags=["orders"])

# main.py
import logging
import time
from datetime import datetime, timezone
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from user_service.version import VERSION
from user_service.api.v1 import routes_users
from user_service.core.config import settings
from user_service.core.logging import configure_logging
from prometheus_client import CollectorRegistry
from prometheus_fastapi_instrumentator import Instrumentator

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

STARTED_AT = time.monotonic()

# Create instrumentator first, on a registry of its own
registry = CollectorRegistry()
instrumentator = Instrumentator(registry=registry)

app = FastAPI(title='User Service', version=VERSION)

# Instrument the app BEFORE adding routes or middleware
instrumentator.instrument(app).expose(
    app,
    include_in_schema=False,
    endpoint="/user/metrics",
    should_gzip=True,
)

@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    msg = errors[0].get('msg', 'Invalid request') if errors else 'Invalid request'
    return JSONResponse(status_code=400, content={'detail': msg})

def _health():
    return {
        'status': 'ok',
        'service': 'user',
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'uptime': round(time.monotonic() - STARTED_AT, 3),
    }

# Add BOTH health endpoints for compatibility
@app.get('/health')
def health(): return _health()

@app.get('/user/health')
def user_health(): return _health()

@app.get('/v1/_info')
def info(): return {'service':'user','version':VERSION}

@app.on_event("startup")
async def startup_event():
    for route in app.routes:
        if hasattr(route, "methods") and hasattr(route, "path"):
            logger.debug("%s %s", sorted(route.methods), route.path)

app.include_router(routes_users.router, prefix='/user/v1/users', tags=['users'])

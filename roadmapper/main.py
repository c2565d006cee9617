"""
Roadmapper API

Builds the FastAPI application: lifespan (tables in development, Redis
tenant cache, engine disposal), request middleware, error mapping and the
/api/v1 routers.

Tenant resolution is NOT middleware. It runs as a dependency
(api/deps.py) and hands endpoints an immutable RequestContext.
"""
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from roadmapper import __version__
from roadmapper.api.endpoints import auth, comments, customers, feedback, goals, ideas, initiatives, tenants, users
from roadmapper.config import get_settings
from roadmapper.core.exceptions import (
    DataLayerError,
    QueryTimeoutError,
    RecordValidationError,
    TenantIsolationError,
)
from roadmapper.core.tenancy import TENANT_HEADER
from roadmapper.core.tenant_cache import TenantCache
from roadmapper.database import dispose_engine, init_db
from roadmapper.utils.logging import bind_request_id, get_logger, reset_request_id, setup_logging

REQUEST_ID_HEADER = "X-Request-ID"

API_ROUTERS = (auth, tenants, users, goals, initiatives, ideas, feedback, customers, comments)

settings = get_settings()
setup_logging(log_level=settings.LOG_LEVEL, json_format=settings.ENVIRONMENT == "production")
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Roadmapper {__version__} starting ({settings.ENVIRONMENT})")

    # dev only - production schema is managed by migrations
    if settings.ENVIRONMENT == "development":
        await init_db()

    app.state.tenant_cache = TenantCache.from_settings(settings)

    yield

    if app.state.tenant_cache is not None:
        await app.state.tenant_cache.close()
    await dispose_engine()
    logger.info("Roadmapper stopped")


app = FastAPI(
    title="Roadmapper",
    description="Multi-tenant product management: goals, initiatives, ideas, feedback and customers",
    version=__version__,
    lifespan=lifespan,
)


# ============================================================================
# MIDDLEWARE
# ============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.ENVIRONMENT == "development" else settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", TENANT_HEADER, REQUEST_ID_HEADER],
    expose_headers=[REQUEST_ID_HEADER],
)


@app.middleware("http")
async def request_context(request: Request, call_next):
    """
    Tag the request with an id (the caller's X-Request-ID or a new one).

    The id is bound to every log line written while handling the request
    and echoed back together with the processing time.
    """
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
    token = bind_request_id(request_id)
    started = time.perf_counter()
    try:
        response = await call_next(request)
    finally:
        reset_request_id(token)

    elapsed = time.perf_counter() - started
    response.headers[REQUEST_ID_HEADER] = request_id
    response.headers["X-Process-Time"] = f"{elapsed:.4f}"
    return response


# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================

def _internal_error() -> JSONResponse:
    """Opaque 500. Details only go to the log."""
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error", "type": "internal_error"}
    )


@app.exception_handler(RecordValidationError)
async def record_validation_error_handler(request: Request, exc: RecordValidationError):
    """Rejected by a store validator before anything was written."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": exc.message, "field": exc.field, "type": "validation_error"}
    )


@app.exception_handler(TenantIsolationError)
async def tenant_isolation_error_handler(request: Request, exc: TenantIsolationError):
    """
    The query builder refused an unscoped statement.

    CRITICAL: always a handler bug, alert on it.
    """
    logger.critical(
        f"TENANT ISOLATION VIOLATION: {exc}",
        extra={"path": request.url.path, "method": request.method}
    )
    return _internal_error()


@app.exception_handler(QueryTimeoutError)
async def query_timeout_handler(request: Request, exc: QueryTimeoutError):
    logger.error(
        f"Request deadline of {settings.REQUEST_TIMEOUT_SECONDS}s exceeded",
        extra={"path": request.url.path, "method": request.method}
    )
    return JSONResponse(
        status_code=status.HTTP_504_GATEWAY_TIMEOUT,
        content={"detail": "Request timed out", "type": "timeout"}
    )


@app.exception_handler(DataLayerError)
async def data_layer_error_handler(request: Request, exc: DataLayerError):
    """The request transaction has already been rolled back."""
    logger.error(
        f"Data layer error: {type(exc).__name__}: {exc}",
        exc_info=exc,
        extra={"path": request.url.path, "method": request.method}
    )
    return _internal_error()


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """
    Last resort.

    SECURITY: the exception text is only returned when DEBUG is on.
    """
    logger.error(
        f"Unhandled {type(exc).__name__}: {exc}",
        exc_info=exc,
        extra={"path": request.url.path, "method": request.method}
    )
    if settings.DEBUG:
        return JSONResponse(status_code=500, content={"detail": str(exc), "type": type(exc).__name__})
    return _internal_error()


# ============================================================================
# ROUTES
# ============================================================================

@app.get("/health", tags=["health"])
async def health_check():
    """Liveness probe. Does not touch the database."""
    return {"status": "healthy", "version": __version__, "environment": settings.ENVIRONMENT}


@app.get("/", tags=["root"], include_in_schema=False)
async def root():
    return {"name": "Roadmapper API", "version": __version__, "docs": "/docs"}


for module in API_ROUTERS:
    app.include_router(module.router, prefix="/api/v1")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "roadmapper.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )

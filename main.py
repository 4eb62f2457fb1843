"""HRM Console — FastAPI Backend

Authentication, product catalog and super admin user management in front of
the hosted Supabase project (or a local SQL database in development).
"""

import logging
import uuid
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator

from hrm_console.api import auth, products, users
from hrm_console.core.config import settings
from hrm_console.core.errors import ConsoleError
from hrm_console.database.session import init_db
from hrm_console.observability import setup_structured_logging

setup_structured_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("HRM Console starting up", extra={"data_backend": settings.DATA_BACKEND})
    if settings.DATA_BACKEND == "sql":
        init_db()
    yield
    logger.info("HRM Console shutting down")


app = FastAPI(
    title="HRM Console API",
    description="Sign-in, product catalog and delegated user management.",
    version="0.1.0",
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
    request.state.request_id = request_id
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id)
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------

@app.exception_handler(ConsoleError)
async def console_error_handler(request: Request, exc: ConsoleError):
    request_id = getattr(request.state, "request_id", "unknown")
    if exc.status_code >= 500:
        logger.error("Data service failure: %s", exc.message, extra={"request_id": request_id})
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "request_id": request_id},
    )


@app.exception_handler(500)
async def internal_error_handler(request: Request, exc: Exception):
    request_id = getattr(request.state, "request_id", "unknown")
    logger.error("Internal error", exc_info=exc, extra={"request_id": request_id})
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "request_id": request_id},
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    request_id = getattr(request.state, "request_id", "unknown")
    return JSONResponse(
        status_code=422,
        content={
            "detail": jsonable_encoder(exc.errors()),
            "request_id": request_id,
        },
    )


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------

app.include_router(auth.router, prefix=settings.API_V1_PREFIX)
app.include_router(products.router, prefix=settings.API_V1_PREFIX)
app.include_router(users.router, prefix=settings.API_V1_PREFIX)

# ---------------------------------------------------------------------------
# Prometheus
# ---------------------------------------------------------------------------

Instrumentator().instrument(app).expose(app, include_in_schema=False)


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

@app.get("/health", tags=["system"])
def health():
    return {"status": "ok", "data_backend": settings.DATA_BACKEND}

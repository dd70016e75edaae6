# app/main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status as fastapi_status, HTTPException
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from fastapi.middleware.gzip import GZipMiddleware
from slowapi.errors import RateLimitExceeded
from loguru import logger

# Import Middleware & Konfigurasi
from app.core import config
from app.core.config import setup_logging
from app.core.errors import ServiceError
from app.core.rate_limiter import get_rate_limiter, rate_limit_exception_handler
from app.middleware.logging import RequestLoggingMiddleware
from app.middleware.authentication import AuthMiddleware

# Import komponen aplikasi lain
from app.api.v1.api import api_router_v1
from app.db.database import init_db, close_db, get_client
from app.services.container import build_container


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info("Application startup...")
    if config.INVENTORY_BACKEND == "mongo":
        await init_db()
        logger.info("Database initialized.")
    app.state.services = build_container()
    logger.info("Borrowing orchestrator wired.")
    yield
    logger.info("Application shutdown...")
    await app.state.services.aclose()
    close_db()


app = FastAPI(
    title="Borrowing Admin API",
    description="Admin approve/reject/return workflow over the borrowing, inventory and notification services.",
    lifespan=lifespan,
)

# --- KONFIGURASI MIDDLEWARE ---

# 1. Error Handling
app.add_exception_handler(RateLimitExceeded, rate_limit_exception_handler)

@app.exception_handler(ServiceError)
async def service_exception_handler(request: Request, exc: ServiceError):
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "error": type(exc).__name__},
    )

@app.exception_handler(RequestValidationError)
@app.exception_handler(ValidationError)
async def validation_exception_handler(request: Request, exc: ValidationError):
    logger.error(f"Validation Error: {exc.errors()}")
    return JSONResponse(
        status_code=fastapi_status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": "Validation Error", "errors": jsonable_errors(exc)},
    )

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    logger.warning(f"HTTP Exception: Status={exc.status_code}, Detail={exc.detail}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=getattr(exc, "headers", None))

@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    logger.opt(exception=exc).error(f"Unhandled Exception: {exc!r}")
    return JSONResponse(status_code=fastapi_status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": "An internal server error occurred."})


def jsonable_errors(exc: ValidationError) -> list:
    # ctx bisa berisi objek exception yang tidak bisa di-serialize
    return [{k: v for k, v in err.items() if k != "ctx"} for err in exc.errors()]


# 2. Authentication Middleware (inner)
app.add_middleware(AuthMiddleware)

# 3. Request Logging Middleware (outer, supaya request_id sudah ada saat auth)
app.add_middleware(RequestLoggingMiddleware)

# 4. Rate Limiter State (untuk decorator @limiter.limit)
app.state.limiter = get_rate_limiter()

# 5. GZip Middleware
app.add_middleware(GZipMiddleware, minimum_size=500)

# --- END MIDDLEWARE ---

app.include_router(api_router_v1)


@app.get("/")
async def read_root():
    return {"message": "Borrowing Admin API"}

@app.get("/health")
async def health():
    return {"status": "ok", "inventory_backend": config.INVENTORY_BACKEND}

@app.get("/health/db")
async def health_db():
    client = get_client()
    if client is None:
        return {"status": "skipped", "message": "MongoDB is not used by this inventory backend."}
    try:
        await client.admin.command('ping')
        return {"status": "success", "message": "MongoDB connection is healthy."}
    except Exception as e:
        logger.warning(f"MongoDB ping failed: {e}")
        raise HTTPException(status_code=503, detail="MongoDB connection failed.")

# app/core/rate_limiter.py
import os

from fastapi.responses import JSONResponse
from loguru import logger
from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from starlette.requests import Request

# In-memory untuk satu instance; set RATE_LIMIT_STORAGE_URI (mis. redis://...) untuk multi-instance
limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=os.getenv("RATE_LIMIT_STORAGE_URI", "memory://"),
    enabled=os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true",
)

READ_LIMIT = os.getenv("RATE_LIMIT_READ", "120/minute")
WRITE_LIMIT = os.getenv("RATE_LIMIT_WRITE", "60/minute")

def get_rate_limiter() -> Limiter:
    return limiter

def rate_limit_exception_handler(request: Request, exc: RateLimitExceeded):
    logger.warning(f"Rate limit exceeded for {get_remote_address(request)} on {request.url.path}: {exc.detail}")
    return JSONResponse(
        status_code=429,
        content={"detail": f"Rate limit exceeded: {exc.detail}"},
    )

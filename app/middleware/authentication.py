# app/middleware/authentication.py
from typing import Optional, Set, Callable, Awaitable

from fastapi import Request, status
from fastapi.security.utils import get_authorization_scheme_param
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from starlette.types import ASGIApp
from loguru import logger
from jose import JWTError

from app.core.security import decode_access_token


# Daftar path yang TIDAK memerlukan autentikasi
PUBLIC_PATHS: Set[str] = {
    "/",
    "/docs",
    "/openapi.json",
    "/redoc",
}

def is_public_path(path: str) -> bool:
    """Checks if the given path matches or starts with any public path prefix."""
    if path in PUBLIC_PATHS:
        return True
    if path.startswith("/docs") or path.startswith("/redoc"):
        return True
    if path.startswith("/health"): # /health, /health/db
        return True
    return False


class AuthMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp):
        super().__init__(app)

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        path = request.url.path
        request_id = getattr(request.state, 'request_id', 'N/A')

        if is_public_path(path):
            logger.debug(f"RID:{request_id} Public path accessed: {path}. Skipping auth.")
            return await call_next(request)

        authorization: Optional[str] = request.headers.get("Authorization")
        scheme, token = get_authorization_scheme_param(authorization or "")
        if not authorization or scheme.lower() != "bearer" or not token:
            logger.warning(f"RID:{request_id} Auth failed: No valid Bearer token for protected path {path}.")
            return JSONResponse(
                 status_code=status.HTTP_401_UNAUTHORIZED,
                 content={"detail": "Not authenticated"},
                 headers={"WWW-Authenticate": "Bearer"},
            )

        try:
            request.state.token_claims = decode_access_token(token)
            logger.debug(f"RID:{request_id} Auth successful for '{request.state.token_claims['sub']}' accessing {path}.")
        except JWTError as e:
            logger.warning(f"RID:{request_id} Auth failed: Invalid token for path {path}. Error: {e}")
            return JSONResponse(
                 status_code=status.HTTP_401_UNAUTHORIZED,
                 content={"detail": f"Invalid token: {str(e)}"},
                 headers={"WWW-Authenticate": "Bearer"},
            )

        return await call_next(request)

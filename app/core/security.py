# app/core/security.py
from datetime import datetime, timedelta, timezone
from typing import Optional
import logging

from fastapi import Depends, HTTPException, status, Request
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt

from app.core.config import SECRET_KEY, ALGORITHM, ACCESS_TOKEN_EXPIRE_MINUTES, ADMIN_ROLE
from app.models.user import AdminIdentity

logger = logging.getLogger(__name__)

# Token diterbitkan oleh auth-service; di sini hanya divalidasi
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token", auto_error=False)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Decode and verify a bearer token. Raises JWTError when invalid or missing 'sub'."""
    payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    if payload.get("sub") is None:
        raise JWTError("Subject ('sub') missing in token payload.")
    return payload


async def get_current_identity(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme),
) -> AdminIdentity:
    """
    Builds the caller's identity from the claims AuthMiddleware stored on
    request.state, decoding the token again if the middleware did not run.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    claims: Optional[dict] = getattr(request.state, "token_claims", None)
    if claims is None:
        logger.warning("Token claims not found in request state, attempting token decode in dependency.")
        if not token:
            raise credentials_exception
        try:
            claims = decode_access_token(token)
        except JWTError:
            logger.warning("Token decode failed in get_current_identity dependency.")
            raise credentials_exception

    return AdminIdentity(
        id=str(claims["sub"]),
        role=str(claims.get("role", "")),
        username=claims.get("username"),
    )


async def require_admin(identity: AdminIdentity = Depends(get_current_identity)) -> AdminIdentity:
    if identity.role != ADMIN_ROLE:
        logger.warning(
            f"Forbidden: '{identity.id}' with role '{identity.role}' attempted action requiring role '{ADMIN_ROLE}'."
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Operation not permitted. Required role: {ADMIN_ROLE}",
        )
    return identity

# app/models/user.py
from typing import Optional
from pydantic import BaseModel, Field


class AdminIdentity(BaseModel):
    """Acting admin, taken from the bearer token (``sub`` / ``role`` claims).

    Users are owned by the auth service; only the id travels through to the
    borrowing-service for audit attribution.
    """
    id: str = Field(..., min_length=1)
    role: str
    username: Optional[str] = None

    class Config: frozen=True

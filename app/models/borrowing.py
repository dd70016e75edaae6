# app/models/borrowing.py
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field, field_validator

from .enum import BorrowingStatus


class BorrowRequest(BaseModel):
    """A loan request as returned by the borrowing-service."""
    id: str = Field(..., min_length=1)
    item_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    quantity: int = Field(..., gt=0, description="Number of units borrowed")
    status: BorrowingStatus
    admin_notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config: from_attributes=True

    # --- Request body untuk endpoint admin approve/reject/return ---
    class Action(BaseModel):
        borrowing_id: str = Field(..., min_length=1, description="ID of the borrowing request")
        admin_notes: Optional[str] = Field(None, max_length=500)

        @field_validator("borrowing_id")
        @classmethod
        def borrowing_id_not_blank(cls, value: str) -> str:
            value = value.strip()
            if not value:
                raise ValueError("borrowing_id must not be blank")
            return value

# app/models/enum.py
from enum import Enum
from typing import Optional, Union

from app.core.errors import InputValidationError

class BorrowingStatus(str, Enum):
    PENDING = "pending"     # <-- Status awal setelah request user
    APPROVED = "approved"   # <-- Disetujui admin, stok sudah dikurangi
    REJECTED = "rejected"   # <-- Ditolak admin
    RETURNED = "returned"   # <-- Barang kembali, stok dikembalikan

class NotificationType(str, Enum):
    BORROW_APPROVED = "BORROW_APPROVED"
    BORROW_REJECTED = "BORROW_REJECTED"


def parse_status_filter(status_filter: Union[BorrowingStatus, str, None]) -> Optional[BorrowingStatus]:
    """Accept a BorrowingStatus or its wire string ("pending", ...); empty means no filter."""
    if not status_filter:
        return None
    try:
        return BorrowingStatus(status_filter)
    except ValueError:
        allowed = ", ".join(s.value for s in BorrowingStatus)
        raise InputValidationError(f"Invalid status_filter '{status_filter}'. Allowed: {allowed}.") from None

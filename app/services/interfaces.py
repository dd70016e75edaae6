# app/services/interfaces.py
"""Capability interfaces for the three services the orchestrator coordinates.

Production adapters live in ``app.services.remote`` (HTTP) and
``app.services.mongo_inventory`` (MongoDB). Tests use in-memory fakes.
"""
from abc import ABC, abstractmethod
from typing import List, Optional

from app.models.borrowing import BorrowRequest
from app.models.enum import BorrowingStatus
from app.models.item import Item
from app.models.notification import Notification


class BorrowingService(ABC):
    """Authoritative owner of BorrowRequest and its status machine."""

    @abstractmethod
    async def approve_borrowing(self, borrowing_id: str, admin_id: str, admin_notes: str) -> BorrowRequest:
        """pending -> approved. Raises NotFoundError / InvalidStateError."""

    @abstractmethod
    async def reject_borrowing(self, borrowing_id: str, admin_id: str, admin_notes: str) -> BorrowRequest:
        """pending -> rejected. Raises NotFoundError / InvalidStateError."""

    @abstractmethod
    async def return_item(self, borrowing_id: str, user_id: str, admin_notes: str) -> BorrowRequest:
        """approved -> returned. Raises NotFoundError / InvalidStateError."""

    @abstractmethod
    async def get_all_borrowings(self, status_filter: Optional[BorrowingStatus] = None) -> List[BorrowRequest]:
        ...

    @abstractmethod
    async def get_history(self) -> List[BorrowRequest]:
        ...


class InventoryService(ABC):
    """Authoritative owner of Item.available_quantity."""

    @abstractmethod
    async def get_item(self, item_id: str) -> Item:
        ...

    @abstractmethod
    async def update_item(self, item_id: str, available_quantity: int) -> Item:
        """Set the absolute available quantity. Negative values raise InsufficientStockError."""


class NotificationService(ABC):

    @abstractmethod
    async def send_notification(self, notification: Notification) -> None:
        """Fire-and-forget delivery. Failures raise NotificationDeliveryError."""

import os

# Settings are read at import time by app.core.config
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-admin-orchestrator")
os.environ.setdefault("INVENTORY_BACKEND", "http")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("REMOTE_RETRY_BACKOFF_SECONDS", "0")

import pytest

from app.models.borrowing import BorrowRequest
from app.models.enum import BorrowingStatus
from app.models.item import Item
from app.models.user import AdminIdentity
from app.services.orchestrator import BorrowingOrchestrator

from fakes import FakeBorrowingService, FakeInventoryService, FakeNotificationService


@pytest.fixture
def admin():
    return AdminIdentity(id="admin-1", role="admin", username="siti")


@pytest.fixture
def borrowing_service():
    return FakeBorrowingService([
        BorrowRequest(id="B1", item_id="I1", user_id="U1", quantity=2, status=BorrowingStatus.PENDING),
        BorrowRequest(id="B2", item_id="I1", user_id="U2", quantity=1, status=BorrowingStatus.PENDING),
        BorrowRequest(id="B3", item_id="I2", user_id="U3", quantity=4, status=BorrowingStatus.APPROVED),
        BorrowRequest(id="B4", item_id="I2", user_id="U1", quantity=1, status=BorrowingStatus.REJECTED),
    ])


@pytest.fixture
def inventory_service():
    return FakeInventoryService([
        Item(id="I1", name="Projector", available_quantity=3),
        Item(id="I2", name="Camera Tripod", available_quantity=0),
    ])


@pytest.fixture
def notification_service():
    return FakeNotificationService()


@pytest.fixture
def orchestrator(borrowing_service, inventory_service, notification_service):
    return BorrowingOrchestrator(borrowing_service, inventory_service, notification_service)

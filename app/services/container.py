# app/services/container.py
from dataclasses import dataclass, field
from typing import List

import httpx
from fastapi import Request
from loguru import logger

from app.core import config
from app.services.interfaces import InventoryService
from app.services.mongo_inventory import MongoInventoryService
from app.services.orchestrator import BorrowingOrchestrator
from app.services.remote.borrowing import HttpBorrowingService
from app.services.remote.inventory import HttpInventoryService
from app.services.remote.notification import HttpNotificationService
from app.services.remote.transport import RemoteServiceClient


@dataclass
class ServiceContainer:
    """Explicit wiring of the orchestrator and its adapters for one app instance."""
    orchestrator: BorrowingOrchestrator
    http_clients: List[httpx.AsyncClient] = field(default_factory=list)

    async def aclose(self) -> None:
        for client in self.http_clients:
            await client.aclose()
        logger.info(f"Closed {len(self.http_clients)} collaborator HTTP clients.")


def _remote(name: str, base_url: str, clients: List[httpx.AsyncClient]) -> RemoteServiceClient:
    client = httpx.AsyncClient(base_url=base_url, timeout=config.REMOTE_TIMEOUT_SECONDS)
    clients.append(client)
    logger.info(f"{name} -> {base_url}")
    return RemoteServiceClient(
        name,
        client,
        max_attempts=config.REMOTE_MAX_ATTEMPTS,
        backoff_seconds=config.REMOTE_RETRY_BACKOFF_SECONDS,
    )


def build_container() -> ServiceContainer:
    clients: List[httpx.AsyncClient] = []
    borrowing = HttpBorrowingService(_remote("borrowing-service", config.BORROWING_SERVICE_URL, clients))
    notifications = HttpNotificationService(_remote("notification-service", config.NOTIFICATION_SERVICE_URL, clients))

    inventory: InventoryService
    if config.INVENTORY_BACKEND == "mongo":
        inventory = MongoInventoryService()
        logger.info("inventory-service -> MongoDB items collection")
    else:
        inventory = HttpInventoryService(_remote("inventory-service", config.INVENTORY_SERVICE_URL, clients))

    orchestrator = BorrowingOrchestrator(borrowing, inventory, notifications)
    return ServiceContainer(orchestrator=orchestrator, http_clients=clients)


# --- FastAPI dependency ---
def get_orchestrator(request: Request) -> BorrowingOrchestrator:
    return request.app.state.services.orchestrator

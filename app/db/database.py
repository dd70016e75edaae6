# app/db/database.py
import logging
from typing import Optional

import motor.motor_asyncio
from beanie import init_beanie

from app.core.config import MONGODB_URL, DATABASE_NAME
from app.models.item import InventoryItem

logger = logging.getLogger(__name__)

_client: Optional[motor.motor_asyncio.AsyncIOMotorClient] = None


async def init_db() -> motor.motor_asyncio.AsyncIOMotorClient:
    """Inisialisasi koneksi database dan Beanie (hanya untuk INVENTORY_BACKEND=mongo)."""
    global _client
    logger.info("Connecting to MongoDB...")
    _client = motor.motor_asyncio.AsyncIOMotorClient(MONGODB_URL)
    database = _client[DATABASE_NAME]
    logger.info(f"Using database: {DATABASE_NAME}")

    await init_beanie(database=database, document_models=[InventoryItem])
    logger.info("Beanie initialization complete for InventoryItem.")
    return _client


def get_client() -> Optional[motor.motor_asyncio.AsyncIOMotorClient]:
    return _client


def close_db() -> None:
    global _client
    if _client is not None:
        _client.close()
        _client = None
        logger.info("MongoDB client closed.")

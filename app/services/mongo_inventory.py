# app/services/mongo_inventory.py
from datetime import datetime, timezone

from bson import ObjectId
from loguru import logger

from app.core.errors import InputValidationError, InsufficientStockError, NotFoundError
from app.models.item import InventoryItem, Item
from app.services.interfaces import InventoryService


def _object_id(item_id: str) -> ObjectId:
    if not ObjectId.is_valid(item_id):
        logger.warning(f"Invalid ObjectId format for item: {item_id}")
        raise InputValidationError(f"Invalid item ID format: '{item_id}'.")
    return ObjectId(item_id)


class MongoInventoryService(InventoryService):
    """InventoryService backed directly by the ``items`` collection (Beanie/Motor).

    Requires ``init_db()`` to have registered InventoryItem.
    """

    async def get_item(self, item_id: str) -> Item:
        item = await InventoryItem.find_one({"_id": _object_id(item_id), "is_active": True})
        if not item:
            logger.info(f"Active item lookup failed for ID '{item_id}'.")
            raise NotFoundError(f"Active item with ID '{item_id}' not found.")
        return item.to_item()

    async def update_item(self, item_id: str, available_quantity: int) -> Item:
        oid = _object_id(item_id)
        if available_quantity < 0:
            raise InsufficientStockError(
                f"Refusing to set negative available_quantity ({available_quantity}) on item '{item_id}'."
            )
        result = await InventoryItem.get_motor_collection().update_one(
            {"_id": oid, "is_active": True},
            {"$set": {"available_quantity": available_quantity, "updated_at": datetime.now(timezone.utc)}},
        )
        if result.matched_count == 0:
            raise NotFoundError(f"Active item with ID '{item_id}' not found.")
        logger.debug(f"Item {item_id} available_quantity set to {available_quantity}.")
        return await self.get_item(item_id)

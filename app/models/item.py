# app/models/item.py
from datetime import datetime, timezone
from beanie import Document
from pydantic import BaseModel, Field
from pymongo import IndexModel, ASCENDING


class Item(BaseModel):
    """Lendable unit as seen by the orchestrator (owned by the inventory-service)."""
    id: str = Field(..., min_length=1)
    name: str
    # Boleh negatif saat dibaca (race approve/return di inventory-service); penulisan tetap dijaga
    available_quantity: int

    class Config: from_attributes=True


class InventoryItem(Document):
    """Model Dokumen Beanie untuk backend inventaris MongoDB (INVENTORY_BACKEND=mongo)."""
    name: str = Field(..., max_length=200)
    available_quantity: int = Field(default=0)
    is_active: bool = Field(default=True)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    class Settings:
        name = "items"
        indexes = [
            IndexModel([("name", ASCENDING)], name="item_name_index"),
            IndexModel([("available_quantity", ASCENDING)], name="item_available_quantity_index"),
            IndexModel([("is_active", ASCENDING)], name="item_is_active_index"),
        ]

    def to_item(self) -> Item:
        return Item(id=str(self.id), name=self.name, available_quantity=self.available_quantity)

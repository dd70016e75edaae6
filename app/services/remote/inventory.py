# app/services/remote/inventory.py
from urllib.parse import quote

from pydantic import ValidationError

from app.core.errors import InsufficientStockError, InvalidStateError, RemoteUnavailableError
from app.models.item import Item
from app.services.interfaces import InventoryService
from app.services.remote.transport import RemoteServiceClient


class HttpInventoryService(InventoryService):

    def __init__(self, remote: RemoteServiceClient):
        self.remote = remote

    def _parse(self, data) -> Item:
        try:
            return Item.model_validate(data)
        except ValidationError as exc:
            raise RemoteUnavailableError(f"Malformed item from {self.remote.name}: {exc}") from exc

    async def get_item(self, item_id: str) -> Item:
        return self._parse(await self.remote.call("GET", f"/items/{quote(item_id, safe='')}", envelope="item"))

    async def update_item(self, item_id: str, available_quantity: int) -> Item:
        if available_quantity < 0:
            raise InsufficientStockError(f"Refusing to set negative available_quantity ({available_quantity}) on item '{item_id}'.")
        try:
            data = await self.remote.call(
                "PATCH", f"/items/{quote(item_id, safe='')}", json={"available_quantity": available_quantity}, envelope="item"
            )
        except InvalidStateError as exc:
            # inventory-service menolak stok negatif dengan 409; 422 lain tetap InputValidationError
            raise InsufficientStockError(exc.detail) from exc
        return self._parse(data)

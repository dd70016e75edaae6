# app/services/remote/borrowing.py
from typing import List, Optional
from urllib.parse import quote

from pydantic import TypeAdapter, ValidationError

from app.core.errors import RemoteUnavailableError
from app.models.borrowing import BorrowRequest
from app.models.enum import BorrowingStatus, parse_status_filter
from app.services.interfaces import BorrowingService
from app.services.remote.transport import RemoteServiceClient

_borrow_request_list = TypeAdapter(List[BorrowRequest])


class HttpBorrowingService(BorrowingService):
    """borrowing-service over HTTP; responses use ``borrow_request(s)`` envelopes."""

    def __init__(self, remote: RemoteServiceClient):
        self.remote = remote

    async def _transition(self, action: str, borrowing_id: str, payload: dict) -> BorrowRequest:
        data = await self.remote.call(
            "POST", f"/borrowings/{quote(borrowing_id, safe='')}/{action}", json=payload, envelope="borrow_request"
        )
        try:
            return BorrowRequest.model_validate(data)
        except ValidationError as exc:
            raise RemoteUnavailableError(f"Malformed borrow_request from {self.remote.name}: {exc}") from exc

    async def approve_borrowing(self, borrowing_id: str, admin_id: str, admin_notes: str) -> BorrowRequest:
        return await self._transition("approve", borrowing_id, {"admin_id": admin_id, "admin_notes": admin_notes})

    async def reject_borrowing(self, borrowing_id: str, admin_id: str, admin_notes: str) -> BorrowRequest:
        return await self._transition("reject", borrowing_id, {"admin_id": admin_id, "admin_notes": admin_notes})

    async def return_item(self, borrowing_id: str, user_id: str, admin_notes: str) -> BorrowRequest:
        return await self._transition("return", borrowing_id, {"user_id": user_id, "admin_notes": admin_notes})

    async def _list(self, path: str, params: Optional[dict] = None) -> List[BorrowRequest]:
        data = await self.remote.call("GET", path, params=params, envelope="borrow_requests")
        try:
            return _borrow_request_list.validate_python(data or [])
        except ValidationError as exc:
            raise RemoteUnavailableError(f"Malformed borrow_requests from {self.remote.name}: {exc}") from exc

    async def get_all_borrowings(self, status_filter: Optional[BorrowingStatus] = None) -> List[BorrowRequest]:
        status_filter = parse_status_filter(status_filter)
        params = {"status_filter": status_filter.value} if status_filter else None
        return await self._list("/borrowings", params)

    async def get_history(self) -> List[BorrowRequest]:
        return await self._list("/borrowings/history")

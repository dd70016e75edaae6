"""
Unit tests for BorrowingOrchestrator.

The three collaborators are in-memory fakes; assertions are made on the
calls they recorded and on the values the orchestrator handed them.
"""

import pytest
from loguru import logger

from app.core.errors import (
    InputValidationError,
    InsufficientStockError,
    InvalidStateError,
    NotFoundError,
    RemoteUnavailableError,
)
from app.models.enum import BorrowingStatus, NotificationType
from app.models.item import Item
from app.services.orchestrator import (
    BorrowingOrchestrator,
    compute_available_after_approve,
    compute_available_after_return,
)

from fakes import FakeInventoryService, FakeNotificationService, failing_notifications


@pytest.fixture
def error_logs():
    """Collect ERROR-and-above loguru records emitted during the test."""
    records = []
    handler_id = logger.add(lambda message: records.append(message.record), level="ERROR")
    yield records
    logger.remove(handler_id)


class TestApproveBorrowing:
    """Approve: transition, stock decrement, best-effort notification."""

    @pytest.mark.asyncio
    async def test_approve_scenario_b1(self, orchestrator, admin, borrowing_service, inventory_service, notification_service):
        """I1 has 3 available, B1 borrows 2, no notes -> stock written as 1."""
        result = await orchestrator.approve_borrowing("B1", admin)

        assert borrowing_service.calls == [("approve_borrowing", "B1", "admin-1", "Approved")]
        assert inventory_service.calls == [("get_item", "I1"), ("update_item", "I1", 1)]
        assert len(notification_service.sent) == 1
        notification = notification_service.sent[0]
        assert notification.type == NotificationType.BORROW_APPROVED
        assert notification.user_id == "U1"
        assert "Projector" in notification.message
        assert "B1" in notification.message
        assert result.id == "B1"
        assert result.status == BorrowingStatus.APPROVED

    @pytest.mark.asyncio
    async def test_admin_notes_are_forwarded(self, orchestrator, admin, borrowing_service):
        result = await orchestrator.approve_borrowing("B1", admin, admin_notes="Pick up at front desk")

        assert borrowing_service.calls[0][3] == "Pick up at front desk"
        assert result.admin_notes == "Pick up at front desk"

    @pytest.mark.asyncio
    async def test_blank_notes_fall_back_to_default(self, orchestrator, admin, borrowing_service):
        await orchestrator.approve_borrowing("B1", admin, admin_notes="   ")

        assert borrowing_service.calls[0][3] == "Approved"

    @pytest.mark.asyncio
    async def test_returns_transition_result_without_refetch(self, orchestrator, admin, borrowing_service):
        """The result is the BorrowRequest returned by the transition call."""
        result = await orchestrator.approve_borrowing("B1", admin)

        assert [c[0] for c in borrowing_service.calls] == ["approve_borrowing"]
        assert result == borrowing_service.requests["B1"]

    @pytest.mark.asyncio
    async def test_each_approve_reads_current_quantity(self, orchestrator, admin, inventory_service):
        await orchestrator.approve_borrowing("B1", admin)  # 3 - 2
        await orchestrator.approve_borrowing("B2", admin)  # 1 - 1

        assert inventory_service.updates == [("update_item", "I1", 1), ("update_item", "I1", 0)]
        assert inventory_service.items["I1"].available_quantity == 0

    @pytest.mark.asyncio
    async def test_quantity_equal_to_stock_depletes_item(self, admin, borrowing_service, notification_service):
        inventory = FakeInventoryService([Item(id="I1", name="Projector", available_quantity=5)])
        borrowing_service.requests["B1"] = borrowing_service.requests["B1"].model_copy(update={"quantity": 5})
        orchestrator = BorrowingOrchestrator(borrowing_service, inventory, notification_service)

        await orchestrator.approve_borrowing("B1", admin)

        assert inventory.updates == [("update_item", "I1", 0)]

    @pytest.mark.asyncio
    async def test_approve_on_depleted_item_fails_without_writing(self, admin, borrowing_service, notification_service):
        inventory = FakeInventoryService([Item(id="I1", name="Projector", available_quantity=5)])
        borrowing_service.requests["B1"] = borrowing_service.requests["B1"].model_copy(update={"quantity": 5})
        orchestrator = BorrowingOrchestrator(borrowing_service, inventory, notification_service)
        await orchestrator.approve_borrowing("B1", admin)

        with pytest.raises(InsufficientStockError):
            await orchestrator.approve_borrowing("B2", admin)

        # B2's transition already committed; only the first write happened
        assert inventory.updates == [("update_item", "I1", 0)]
        assert borrowing_service.requests["B2"].status == BorrowingStatus.APPROVED
        assert len(notification_service.sent) == 1

    @pytest.mark.asyncio
    async def test_notification_failure_does_not_fail_approve(self, admin, borrowing_service, inventory_service):
        notifications = failing_notifications()
        orchestrator = BorrowingOrchestrator(borrowing_service, inventory_service, notifications)

        outcome = await orchestrator.run_approve("B1", admin)

        assert outcome.borrow_request.status == BorrowingStatus.APPROVED
        assert outcome.skipped_steps == ["notify_approved"]
        assert notifications.attempts == 1
        assert inventory_service.items["I1"].available_quantity == 1

    @pytest.mark.asyncio
    async def test_unexpected_notification_error_is_suppressed(self, admin, borrowing_service, inventory_service):
        notifications = FakeNotificationService(fail_with=RuntimeError("connection reset"))
        orchestrator = BorrowingOrchestrator(borrowing_service, inventory_service, notifications)

        result = await orchestrator.approve_borrowing("B1", admin)

        assert result.status == BorrowingStatus.APPROVED

    @pytest.mark.asyncio
    async def test_unknown_borrowing_aborts_before_inventory(self, orchestrator, admin, inventory_service, notification_service):
        with pytest.raises(NotFoundError):
            await orchestrator.approve_borrowing("B404", admin)

        assert inventory_service.calls == []
        assert notification_service.attempts == 0

    @pytest.mark.asyncio
    async def test_non_pending_borrowing_is_invalid_state(self, orchestrator, admin, inventory_service):
        with pytest.raises(InvalidStateError):
            await orchestrator.approve_borrowing("B3", admin)

        assert inventory_service.calls == []

    @pytest.mark.asyncio
    async def test_missing_item_propagates_after_commit(self, orchestrator, admin, borrowing_service, inventory_service, notification_service):
        del inventory_service.items["I1"]

        with pytest.raises(NotFoundError):
            await orchestrator.approve_borrowing("B1", admin)

        assert borrowing_service.requests["B1"].status == BorrowingStatus.APPROVED
        assert inventory_service.updates == []
        assert notification_service.attempts == 0

    @pytest.mark.asyncio
    async def test_inventory_outage_on_write_propagates_unchanged(self, orchestrator, admin, inventory_service, notification_service):
        outage = RemoteUnavailableError("inventory-service timed out")
        inventory_service.fail_updates_with = outage

        with pytest.raises(RemoteUnavailableError) as exc_info:
            await orchestrator.approve_borrowing("B1", admin)

        assert exc_info.value is outage
        assert notification_service.attempts == 0

    @pytest.mark.asyncio
    async def test_failure_after_commit_is_logged_for_reconciliation(self, orchestrator, admin, inventory_service, error_logs):
        inventory_service.fail_updates_with = RemoteUnavailableError("inventory-service timed out")

        with pytest.raises(RemoteUnavailableError):
            await orchestrator.approve_borrowing("B1", admin)

        assert len(error_logs) == 1
        message = error_logs[0]["message"]
        assert "[approve:B1]" in message
        assert "decrement_stock" in message
        assert "manual reconciliation" in message

    @pytest.mark.asyncio
    async def test_failure_before_commit_is_not_logged_as_error(self, orchestrator, admin, error_logs):
        with pytest.raises(NotFoundError):
            await orchestrator.approve_borrowing("B404", admin)

        assert error_logs == []

    @pytest.mark.asyncio
    async def test_approve_on_negative_stock_is_insufficient(self, admin, borrowing_service, notification_service):
        inventory = FakeInventoryService([Item(id="I1", name="Projector", available_quantity=-1)])
        orchestrator = BorrowingOrchestrator(borrowing_service, inventory, notification_service)

        with pytest.raises(InsufficientStockError):
            await orchestrator.approve_borrowing("B1", admin)

        assert inventory.updates == []


class TestRejectBorrowing:

    @pytest.mark.asyncio
    async def test_reject_never_touches_inventory(self, orchestrator, admin, borrowing_service, inventory_service, notification_service):
        result = await orchestrator.reject_borrowing("B1", admin, admin_notes="Item reserved for exams")

        assert result.status == BorrowingStatus.REJECTED
        assert len(inventory_service.calls) == 0
        assert borrowing_service.calls == [("reject_borrowing", "B1", "admin-1", "Item reserved for exams")]
        notification = notification_service.sent[0]
        assert notification.type == NotificationType.BORROW_REJECTED
        assert notification.message.endswith("Reason: Item reserved for exams")

    @pytest.mark.asyncio
    async def test_reject_without_notes_uses_defaults(self, orchestrator, admin, borrowing_service, notification_service):
        await orchestrator.reject_borrowing("B2", admin)

        assert borrowing_service.calls[0][3] == "Rejected"
        assert notification_service.sent[0].message.endswith("Reason: N/A")
        assert notification_service.sent[0].user_id == "U2"

    @pytest.mark.asyncio
    async def test_notification_failure_does_not_fail_reject(self, admin, borrowing_service, inventory_service):
        orchestrator = BorrowingOrchestrator(borrowing_service, inventory_service, failing_notifications())

        outcome = await orchestrator.run_reject("B1", admin)

        assert outcome.borrow_request.status == BorrowingStatus.REJECTED
        assert outcome.skipped_steps == ["notify_rejected"]

    @pytest.mark.asyncio
    async def test_reject_twice_is_invalid_state(self, orchestrator, admin):
        await orchestrator.reject_borrowing("B1", admin)

        with pytest.raises(InvalidStateError):
            await orchestrator.reject_borrowing("B1", admin)


class TestReturnItem:

    @pytest.mark.asyncio
    async def test_return_restocks_item(self, orchestrator, admin, borrowing_service, inventory_service, notification_service):
        result = await orchestrator.return_item("B3", admin)

        assert result.status == BorrowingStatus.RETURNED
        assert borrowing_service.calls == [("return_item", "B3", "admin-1", "Returned by admin")]
        assert inventory_service.calls == [("get_item", "I2"), ("update_item", "I2", 4)]
        assert notification_service.attempts == 0

    @pytest.mark.asyncio
    async def test_approve_then_return_restores_stock(self, orchestrator, admin, inventory_service):
        await orchestrator.approve_borrowing("B1", admin)
        await orchestrator.return_item("B1", admin, admin_notes="Returned in good condition")

        assert inventory_service.updates == [("update_item", "I1", 1), ("update_item", "I1", 3)]

    @pytest.mark.asyncio
    async def test_return_repairs_negative_stock(self, admin, borrowing_service, notification_service):
        """Stock left below zero by a race is still restocked on return."""
        inventory = FakeInventoryService([Item(id="I2", name="Camera Tripod", available_quantity=-1)])
        orchestrator = BorrowingOrchestrator(borrowing_service, inventory, notification_service)

        result = await orchestrator.return_item("B3", admin)

        assert result.status == BorrowingStatus.RETURNED
        assert inventory.updates == [("update_item", "I2", 3)]

    @pytest.mark.asyncio
    async def test_return_of_pending_request_is_invalid_state(self, orchestrator, admin, inventory_service):
        with pytest.raises(InvalidStateError):
            await orchestrator.return_item("B1", admin)

        assert inventory_service.calls == []


class TestInputValidation:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("borrowing_id", ["", "   ", None])
    async def test_blank_borrowing_id_rejected(self, orchestrator, admin, borrowing_service, borrowing_id):
        with pytest.raises(InputValidationError):
            await orchestrator.approve_borrowing(borrowing_id, admin)

        assert borrowing_service.calls == []

    @pytest.mark.asyncio
    async def test_missing_admin_rejected(self, orchestrator, borrowing_service):
        with pytest.raises(InputValidationError):
            await orchestrator.return_item("B3", None)

        assert borrowing_service.calls == []

    @pytest.mark.asyncio
    async def test_borrowing_id_is_stripped(self, orchestrator, admin, borrowing_service):
        await orchestrator.reject_borrowing("  B1 ", admin)

        assert borrowing_service.calls[0][1] == "B1"


class TestListing:

    @pytest.mark.asyncio
    async def test_list_all_with_pending_filter(self, orchestrator, borrowing_service):
        result = await orchestrator.list_all(BorrowingStatus.PENDING)

        assert [r.id for r in result] == ["B1", "B2"]
        assert borrowing_service.calls == [("get_all_borrowings", BorrowingStatus.PENDING)]

    @pytest.mark.asyncio
    async def test_list_all_accepts_plain_string(self, orchestrator, borrowing_service):
        result = await orchestrator.list_all("pending")

        assert [r.id for r in result] == ["B1", "B2"]
        assert borrowing_service.calls == [("get_all_borrowings", BorrowingStatus.PENDING)]

    @pytest.mark.asyncio
    async def test_list_all_rejects_unknown_status(self, orchestrator, borrowing_service):
        with pytest.raises(InputValidationError):
            await orchestrator.list_all("lost")

        assert borrowing_service.calls == []

    @pytest.mark.asyncio
    async def test_list_all_is_verbatim(self, orchestrator, borrowing_service):
        result = await orchestrator.list_all()

        assert result == list(borrowing_service.requests.values())

    @pytest.mark.asyncio
    async def test_list_history_passes_through(self, orchestrator, borrowing_service):
        result = await orchestrator.list_history()

        assert [r.id for r in result] == ["B3", "B4"]
        assert borrowing_service.calls == [("get_history",)]


class TestHelpersAndDefaults:

    def test_approve_subtracts(self):
        assert compute_available_after_approve(3, 2) == 1
        assert compute_available_after_approve(2, 3) == -1

    def test_return_adds(self):
        assert compute_available_after_return(0, 4) == 4

    def test_custom_default_notes(self, borrowing_service, inventory_service, notification_service):
        orchestrator = BorrowingOrchestrator(
            borrowing_service, inventory_service, notification_service, approve_notes="Disetujui"
        )
        assert orchestrator.approve_notes == "Disetujui"
        assert orchestrator.reject_notes == "Rejected"

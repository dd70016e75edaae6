# app/services/orchestrator.py
"""Admin-side borrowing lifecycle: approve, reject and return.

Each mutating operation is an ordered pipeline of steps over three
collaborator services. The borrowing-service state transition is the commit
point: once it succeeds nothing is rolled back. A failure in a later
inventory step leaves a partially applied workflow that has to be reconciled
by hand; a failure in the notification step is logged and ignored.
"""
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional

from loguru import logger

from app.core.config import DEFAULT_APPROVE_NOTES, DEFAULT_REJECT_NOTES, DEFAULT_RETURN_NOTES
from app.core.errors import InputValidationError, InsufficientStockError
from app.models.borrowing import BorrowRequest
from app.models.enum import BorrowingStatus, NotificationType, parse_status_filter
from app.models.item import Item
from app.models.notification import Notification
from app.models.user import AdminIdentity
from app.services.interfaces import BorrowingService, InventoryService, NotificationService


@dataclass
class WorkflowContext:
    """Request-scoped state shared by the steps of one operation."""
    operation: str
    borrowing_id: str
    admin: AdminIdentity
    admin_notes: Optional[str]
    borrow_request: Optional[BorrowRequest] = None
    item: Optional[Item] = None
    new_available_quantity: Optional[int] = None
    committed: bool = False
    skipped_steps: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class WorkflowStep:
    name: str
    run: Callable[[WorkflowContext], Awaitable[None]]
    commits: bool = False      # point of no return
    best_effort: bool = False  # failure is logged, never raised


@dataclass(frozen=True)
class WorkflowOutcome:
    borrow_request: BorrowRequest
    skipped_steps: List[str]


def compute_available_after_approve(available_quantity: int, quantity: int) -> int:
    return available_quantity - quantity


def compute_available_after_return(available_quantity: int, quantity: int) -> int:
    return available_quantity + quantity


def _clean_notes(admin_notes: Optional[str]) -> Optional[str]:
    if admin_notes is None:
        return None
    admin_notes = admin_notes.strip()
    return admin_notes or None


class BorrowingOrchestrator:
    """Coordinates BorrowingService, InventoryService and NotificationService.

    Holds no state between calls; every item or borrowing read is request-scoped.
    """

    def __init__(
        self,
        borrowing: BorrowingService,
        inventory: InventoryService,
        notifications: NotificationService,
        *,
        approve_notes: str = DEFAULT_APPROVE_NOTES,
        reject_notes: str = DEFAULT_REJECT_NOTES,
        return_notes: str = DEFAULT_RETURN_NOTES,
    ):
        self.borrowing = borrowing
        self.inventory = inventory
        self.notifications = notifications
        self.approve_notes = approve_notes
        self.reject_notes = reject_notes
        self.return_notes = return_notes

    # --- Public operations ---

    async def approve_borrowing(
        self, borrowing_id: str, admin: AdminIdentity, admin_notes: Optional[str] = None
    ) -> BorrowRequest:
        return (await self.run_approve(borrowing_id, admin, admin_notes)).borrow_request

    async def reject_borrowing(
        self, borrowing_id: str, admin: AdminIdentity, admin_notes: Optional[str] = None
    ) -> BorrowRequest:
        return (await self.run_reject(borrowing_id, admin, admin_notes)).borrow_request

    async def return_item(
        self, borrowing_id: str, admin: AdminIdentity, admin_notes: Optional[str] = None
    ) -> BorrowRequest:
        return (await self.run_return(borrowing_id, admin, admin_notes)).borrow_request

    async def list_all(self, status_filter: Optional[BorrowingStatus] = None) -> List[BorrowRequest]:
        status_filter = parse_status_filter(status_filter)
        logger.info(f"Listing borrowings (status_filter={status_filter.value if status_filter else 'ALL'}).")
        return await self.borrowing.get_all_borrowings(status_filter)

    async def list_history(self) -> List[BorrowRequest]:
        logger.info("Listing borrowing history.")
        return await self.borrowing.get_history()

    # --- Pipelines ---

    async def run_approve(self, borrowing_id: str, admin: AdminIdentity, admin_notes: Optional[str] = None) -> WorkflowOutcome:
        context = self._new_context("approve", borrowing_id, admin, admin_notes)
        return await self._execute(context, [
            WorkflowStep("approve_borrowing", self._approve_transition, commits=True),
            WorkflowStep("get_item", self._load_item),
            WorkflowStep("decrement_stock", self._decrement_stock),
            WorkflowStep("notify_approved", self._notify_approved, best_effort=True),
        ])

    async def run_reject(self, borrowing_id: str, admin: AdminIdentity, admin_notes: Optional[str] = None) -> WorkflowOutcome:
        context = self._new_context("reject", borrowing_id, admin, admin_notes)
        # Rejecting never consumed stock, so inventory is not touched.
        return await self._execute(context, [
            WorkflowStep("reject_borrowing", self._reject_transition, commits=True),
            WorkflowStep("notify_rejected", self._notify_rejected, best_effort=True),
        ])

    async def run_return(self, borrowing_id: str, admin: AdminIdentity, admin_notes: Optional[str] = None) -> WorkflowOutcome:
        context = self._new_context("return", borrowing_id, admin, admin_notes)
        return await self._execute(context, [
            WorkflowStep("return_item", self._return_transition, commits=True),
            WorkflowStep("get_item", self._load_item),
            WorkflowStep("restock", self._restock),
        ])

    def _new_context(self, operation: str, borrowing_id: str, admin: Optional[AdminIdentity], admin_notes: Optional[str]) -> WorkflowContext:
        borrowing_id = (borrowing_id or "").strip()
        if not borrowing_id:
            raise InputValidationError("borrowing_id is required.")
        if admin is None or not admin.id:
            raise InputValidationError("Admin identity is required.")
        return WorkflowContext(
            operation=operation,
            borrowing_id=borrowing_id,
            admin=admin,
            admin_notes=_clean_notes(admin_notes),
        )

    async def _execute(self, context: WorkflowContext, steps: List[WorkflowStep]) -> WorkflowOutcome:
        logger.info(f"Admin '{context.admin.id}' starting {context.operation} for borrowing '{context.borrowing_id}'.")
        for step in steps:
            logger.debug(f"[{context.operation}:{context.borrowing_id}] step '{step.name}'")
            try:
                await step.run(context)
            except Exception as exc:
                if step.best_effort:
                    logger.warning(
                        f"[{context.operation}:{context.borrowing_id}] best-effort step '{step.name}' failed "
                        f"and was skipped: {exc!r}"
                    )
                    context.skipped_steps.append(step.name)
                    continue
                if context.committed:
                    logger.error(
                        f"[{context.operation}:{context.borrowing_id}] step '{step.name}' failed after the "
                        f"borrowing transition was committed; workflow is partially applied and needs "
                        f"manual reconciliation: {exc!r}"
                    )
                raise
            if step.commits:
                context.committed = True

        logger.info(
            f"Borrowing '{context.borrowing_id}' {context.operation} completed "
            f"(status={context.borrow_request.status.value})."
        )
        return WorkflowOutcome(borrow_request=context.borrow_request, skipped_steps=list(context.skipped_steps))

    # --- Steps ---

    async def _approve_transition(self, context: WorkflowContext) -> None:
        context.borrow_request = await self.borrowing.approve_borrowing(
            context.borrowing_id, context.admin.id, context.admin_notes or self.approve_notes
        )

    async def _reject_transition(self, context: WorkflowContext) -> None:
        context.borrow_request = await self.borrowing.reject_borrowing(
            context.borrowing_id, context.admin.id, context.admin_notes or self.reject_notes
        )

    async def _return_transition(self, context: WorkflowContext) -> None:
        context.borrow_request = await self.borrowing.return_item(
            context.borrowing_id, context.admin.id, context.admin_notes or self.return_notes
        )

    async def _load_item(self, context: WorkflowContext) -> None:
        # Always the current remote value; never reuse a quantity read earlier.
        context.item = await self.inventory.get_item(context.borrow_request.item_id)

    async def _decrement_stock(self, context: WorkflowContext) -> None:
        borrow_request, item = context.borrow_request, context.item
        new_available = compute_available_after_approve(item.available_quantity, borrow_request.quantity)
        if new_available < 0:
            raise InsufficientStockError(
                f"Item '{item.id}' has {item.available_quantity} available, "
                f"borrowing '{borrow_request.id}' needs {borrow_request.quantity}."
            )
        await self._write_stock(context, new_available)

    async def _restock(self, context: WorkflowContext) -> None:
        new_available = compute_available_after_return(context.item.available_quantity, context.borrow_request.quantity)
        await self._write_stock(context, new_available)

    async def _write_stock(self, context: WorkflowContext, new_available: int) -> None:
        context.new_available_quantity = new_available
        await self.inventory.update_item(context.borrow_request.item_id, available_quantity=new_available)
        logger.info(
            f"Item '{context.borrow_request.item_id}' available quantity {context.item.available_quantity} -> {new_available} "
            f"({context.operation} of '{context.borrow_request.id}')."
        )

    async def _notify_approved(self, context: WorkflowContext) -> None:
        borrow_request = context.borrow_request
        await self.notifications.send_notification(Notification(
            user_id=borrow_request.user_id,
            message=f"Your borrowing request for {context.item.name} (ID: {borrow_request.id}) has been approved.",
            type=NotificationType.BORROW_APPROVED,
        ))

    async def _notify_rejected(self, context: WorkflowContext) -> None:
        borrow_request = context.borrow_request
        reason = context.admin_notes or "N/A"
        await self.notifications.send_notification(Notification(
            user_id=borrow_request.user_id,
            message=f"Sorry, your borrowing request (ID: {borrow_request.id}) was rejected. Reason: {reason}",
            type=NotificationType.BORROW_REJECTED,
        ))

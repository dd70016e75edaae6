# app/api/v1/endpoints/admin.py
from typing import List, Optional
from fastapi import APIRouter, Depends, status, Body, Query, Request
from loguru import logger

from app.core.security import require_admin
from app.core.rate_limiter import limiter, READ_LIMIT, WRITE_LIMIT
from app.models.borrowing import BorrowRequest
from app.models.enum import BorrowingStatus
from app.models.user import AdminIdentity
from app.services.container import get_orchestrator
from app.services.orchestrator import BorrowingOrchestrator

router = APIRouter(
    tags=["Admin Borrowings"]
)

# ServiceError dari orchestrator TIDAK ditangkap di sini; dipetakan ke status HTTP di main.py


# --- GET /admin/borrowings ---
@router.get(
    "/borrowings",
    response_model=List[BorrowRequest],
    summary="List all borrowing requests",
)
@limiter.limit(READ_LIMIT)
async def list_borrowings(
    request: Request,
    status_filter: Optional[BorrowingStatus] = Query(None),
    admin: AdminIdentity = Depends(require_admin),
    orchestrator: BorrowingOrchestrator = Depends(get_orchestrator),
):
    """Returns the borrowing-service's records verbatim, in the order it provides."""
    return await orchestrator.list_all(status_filter)


# --- POST /admin/borrowings/approve ---
@router.post(
    "/borrowings/approve",
    response_model=BorrowRequest,
    status_code=status.HTTP_200_OK,
)
@limiter.limit(WRITE_LIMIT)
async def approve_borrowing(
    request: Request,
    action: BorrowRequest.Action = Body(...),
    admin: AdminIdentity = Depends(require_admin),
    orchestrator: BorrowingOrchestrator = Depends(get_orchestrator),
):
    """Approves a PENDING request, decrements stock and notifies the borrower."""
    logger.info(f"Admin '{admin.id}' approving borrowing '{action.borrowing_id}'.")
    return await orchestrator.approve_borrowing(action.borrowing_id, admin, action.admin_notes)


# --- POST /admin/borrowings/reject ---
@router.post(
    "/borrowings/reject",
    response_model=BorrowRequest,
    status_code=status.HTTP_200_OK,
)
@limiter.limit(WRITE_LIMIT)
async def reject_borrowing(
    request: Request,
    action: BorrowRequest.Action = Body(...),
    admin: AdminIdentity = Depends(require_admin),
    orchestrator: BorrowingOrchestrator = Depends(get_orchestrator),
):
    """Rejects a PENDING request. Stock is not touched."""
    logger.info(f"Admin '{admin.id}' rejecting borrowing '{action.borrowing_id}'.")
    return await orchestrator.reject_borrowing(action.borrowing_id, admin, action.admin_notes)


# --- POST /admin/borrowings/return ---
@router.post(
    "/borrowings/return",
    response_model=BorrowRequest,
    status_code=status.HTTP_200_OK,
)
@limiter.limit(WRITE_LIMIT)
async def mark_as_returned(
    request: Request,
    action: BorrowRequest.Action = Body(...),
    admin: AdminIdentity = Depends(require_admin),
    orchestrator: BorrowingOrchestrator = Depends(get_orchestrator),
):
    """Marks an APPROVED request as returned and restocks the item."""
    logger.info(f"Admin '{admin.id}' marking borrowing '{action.borrowing_id}' as returned.")
    return await orchestrator.return_item(action.borrowing_id, admin, action.admin_notes)


# --- GET /admin/history ---
@router.get(
    "/history",
    response_model=List[BorrowRequest],
)
@limiter.limit(READ_LIMIT)
async def read_history(
    request: Request,
    admin: AdminIdentity = Depends(require_admin),
    orchestrator: BorrowingOrchestrator = Depends(get_orchestrator),
):
    return await orchestrator.list_history()

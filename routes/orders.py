"""
Order API routes.

The order table: list with search, filters and sorting, the overdue list,
and order writes. Orders are addressed by their sheet row.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
import structlog

from models.order import (
    ActionType,
    OrderCloseRequest,
    OrderCreateRequest,
    OrderHistoryEntry,
    OrderListResponse,
    OrderMutationResponse,
    OrderNotesRequest,
    OrderStatusRequest,
    OrderUpdateRequest,
    OverdueOrdersResponse,
)
from services.order_service import get_order_service
from exceptions import AppError
from utils.date_utils import resolve_reference_now

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/orders", tags=["Orders"])


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


# ===================
# READ ROUTES
# ===================

@router.get("", response_model=OrderListResponse)
def list_orders(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=500, description="Items per page"),
    search: Optional[str] = Query(None, description="Free text over name, document, address, containers, notes"),
    status: Optional[str] = Query(None, description="Filter by raw status"),
    action_type: Optional[ActionType] = Query(None, description="Filter by action type"),
    sort_by: Optional[str] = Query(None, description="Field to sort by"),
    sort_dir: str = Query("asc", pattern="^(asc|desc)$", description="Sort direction"),
    as_of: Optional[datetime] = Query(None, description="Reference time (default: now, UTC)"),
):
    """
    List orders.

    Query parameters:
    - search: Case-insensitive substring match
    - status: Exact raw status (e.g. פתוח)
    - action_type: DROP, PICKUP or OTHER
    - sort_by / sort_dir: Dates sort chronologically with undated rows first
    """
    try:
        return get_order_service().list_orders(
            resolve_reference_now(as_of),
            search=search,
            status=status,
            action_type=action_type,
            sort_by=sort_by,
            descending=sort_dir == "desc",
            page=page,
            page_size=page_size,
        )

    except Exception as e:
        return handle_error(e)


@router.get("/overdue", response_model=OverdueOrdersResponse)
def list_overdue_orders(
    as_of: Optional[datetime] = Query(None, description="Reference time (default: now, UTC)"),
):
    """List overdue orders, longest on site first."""
    try:
        return get_order_service().overdue_orders(resolve_reference_now(as_of))

    except Exception as e:
        return handle_error(e)


@router.get("/{sheet_row}", response_model=OrderHistoryEntry)
def get_order(
    sheet_row: int,
    as_of: Optional[datetime] = Query(None, description="Reference time (default: now, UTC)"),
):
    """Get one order by sheet row."""
    try:
        return get_order_service().get_order(sheet_row, resolve_reference_now(as_of))

    except Exception as e:
        return handle_error(e)


# ===================
# WRITE ROUTES
# ===================

@router.post("", response_model=OrderMutationResponse, status_code=201)
def add_order(request: OrderCreateRequest):
    """Add a new order."""
    try:
        return get_order_service().add_order(request)

    except Exception as e:
        return handle_error(e)


@router.put("/{sheet_row}", response_model=OrderMutationResponse)
def edit_order(sheet_row: int, request: OrderUpdateRequest):
    """Overwrite the given fields of an order."""
    try:
        return get_order_service().edit_order(sheet_row, request)

    except Exception as e:
        return handle_error(e)


@router.post("/{sheet_row}/close", response_model=OrderMutationResponse)
def close_order(sheet_row: int, request: OrderCloseRequest):
    """Close an order with closing notes."""
    try:
        return get_order_service().close_order(sheet_row, request.close_notes)

    except Exception as e:
        return handle_error(e)


@router.delete("/{sheet_row}", response_model=OrderMutationResponse)
def delete_order(sheet_row: int):
    """Delete an order row."""
    try:
        return get_order_service().delete_order(sheet_row)

    except Exception as e:
        return handle_error(e)


@router.patch("/{sheet_row}/status", response_model=OrderMutationResponse)
def update_order_status(sheet_row: int, request: OrderStatusRequest):
    """
    Change an order's status.

    A closed status closes the order with the given close_notes.
    """
    try:
        return get_order_service().update_status(sheet_row, request.status, request.close_notes)

    except Exception as e:
        return handle_error(e)


@router.patch("/{sheet_row}/notes", response_model=OrderMutationResponse)
def update_order_notes(sheet_row: int, request: OrderNotesRequest):
    """Replace an order's notes."""
    try:
        return get_order_service().update_notes(sheet_row, request.notes)

    except Exception as e:
        return handle_error(e)


@router.post("/{sheet_row}/duplicate", response_model=OrderMutationResponse, status_code=201)
def duplicate_order(
    sheet_row: int,
    as_of: Optional[datetime] = Query(None, description="Date of the copy (default: now, UTC)"),
):
    """Add a copy of an order as a new open order."""
    try:
        return get_order_service().duplicate_order(sheet_row, resolve_reference_now(as_of))

    except Exception as e:
        return handle_error(e)

"""
Container API routes.

Container inventory: on customer sites vs. back and available.
Container history: every order that moved one container.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, status

from services.inventory_service import get_inventory_service
from integrations.sheets_client import get_sheets_client
from models.inventory import ContainerInventoryResponse
from models.order import ContainerHistoryResponse
from exceptions import AppError
from utils.date_utils import resolve_reference_now

router = APIRouter(prefix="/api/containers", tags=["Containers"])


@router.get(
    "/inventory",
    response_model=ContainerInventoryResponse,
    summary="Containers in use and available"
)
def get_container_inventory():
    """
    Get container inventory.

    Returns:
        Containers on customer sites and containers available for a new drop
    """
    try:
        records = get_sheets_client().fetch_order_records().records
        return get_inventory_service().build_inventory(records)
    except AppError as e:
        raise HTTPException(
            status_code=e.status_code or status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=e.to_dict()
        )


@router.get(
    "/{container_number}/history",
    response_model=ContainerHistoryResponse,
    summary="Orders that dropped or picked up a container"
)
def get_container_history(
    container_number: str,
    as_of: Optional[datetime] = Query(None, description="Reference time (default: now, UTC)"),
):
    """
    Get a container's order history, newest first.

    The container number must match as logged (case and inner spacing kept).
    """
    try:
        records = get_sheets_client().fetch_order_records().records
        return get_inventory_service().container_history(
            records, container_number, resolve_reference_now(as_of)
        )
    except AppError as e:
        raise HTTPException(
            status_code=e.status_code or status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=e.to_dict()
        )

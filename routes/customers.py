"""
Customer API routes.

Customer profile: order history and reconstructed container pairs.
The customer key is the composite "{name}_{phone}".
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
import structlog

from models.container_pair import PairingResult
from models.order import CustomerHistoryResponse
from services.customer_service import get_customer_service
from exceptions import AppError
from utils.date_utils import resolve_reference_now

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/customers", tags=["Customers"])


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


@router.get("/{customer_key}/history", response_model=CustomerHistoryResponse)
def get_customer_history(
    customer_key: str,
    as_of: Optional[datetime] = Query(None, description="Reference time (default: now, UTC)"),
):
    """
    Get a customer's order history.

    Each entry carries days_in_use and a status recalculated to
    "overdue" for active orders past the threshold.
    """
    try:
        service = get_customer_service()
        return service.get_history(customer_key, resolve_reference_now(as_of))

    except Exception as e:
        return handle_error(e)


@router.get("/{customer_key}/pairs", response_model=PairingResult)
def get_customer_pairs(
    customer_key: str,
    as_of: Optional[datetime] = Query(None, description="Reference time (default: now, UTC)"),
):
    """
    Get a customer's drop/pickup container pairs.

    Anomalous pairs (missing drop or pickup) are flagged with a reason.
    Data-quality warnings (rejected dates, unclassified action types)
    are returned alongside.
    """
    try:
        service = get_customer_service()
        return service.get_pairs(customer_key, resolve_reference_now(as_of))

    except Exception as e:
        return handle_error(e)

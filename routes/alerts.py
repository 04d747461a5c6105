"""
Alerts API routes.

Order alerts by days on site, conflict alerts across active orders,
and handled acknowledgements.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
import structlog

from models.alert import (
    AlertHandledRequest,
    AlertHandledResponse,
    AlertListResponse,
    AlertSeverity,
    ConflictListResponse,
)
from services.alert_service import get_alert_service
from integrations.sheets_client import get_sheets_client
from exceptions import AppError
from utils.date_utils import resolve_reference_now

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/alerts", tags=["Alerts"])


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
# ALERT ROUTES
# ===================

@router.get("", response_model=AlertListResponse)
def list_alerts(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(20, ge=1, le=100, description="Items per page"),
    severity: Optional[AlertSeverity] = Query(None, description="Filter by severity"),
    as_of: Optional[datetime] = Query(None, description="Reference time (default: now, UTC)"),
):
    """
    List order alerts, longest on site first.

    Query parameters:
    - severity: Filter by severity (SOFT, WARNING, CRITICAL)
    """
    try:
        records = get_sheets_client().fetch_order_records().records
        service = get_alert_service()
        alerts = service.evaluate(records, resolve_reference_now(as_of))
        summary = service.summarize(alerts)

        if severity:
            alerts = [alert for alert in alerts if alert.severity == severity]

        total = len(alerts)
        offset = (page - 1) * page_size
        total_pages = (total + page_size - 1) // page_size

        return AlertListResponse(
            data=alerts[offset:offset + page_size],
            summary=summary,
            total=total,
            page=page,
            page_size=page_size,
            total_pages=total_pages,
        )

    except Exception as e:
        return handle_error(e)


@router.get("/conflicts", response_model=ConflictListResponse)
def list_conflicts(
    as_of: Optional[datetime] = Query(None, description="Reference time (default: now, UTC)"),
):
    """
    List conflicts across active orders.

    Duplicate document ids, containers on several active orders,
    customers with several active orders at one address, and
    expected end dates within the look-ahead window.
    """
    try:
        records = get_sheets_client().fetch_order_records().records
        conflicts = get_alert_service().find_conflicts(records, resolve_reference_now(as_of))
        return ConflictListResponse(data=conflicts, total=len(conflicts))

    except Exception as e:
        return handle_error(e)


@router.post("/{alert_id}/handled", response_model=AlertHandledResponse)
def mark_alert_handled(alert_id: str, request: AlertHandledRequest):
    """
    Mark an alert as handled.

    Appends an entry to the backend's alerts log.
    """
    try:
        handled = get_sheets_client().set_alert_handled(alert_id, request.note)
        return AlertHandledResponse(alert_id=alert_id, handled=handled)

    except Exception as e:
        return handle_error(e)

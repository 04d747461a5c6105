"""
Google Apps Script backend client.

The CRM sheet is served by an Apps Script web app:

    GET {script_url}?action=getOrders
        -> {"status": "success", "orders": [{<header>: <value>, ..., "sheetRow": 2}, ...]}
    GET {script_url}?action=setAlertHandled&alertId=...&note=...
        -> {"status": "success"}
    GET {script_url}?action=addOrder&<header>=<value>...
    GET {script_url}?action=editOrder&sheetRow=...&<header>=<value>...
    GET {script_url}?action=closeOrder&sheetRow=...&closeNotes=...
    GET {script_url}?action=deleteOrder&sheetRow=...
    GET {script_url}?action=updateOrderStatus&sheetRow=...&status=...
    GET {script_url}?action=updateOrderNotes&sheetRow=...&notes=...
        -> {"status": "success"}

Failed requests are retried with exponential backoff (2^attempt * base delay).
"""

import time
from typing import Any, Callable, Optional
import requests
import structlog

from config import settings
from config import sheet_columns as cols
from exceptions import SheetsBackendError, SheetsNotConfiguredError
from models.order import OrderRecord
from services.ingestion_service import IngestionResult, get_ingestion_service

logger = structlog.get_logger(__name__)


class SheetsClient:
    """
    Apps Script HTTP client.

    Args:
        script_url: Web app deployment URL
        timeout: Per-request timeout in seconds
        max_retries: Retries after the first failure
        base_delay_ms: Backoff base
        sleep: Sleep function (injected in tests)
    """

    def __init__(
        self,
        script_url: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        base_delay_ms: Optional[int] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.script_url = script_url or settings.sheets_script_url
        self.timeout = timeout or settings.sheets_timeout_seconds
        self.max_retries = settings.sheets_max_retries if max_retries is None else max_retries
        self.base_delay_ms = (
            settings.sheets_retry_base_delay_ms if base_delay_ms is None else base_delay_ms
        )
        self._sleep = sleep
        self.session = requests.Session()

    # ===================
    # TRANSPORT
    # ===================

    def call(self, action: str, **params: Any) -> dict:
        """
        Call an Apps Script action, retrying on failure.

        Args:
            action: Backend action name (e.g. "getOrders")
            **params: Query parameters

        Returns:
            Decoded JSON body with status "success"

        Raises:
            SheetsNotConfiguredError: If no script URL is set
            SheetsBackendError: If every attempt fails
        """
        if not self.script_url:
            raise SheetsNotConfiguredError()

        query = {"action": action, **{k: v for k, v in params.items() if v is not None}}
        last_error: Optional[str] = None

        for attempt in range(self.max_retries + 1):
            if attempt > 0:
                delay_ms = (2 ** (attempt - 1)) * self.base_delay_ms
                logger.info(
                    "sheets_request_retrying",
                    action=action,
                    attempt=attempt,
                    max_retries=self.max_retries,
                    delay_ms=delay_ms,
                )
                self._sleep(delay_ms / 1000)

            try:
                response = self.session.get(self.script_url, params=query, timeout=self.timeout)
                response.raise_for_status()
                body = response.json()
            except (requests.exceptions.RequestException, ValueError) as e:
                last_error = str(e)
                logger.warning("sheets_request_failed", action=action, attempt=attempt, error=last_error)
                continue

            if not isinstance(body, dict) or body.get("status") != "success":
                last_error = body.get("message", "Unknown response") if isinstance(body, dict) else "Malformed response"
                logger.warning("sheets_backend_error", action=action, attempt=attempt, error=last_error)
                continue

            logger.debug("sheets_request_succeeded", action=action, attempt=attempt)
            return body

        logger.error("sheets_request_gave_up", action=action, attempts=self.max_retries + 1, error=last_error)
        raise SheetsBackendError(
            f"Apps Script action '{action}' failed: {last_error}",
            details={"action": action, "attempts": self.max_retries + 1},
        )

    # ===================
    # OPERATIONS
    # ===================

    def fetch_order_rows(self) -> list[dict[str, Any]]:
        """Get all raw CRM rows."""
        body = self.call("getOrders")
        rows = body.get("orders") or []
        logger.info("sheets_rows_fetched", count=len(rows))
        return rows

    def fetch_order_records(self) -> IngestionResult:
        """Get all CRM rows, validated."""
        return get_ingestion_service().ingest_rows(self.fetch_order_rows())

    def fetch_customer_order_records(self, customer_key: str) -> list[OrderRecord]:
        """
        Get one customer's validated records.

        Rows are read fresh on every call.
        """
        result = self.fetch_order_records()
        return [record for record in result.records if record.customer_key == customer_key]

    def set_alert_handled(self, alert_id: str, note: str = "") -> bool:
        """
        Log an alert as handled in the Alerts_Log sheet.

        Returns:
            True once the backend acknowledges
        """
        self.call("setAlertHandled", alertId=alert_id, note=note)
        logger.info("alert_marked_handled", alert_id=alert_id)
        return True

    # ===================
    # ORDER MUTATIONS
    # ===================

    def add_order(self, fields: dict[str, Any]) -> bool:
        """
        Append a new CRM row.

        Args:
            fields: Cell values keyed by sheet header. Empty strings clear a cell.
        """
        self.call("addOrder", **fields)
        logger.info("order_added", document_id=fields.get(cols.COL_DOCUMENT_ID))
        return True

    def edit_order(self, sheet_row: int, fields: dict[str, Any]) -> bool:
        """Overwrite the given cells of one row."""
        self.call("editOrder", sheetRow=sheet_row, **fields)
        logger.info("order_edited", sheet_row=sheet_row, fields=sorted(fields))
        return True

    def close_order(self, sheet_row: int, close_notes: str = "") -> bool:
        """Close an order; the backend stamps the closing date."""
        self.call("closeOrder", sheetRow=sheet_row, closeNotes=close_notes)
        logger.info("order_closed", sheet_row=sheet_row)
        return True

    def delete_order(self, sheet_row: int) -> bool:
        self.call("deleteOrder", sheetRow=sheet_row)
        logger.info("order_deleted", sheet_row=sheet_row)
        return True

    def update_order_status(self, sheet_row: int, status: str) -> bool:
        self.call("updateOrderStatus", sheetRow=sheet_row, status=status)
        logger.info("order_status_updated", sheet_row=sheet_row, status=status)
        return True

    def update_order_notes(self, sheet_row: int, notes: str) -> bool:
        self.call("updateOrderNotes", sheetRow=sheet_row, notes=notes)
        logger.info("order_notes_updated", sheet_row=sheet_row)
        return True


# Singleton instance
_sheets_client: Optional[SheetsClient] = None


def get_sheets_client() -> SheetsClient:
    """Get the singleton sheets client instance."""
    global _sheets_client
    if _sheets_client is None:
        _sheets_client = SheetsClient()
    return _sheets_client

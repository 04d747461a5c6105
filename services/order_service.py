"""
Order service.

Order table operations over the sheets backend: search, filter, sort and
paginate the order list, the overdue list, and order writes (add, edit,
close, delete, status, notes, duplicate).

Writes go straight to the backend; nothing is cached between requests.
"""

from datetime import datetime
from typing import Any, Iterable, Optional
import structlog

from config import settings
from config import sheet_columns as cols
from exceptions import OrderNotFoundError, ValidationError
from integrations.sheets_client import SheetsClient, get_sheets_client
from models.order import (
    ActionType,
    OrderCreateRequest,
    OrderHistoryEntry,
    OrderListResponse,
    OrderMutationResponse,
    OrderRecord,
    OrderUpdateRequest,
    OverdueOrdersResponse,
)
from services.history_service import decorate_records
from services.ingestion_service import sheet_row_number

logger = structlog.get_logger(__name__)


# Request field -> sheet header
FIELD_COLUMNS = {
    "document_id": cols.COL_DOCUMENT_ID,
    "customer_name": cols.COL_CUSTOMER_NAME,
    "customer_phone": cols.COL_CUSTOMER_PHONE,
    "address": cols.COL_ADDRESS,
    "action_type": cols.COL_ACTION_TYPE,
    "container_dropped": cols.COL_CONTAINER_DROPPED,
    "container_picked_up": cols.COL_CONTAINER_PICKED_UP,
    "event_date": cols.COL_EVENT_DATE,
    "expected_end_date": cols.COL_EXPECTED_END_DATE,
    "status": cols.COL_STATUS,
    "notes": cols.COL_NOTES,
}

# Text searched by the free-text filter
SEARCH_FIELDS = (
    "customer_name",
    "document_id",
    "address",
    "container_number",
    "container_picked_up",
    "notes",
)

DATE_SORT_FIELDS = frozenset({"event_date", "expected_end_date", "closed_date"})
NUMBER_SORT_FIELDS = frozenset({"days_in_use", "sheet_row"})
TEXT_SORT_FIELDS = frozenset({
    "document_id",
    "customer_name",
    "address",
    "container_number",
    "action_type_raw",
    "status",
})
SORT_FIELDS = DATE_SORT_FIELDS | NUMBER_SORT_FIELDS | TEXT_SORT_FIELDS

DATE_FORMAT = "%Y-%m-%d"


def to_sheet_fields(request: OrderUpdateRequest) -> dict[str, Any]:
    """
    Map the set fields of a request to sheet headers.

    Dates are written as YYYY-MM-DD. Explicit nulls clear the cell.
    """
    fields = {}
    for name, value in request.model_dump(exclude_unset=True).items():
        if value is None:
            value = ""
        elif name in ("event_date", "expected_end_date"):
            value = value.strftime(DATE_FORMAT)
        fields[FIELD_COLUMNS[name]] = value
    return fields


def matches_search(record: OrderRecord, search: str) -> bool:
    """Case-insensitive substring match over the searchable fields."""
    needle = search.lower()
    return any(
        needle in value.lower()
        for value in (getattr(record, name) for name in SEARCH_FIELDS)
        if value
    )


def sort_entries(
    entries: Iterable[OrderHistoryEntry],
    sort_by: str,
    descending: bool = False,
) -> list[OrderHistoryEntry]:
    """
    Sort order entries by one field.

    Dates compare chronologically and rows without the date come first in
    either direction. Numbers compare numerically; text case-insensitively.
    Ties keep input order.

    Raises:
        ValidationError: If sort_by is not a sortable field
    """
    if sort_by not in SORT_FIELDS:
        raise ValidationError(
            f"Cannot sort by '{sort_by}'",
            code="INVALID_SORT_FIELD",
            details={"sort_by": sort_by, "allowed": sorted(SORT_FIELDS)},
        )

    entries = list(entries)

    if sort_by in DATE_SORT_FIELDS:
        undated = [e for e in entries if getattr(e, sort_by) is None]
        dated = [e for e in entries if getattr(e, sort_by) is not None]
        return undated + sorted(dated, key=lambda e: getattr(e, sort_by), reverse=descending)

    if sort_by in NUMBER_SORT_FIELDS:
        return sorted(entries, key=lambda e: getattr(e, sort_by) or 0, reverse=descending)

    return sorted(entries, key=lambda e: (getattr(e, sort_by) or "").lower(), reverse=descending)


class OrderService:
    """Order list and order writes over the sheets backend."""

    def __init__(self, sheets_client: Optional[SheetsClient] = None):
        self.sheets = sheets_client or get_sheets_client()

    # ===================
    # READS
    # ===================

    def list_orders(
        self,
        reference_now: datetime,
        search: Optional[str] = None,
        status: Optional[str] = None,
        action_type: Optional[ActionType] = None,
        sort_by: Optional[str] = None,
        descending: bool = False,
        page: int = 1,
        page_size: int = 50,
    ) -> OrderListResponse:
        """
        List orders, filtered, sorted and paginated.

        Args:
            reference_now: Time days_in_use is measured against
            search: Free text matched against name, document id, address,
                container numbers and notes
            status: Exact raw status as logged
            action_type: Resolved action type
            sort_by: Field to sort by; sheet order when unset
            descending: Sort direction
            page: 1-based page number
            page_size: Items per page

        Raises:
            ValidationError: If sort_by is not a sortable field
        """
        result = self.sheets.fetch_order_records()
        records = result.records

        if search:
            records = [r for r in records if matches_search(r, search)]
        if status:
            records = [r for r in records if r.status == status]
        if action_type:
            records = [r for r in records if r.action_type == action_type]

        entries = decorate_records(records, reference_now)
        if sort_by:
            entries = sort_entries(entries, sort_by, descending)

        total = len(entries)
        offset = (page - 1) * page_size

        logger.info(
            "orders_listed",
            total=total,
            search=search,
            status=status,
            action_type=action_type,
            sort_by=sort_by,
        )

        return OrderListResponse(
            data=entries[offset:offset + page_size],
            warnings=result.warnings,
            total=total,
            page=page,
            page_size=page_size,
            total_pages=(total + page_size - 1) // page_size,
        )

    def get_order(self, sheet_row: int, reference_now: datetime) -> OrderHistoryEntry:
        """
        Get one order by sheet row.

        Raises:
            OrderNotFoundError: If no valid record sits at the row
        """
        records = self.sheets.fetch_order_records().records
        for record in records:
            if record.sheet_row == sheet_row:
                return decorate_records([record], reference_now)[0]
        raise OrderNotFoundError(sheet_row)

    def overdue_orders(self, reference_now: datetime) -> OverdueOrdersResponse:
        """
        Get orders past the overdue threshold, longest on site first.

        An order is listed when its recalculated status is overdue or the
        sheet already marks it overdue.
        """
        records = self.sheets.fetch_order_records().records
        raw_overdue = frozenset(settings.overdue_raw_statuses)

        overdue = [
            entry
            for record, entry in zip(records, decorate_records(records, reference_now))
            if entry.status == settings.overdue_status_label or record.status in raw_overdue
        ]
        overdue = sort_entries(overdue, "days_in_use", descending=True)

        logger.info("overdue_orders_listed", count=len(overdue))

        return OverdueOrdersResponse(total=len(overdue), data=overdue)

    # ===================
    # WRITES
    # ===================

    def add_order(self, request: OrderCreateRequest) -> OrderMutationResponse:
        """Add a new order; status defaults to the open status."""
        fields = to_sheet_fields(request)
        fields.setdefault(cols.COL_STATUS, settings.new_order_status)
        success = self.sheets.add_order(fields)
        return OrderMutationResponse(action="addOrder", success=success)

    def edit_order(self, sheet_row: int, request: OrderUpdateRequest) -> OrderMutationResponse:
        """
        Overwrite the set fields of an order.

        Raises:
            ValidationError: If no field is set
        """
        fields = to_sheet_fields(request)
        if not fields:
            raise ValidationError("No fields to update", code="EMPTY_UPDATE", details={"sheet_row": sheet_row})
        success = self.sheets.edit_order(sheet_row, fields)
        return OrderMutationResponse(action="editOrder", sheet_row=sheet_row, success=success)

    def close_order(self, sheet_row: int, close_notes: str = "") -> OrderMutationResponse:
        success = self.sheets.close_order(sheet_row, close_notes)
        return OrderMutationResponse(action="closeOrder", sheet_row=sheet_row, success=success)

    def delete_order(self, sheet_row: int) -> OrderMutationResponse:
        success = self.sheets.delete_order(sheet_row)
        return OrderMutationResponse(action="deleteOrder", sheet_row=sheet_row, success=success)

    def update_status(self, sheet_row: int, status: str, close_notes: str = "") -> OrderMutationResponse:
        """
        Change an order's status.

        A closed status closes the order instead, so the closing date and
        notes are recorded.
        """
        if status in settings.closed_statuses:
            return self.close_order(sheet_row, close_notes)
        success = self.sheets.update_order_status(sheet_row, status)
        return OrderMutationResponse(action="updateOrderStatus", sheet_row=sheet_row, success=success)

    def update_notes(self, sheet_row: int, notes: str) -> OrderMutationResponse:
        success = self.sheets.update_order_notes(sheet_row, notes)
        return OrderMutationResponse(action="updateOrderNotes", sheet_row=sheet_row, success=success)

    def duplicate_order(self, sheet_row: int, reference_now: datetime) -> OrderMutationResponse:
        """
        Add a copy of an order as a new open order dated today.

        The copy is taken from the raw row, so every column carries over
        except the closing fields, which are cleared.

        Raises:
            OrderNotFoundError: If no row sits at sheet_row
        """
        rows = self.sheets.fetch_order_rows()
        source = next(
            (
                row for offset, row in enumerate(rows)
                if sheet_row_number(row, cols.FIRST_DATA_ROW + offset) == sheet_row
            ),
            None,
        )
        if source is None:
            raise OrderNotFoundError(sheet_row)

        fields = {
            header: "" if value is None else value
            for header, value in source.items()
            if header != cols.COL_SHEET_ROW
        }
        fields[cols.COL_STATUS] = settings.new_order_status
        fields[cols.COL_CLOSED_DATE] = ""
        fields[cols.COL_CLOSE_NOTES] = ""
        fields[cols.COL_DAYS_RETURNED] = ""
        fields[cols.COL_EVENT_DATE] = reference_now.strftime(DATE_FORMAT)

        success = self.sheets.add_order(fields)
        logger.info("order_duplicated", source_row=sheet_row)
        return OrderMutationResponse(action="addOrder", sheet_row=sheet_row, success=success)


# Singleton instance
_order_service: Optional[OrderService] = None


def get_order_service() -> OrderService:
    """Get the singleton order service instance."""
    global _order_service
    if _order_service is None:
        _order_service = OrderService()
    return _order_service

"""
Order record schemas.

One OrderRecord is one row of the CRM sheet: a single logged drop or
pickup action at a customer site.
"""

from datetime import date, datetime
from enum import Enum
from typing import Optional
from pydantic import Field, computed_field

from models.base import BaseSchema, PaginatedResponse
from utils.text_utils import build_customer_key


class ActionType(str, Enum):
    """Resolved action type of a sheet row."""

    DROP = "DROP"      # Container placed at customer site
    PICKUP = "PICKUP"  # Container removed from customer site
    OTHER = "OTHER"    # Exchange, service visit, unknown text


class WarningCode(str, Enum):
    """Data-quality warning codes."""

    INVALID_DATE = "INVALID_DATE"
    UNCLASSIFIED_ACTION_TYPE = "UNCLASSIFIED_ACTION_TYPE"
    MISSING_FIELD = "MISSING_FIELD"


class OrderRecord(BaseSchema):
    """
    Validated CRM sheet row.

    event_date is the sheet's single action date column; pickup rows store
    their own pickup date there too.
    """

    sheet_row: Optional[int] = Field(None, ge=1, description="1-based sheet row")
    document_id: str = Field(..., description="Human reference number, not unique")
    customer_name: str = Field(..., min_length=1)
    customer_phone: str = Field("", description="Customer phone, may be empty")
    address: Optional[str] = None
    container_number: str = Field("", description="Container this action moved")
    container_picked_up: str = Field("", description="Picked-up container column as logged")
    action_type_raw: str = Field(..., description="Free-text action type as logged")
    action_type: ActionType
    event_date: datetime
    closed_date: Optional[datetime] = None
    expected_end_date: Optional[datetime] = None
    status: str = ""
    notes: Optional[str] = None

    @computed_field
    @property
    def customer_key(self) -> str:
        """Composite identity: name + phone."""
        return build_customer_key(self.customer_name, self.customer_phone)


class OrderHistoryEntry(OrderRecord):
    """OrderRecord decorated with elapsed days and recalculated status."""

    days_in_use: int = Field(..., description="Whole days from event date to reference time")


class DataQualityWarning(BaseSchema):
    """A row-level data issue reported alongside results."""

    code: WarningCode
    document_id: Optional[str] = None
    sheet_row: Optional[int] = None
    message: str
    details: dict = Field(default_factory=dict)


class CustomerHistoryResponse(BaseSchema):
    """One customer's order history."""

    customer_key: str
    total: int
    history: list[OrderHistoryEntry]
    warnings: list[DataQualityWarning] = Field(default_factory=list)


class IngestResponse(BaseSchema):
    """Result of importing a CRM export."""

    filename: Optional[str] = None
    rows_read: int
    records: list[OrderRecord]
    warnings: list[DataQualityWarning]


# ===================
# ORDER MUTATIONS
# ===================

class OrderUpdateRequest(BaseSchema):
    """Order fields to write. Unset fields are left untouched."""

    document_id: Optional[str] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    address: Optional[str] = None
    action_type: Optional[str] = Field(None, description="Action type text, e.g. הורדה")
    container_dropped: Optional[str] = None
    container_picked_up: Optional[str] = None
    event_date: Optional[date] = None
    expected_end_date: Optional[date] = None
    status: Optional[str] = None
    notes: Optional[str] = None


class OrderCreateRequest(OrderUpdateRequest):
    """New order. Status defaults to the open status."""

    customer_name: str = Field(..., min_length=1)
    action_type: str = Field(..., min_length=1, description="Action type text, e.g. הורדה")
    event_date: date


class OrderCloseRequest(BaseSchema):
    close_notes: str = ""


class OrderStatusRequest(BaseSchema):
    status: str = Field(..., min_length=1)
    close_notes: str = Field("", description="Used when the new status closes the order")


class OrderNotesRequest(BaseSchema):
    notes: str = ""


class OrderMutationResponse(BaseSchema):
    """Backend acknowledgement of an order write."""

    action: str
    sheet_row: Optional[int] = None
    success: bool


# ===================
# ORDER LISTS
# ===================

class OrderListResponse(PaginatedResponse):
    """Filtered, sorted page of orders."""

    data: list[OrderHistoryEntry]
    warnings: list[DataQualityWarning] = Field(default_factory=list)


class OverdueOrdersResponse(BaseSchema):
    """Orders on site past the overdue threshold, longest first."""

    total: int
    data: list[OrderHistoryEntry]


class ContainerHistoryResponse(BaseSchema):
    """Every order that moved one container, newest first."""

    container_number: str
    total: int
    history: list[OrderHistoryEntry]

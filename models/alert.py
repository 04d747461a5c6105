"""
Alert models and schemas.

Alerts notify users about open orders that need attention:
- Containers on site too long (severity by days in use)
- Conflicts between active orders (duplicate document ids, shared containers)
- Expected end dates about to pass
"""

from datetime import datetime
from typing import Optional
from enum import Enum
from pydantic import Field

from models.base import BaseSchema, FrozenSchema, PaginatedResponse


class AlertSeverity(str, Enum):
    """Alert severity levels, ordered by urgency."""

    SOFT = "SOFT"          # Worth a reminder
    WARNING = "WARNING"    # Should be addressed soon
    CRITICAL = "CRITICAL"  # Requires immediate action


class ConflictKind(str, Enum):
    """Conflict alert kinds."""

    DUPLICATE_DOCUMENT_ID = "DUPLICATE_DOCUMENT_ID"
    CONTAINER_MULTIPLE_ACTIVE = "CONTAINER_MULTIPLE_ACTIVE"
    CUSTOMER_MULTIPLE_ACTIVE = "CUSTOMER_MULTIPLE_ACTIVE"
    EXPECTED_END_SOON = "EXPECTED_END_SOON"


class AlertThresholds(FrozenSchema):
    """Days-in-use thresholds; an order alerts when strictly above one."""

    soft_days: int = Field(10, ge=0)
    warning_days: int = Field(14, ge=0)
    critical_days: int = Field(21, ge=0)


class OrderAlert(FrozenSchema):
    """Open drop order exceeding a threshold."""

    alert_id: str
    severity: AlertSeverity
    customer_key: str
    customer_name: str
    document_id: str
    address: Optional[str] = None
    container_number: str
    event_date: datetime
    days_in_use: int
    expected_end_date: Optional[datetime] = None
    expected_end_passed: bool = False


class ConflictAlert(FrozenSchema):
    """Inconsistency across active orders."""

    kind: ConflictKind
    key: str
    document_ids: list[str]
    message: str


class AlertsSummary(BaseSchema):
    """Counts per severity."""

    soft: int = 0
    warning: int = 0
    critical: int = 0


class AlertListResponse(PaginatedResponse):
    """Paginated list of alerts."""

    data: list[OrderAlert]
    summary: AlertsSummary


class ConflictListResponse(BaseSchema):
    """All conflict alerts."""

    data: list[ConflictAlert]
    total: int


class AlertHandledRequest(BaseSchema):
    """Mark an alert handled."""

    note: str = Field("", max_length=1000, description="Handling note for the log")


class AlertHandledResponse(BaseSchema):
    """Handled acknowledgement."""

    alert_id: str
    handled: bool

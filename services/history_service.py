"""
Customer history extraction.

Filters all order records down to one customer and decorates each with the
days elapsed since its event and a recalculated status.
"""

from datetime import datetime
from typing import Iterable, Optional
import structlog

from config import settings
from models.order import OrderRecord, OrderHistoryEntry
from utils.date_utils import whole_days_between

logger = structlog.get_logger(__name__)


def decorate_record(
    record: OrderRecord,
    reference_now: datetime,
    overdue_threshold_days: int,
    active_statuses: Iterable[str],
    overdue_label: str,
) -> OrderHistoryEntry:
    """
    Add days_in_use and recalculate status for one record.

    Active orders past the threshold become overdue_label; every other
    status is kept as logged.
    """
    days_in_use = whole_days_between(record.event_date, reference_now)

    status = record.status
    if status in active_statuses and days_in_use > overdue_threshold_days:
        status = overdue_label

    return OrderHistoryEntry(
        **record.model_dump(exclude={"customer_key", "status"}),
        status=status,
        days_in_use=days_in_use,
    )


def decorate_records(
    records: Iterable[OrderRecord],
    reference_now: datetime,
    overdue_threshold_days: Optional[int] = None,
    active_statuses: Optional[Iterable[str]] = None,
    overdue_label: Optional[str] = None,
) -> list[OrderHistoryEntry]:
    """Decorate every record, with thresholds and vocabularies defaulting to settings."""
    threshold = settings.overdue_threshold_days if overdue_threshold_days is None else overdue_threshold_days
    active = frozenset(settings.active_statuses if active_statuses is None else active_statuses)
    label = overdue_label or settings.overdue_status_label

    return [
        decorate_record(record, reference_now, threshold, active, label)
        for record in records
    ]


def extract_customer_history(
    records: Iterable[OrderRecord],
    customer_key: str,
    reference_now: datetime,
    overdue_threshold_days: Optional[int] = None,
    active_statuses: Optional[Iterable[str]] = None,
    overdue_label: Optional[str] = None,
) -> list[OrderHistoryEntry]:
    """
    Get one customer's records, decorated.

    Args:
        records: All order records
        customer_key: Composite "{name}_{phone}" key
        reference_now: Time to measure elapsed days against
        overdue_threshold_days: Defaults to settings (21)
        active_statuses: Raw statuses meaning "active"; defaults to settings
        overdue_label: Status assigned to overdue records; defaults to settings

    Returns:
        Matching records in input order (empty if none)
    """
    history = decorate_records(
        (record for record in records if record.customer_key == customer_key),
        reference_now,
        overdue_threshold_days,
        active_statuses,
        overdue_label,
    )

    logger.debug(
        "customer_history_extracted",
        customer_key=customer_key,
        count=len(history),
    )

    return history

"""
Alert service for open-order monitoring.

Two alert families:
- Order alerts: open drop orders bucketed SOFT / WARNING / CRITICAL by days
  on site (defaults 10 / 14 / 21, strictly greater than).
- Conflict alerts: duplicate document ids, one container on several active
  orders, several active orders for one customer+address, and expected end
  dates about to pass.

Everything is computed from an in-memory snapshot; nothing is stored.
"""

from collections import defaultdict
from datetime import datetime, timedelta
from typing import Iterable, Optional
import structlog

from config import settings
from models.alert import (
    AlertSeverity,
    AlertThresholds,
    AlertsSummary,
    ConflictAlert,
    ConflictKind,
    OrderAlert,
)
from models.order import ActionType, OrderRecord
from utils.date_utils import whole_days_between

logger = structlog.get_logger(__name__)


def severity_for(days_in_use: int, thresholds: AlertThresholds) -> Optional[AlertSeverity]:
    """
    Bucket days in use.

    Returns:
        Highest severity whose threshold is exceeded, or None
    """
    if days_in_use > thresholds.critical_days:
        return AlertSeverity.CRITICAL
    if days_in_use > thresholds.warning_days:
        return AlertSeverity.WARNING
    if days_in_use > thresholds.soft_days:
        return AlertSeverity.SOFT
    return None


def alert_id_for(record: OrderRecord) -> str:
    """Stable id: sheet row when known, else document id."""
    if record.sheet_row is not None:
        return f"alert-{record.sheet_row}"
    return f"alert-doc-{record.document_id}"


class AlertService:
    """
    Alert evaluation.

    Status vocabularies and thresholds default to settings; tests pass
    their own.
    """

    def __init__(
        self,
        thresholds: Optional[AlertThresholds] = None,
        active_statuses: Optional[Iterable[str]] = None,
        upcoming_days: Optional[int] = None,
    ):
        self.thresholds = thresholds or AlertThresholds(
            soft_days=settings.alert_soft_days,
            warning_days=settings.alert_warning_days,
            critical_days=settings.alert_critical_days,
        )
        self.active_statuses = frozenset(
            settings.active_statuses if active_statuses is None else active_statuses
        )
        self.upcoming_days = (
            settings.expected_end_upcoming_days if upcoming_days is None else upcoming_days
        )

    def is_active(self, record: OrderRecord) -> bool:
        """Check if the raw status denotes an open order."""
        return record.status in self.active_statuses

    # ===================
    # ORDER ALERTS
    # ===================

    def evaluate(
        self,
        records: Iterable[OrderRecord],
        reference_now: datetime,
    ) -> list[OrderAlert]:
        """
        Evaluate open drop orders.

        An order whose expected end date has passed alerts at least SOFT
        even below the soft threshold.

        Args:
            records: All order records
            reference_now: Time to measure against

        Returns:
            Alerts sorted by days in use, longest first
        """
        alerts = []

        for record in records:
            if record.action_type != ActionType.DROP or not self.is_active(record):
                continue

            days_in_use = whole_days_between(record.event_date, reference_now)
            expected_end_passed = (
                record.expected_end_date is not None
                and reference_now > record.expected_end_date
            )

            severity = severity_for(days_in_use, self.thresholds)
            if severity is None and expected_end_passed:
                severity = AlertSeverity.SOFT
            if severity is None:
                continue

            alerts.append(OrderAlert(
                alert_id=alert_id_for(record),
                severity=severity,
                customer_key=record.customer_key,
                customer_name=record.customer_name,
                document_id=record.document_id,
                address=record.address,
                container_number=record.container_number,
                event_date=record.event_date,
                days_in_use=days_in_use,
                expected_end_date=record.expected_end_date,
                expected_end_passed=expected_end_passed,
            ))

        alerts.sort(key=lambda alert: alert.days_in_use, reverse=True)

        logger.info(
            "order_alerts_evaluated",
            count=len(alerts),
            critical=sum(1 for a in alerts if a.severity == AlertSeverity.CRITICAL),
        )

        return alerts

    @staticmethod
    def summarize(alerts: Iterable[OrderAlert]) -> AlertsSummary:
        """Count alerts per severity."""
        summary = AlertsSummary()
        for alert in alerts:
            if alert.severity == AlertSeverity.CRITICAL:
                summary.critical += 1
            elif alert.severity == AlertSeverity.WARNING:
                summary.warning += 1
            else:
                summary.soft += 1
        return summary

    # ===================
    # CONFLICT ALERTS
    # ===================

    def find_conflicts(
        self,
        records: Iterable[OrderRecord],
        reference_now: datetime,
    ) -> list[ConflictAlert]:
        """
        Find inconsistencies across active orders.

        Args:
            records: All order records
            reference_now: Time for the expected-end look-ahead

        Returns:
            Conflict alerts grouped by kind
        """
        active = [record for record in records if self.is_active(record)]

        by_document: dict[str, list[OrderRecord]] = defaultdict(list)
        by_container: dict[str, list[OrderRecord]] = defaultdict(list)
        by_customer_address: dict[str, list[OrderRecord]] = defaultdict(list)

        for record in active:
            if record.document_id:
                by_document[record.document_id].append(record)
            if record.container_number and record.action_type == ActionType.DROP:
                by_container[record.container_number].append(record)
            by_customer_address[f"{record.customer_name}_{record.address or ''}"].append(record)

        conflicts: list[ConflictAlert] = []

        for customer_address, group in by_customer_address.items():
            if len(group) > 1:
                conflicts.append(ConflictAlert(
                    kind=ConflictKind.CUSTOMER_MULTIPLE_ACTIVE,
                    key=customer_address,
                    document_ids=[r.document_id for r in group],
                    message=(
                        f"{len(group)} active orders for customer {group[0].customer_name}"
                        f" at {group[0].address or 'unknown address'}"
                    ),
                ))

        for document_id, group in by_document.items():
            if len(group) > 1:
                conflicts.append(ConflictAlert(
                    kind=ConflictKind.DUPLICATE_DOCUMENT_ID,
                    key=document_id,
                    document_ids=[r.document_id for r in group],
                    message=f"{len(group)} active orders share document id {document_id}",
                ))

        for container_number, group in by_container.items():
            if len(group) > 1:
                conflicts.append(ConflictAlert(
                    kind=ConflictKind.CONTAINER_MULTIPLE_ACTIVE,
                    key=container_number,
                    document_ids=[r.document_id for r in group],
                    message=f"Container {container_number} is assigned to {len(group)} active orders",
                ))

        horizon = reference_now + timedelta(days=self.upcoming_days)
        for record in active:
            end = record.expected_end_date
            if end is not None and reference_now <= end <= horizon:
                conflicts.append(ConflictAlert(
                    kind=ConflictKind.EXPECTED_END_SOON,
                    key=record.document_id,
                    document_ids=[record.document_id],
                    message=(
                        f"Order {record.document_id} for {record.customer_name}"
                        f" reaches its expected end on {end.date().isoformat()}"
                    ),
                ))

        logger.info("conflict_alerts_found", count=len(conflicts))

        return conflicts


# Singleton instance
_alert_service: Optional[AlertService] = None


def get_alert_service() -> AlertService:
    """Get the singleton alert service instance."""
    global _alert_service
    if _alert_service is None:
        _alert_service = AlertService()
    return _alert_service

"""
Container inventory: which containers are out on customer sites and which
are back and available.
"""

from datetime import datetime
from typing import Iterable, Optional
import structlog

from config import settings
from models.inventory import ContainerInventoryResponse, ContainerLocation
from models.order import ActionType, ContainerHistoryResponse, OrderRecord
from services.history_service import decorate_records

logger = structlog.get_logger(__name__)


def _location(record: OrderRecord, since) -> ContainerLocation:
    return ContainerLocation(
        container_number=record.container_number,
        document_id=record.document_id,
        customer_name=record.customer_name,
        address=record.address,
        status=record.status,
        since=since,
    )


class InventoryService:
    """Container location tracking from order records."""

    def __init__(self, closed_statuses: Optional[Iterable[str]] = None):
        self.closed_statuses = frozenset(
            settings.closed_statuses if closed_statuses is None else closed_statuses
        )

    def build_inventory(self, records: Iterable[OrderRecord]) -> ContainerInventoryResponse:
        """
        Split containers into in-use and available.

        In use: latest non-closed DROP per container number.
        Available: closed PICKUP per container number not currently in use,
        keeping the latest by closing date (event date when unset).

        Args:
            records: All order records

        Returns:
            ContainerInventoryResponse, each list sorted by container number
        """
        in_use: dict[str, ContainerLocation] = {}
        returned: dict[str, ContainerLocation] = {}

        for record in records:
            if not record.container_number:
                continue
            closed = record.status in self.closed_statuses

            if record.action_type == ActionType.DROP and not closed:
                current = in_use.get(record.container_number)
                if current is None or record.event_date >= current.since:
                    in_use[record.container_number] = _location(record, record.event_date)

            elif record.action_type == ActionType.PICKUP and closed:
                since = record.closed_date or record.event_date
                current = returned.get(record.container_number)
                if current is None or since > current.since:
                    returned[record.container_number] = _location(record, since)

        available = {
            number: location
            for number, location in returned.items()
            if number not in in_use
        }

        in_use_list = [in_use[number] for number in sorted(in_use)]
        available_list = [available[number] for number in sorted(available)]

        logger.info(
            "container_inventory_built",
            in_use=len(in_use_list),
            available=len(available_list),
        )

        return ContainerInventoryResponse(
            in_use=in_use_list,
            available=available_list,
            in_use_count=len(in_use_list),
            available_count=len(available_list),
        )

    def container_history(
        self,
        records: Iterable[OrderRecord],
        container_number: str,
        reference_now: datetime,
    ) -> ContainerHistoryResponse:
        """
        Get every order that dropped or picked up one container.

        Container numbers are compared exactly as logged. Newest first.
        """
        matching = [
            record for record in records
            if container_number and container_number in (record.container_number, record.container_picked_up)
        ]
        history = sorted(
            decorate_records(matching, reference_now),
            key=lambda entry: entry.event_date,
            reverse=True,
        )

        logger.info("container_history_built", container_number=container_number, count=len(history))

        return ContainerHistoryResponse(
            container_number=container_number,
            total=len(history),
            history=history,
        )


# Singleton instance
_inventory_service: Optional[InventoryService] = None


def get_inventory_service() -> InventoryService:
    """Get the singleton inventory service instance."""
    global _inventory_service
    if _inventory_service is None:
        _inventory_service = InventoryService()
    return _inventory_service

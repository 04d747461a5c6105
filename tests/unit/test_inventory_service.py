"""
Unit tests for InventoryService.
"""

import pytest
from datetime import datetime

from services.inventory_service import InventoryService
from tests.factories import OrderRecordFactory as F


@pytest.fixture
def service():
    return InventoryService(closed_statuses=["סגור"])


class TestBuildInventory:
    """In-use vs available containers."""

    def test_open_drop_is_in_use(self, service):
        records = [F.drop(container_number="C1", document_id="1", status="פעיל")]

        inventory = service.build_inventory(records)

        assert [c.container_number for c in inventory.in_use] == ["C1"]
        assert inventory.available == []

    def test_closed_pickup_is_available(self, service):
        records = [F.pickup(
            container_number="C2",
            status="סגור",
            event_date=datetime(2024, 1, 5),
            closed_date=datetime(2024, 1, 6),
        )]

        inventory = service.build_inventory(records)

        assert [c.container_number for c in inventory.available] == ["C2"]
        assert inventory.available[0].since == datetime(2024, 1, 6)

    def test_in_use_wins_over_available(self, service):
        records = [
            F.pickup(container_number="C3", status="סגור", event_date=datetime(2024, 1, 1)),
            F.drop(container_number="C3", status="פעיל", event_date=datetime(2024, 1, 10)),
        ]

        inventory = service.build_inventory(records)

        assert [c.container_number for c in inventory.in_use] == ["C3"]
        assert inventory.available == []

    def test_latest_drop_kept(self, service):
        records = [
            F.drop(container_number="C4", document_id="new", event_date=datetime(2024, 1, 20)),
            F.drop(container_number="C4", document_id="old", event_date=datetime(2024, 1, 1)),
        ]

        inventory = service.build_inventory(records)

        assert inventory.in_use[0].document_id == "new"

    def test_sorted_and_counted(self, service):
        records = [
            F.drop(container_number="Z9"),
            F.drop(container_number="A1"),
            F.pickup(container_number="M5", status="סגור"),
            F.drop(container_number=""),
        ]

        inventory = service.build_inventory(records)

        assert [c.container_number for c in inventory.in_use] == ["A1", "Z9"]
        assert inventory.in_use_count == 2
        assert inventory.available_count == 1


class TestContainerHistory:
    """Orders that moved one container."""

    def test_newest_first_across_customers(self, service, reference_now):
        records = [
            F.drop(container_number="C1", document_id="1", event_date=datetime(2024, 1, 1)),
            F.pickup(container_number="C1", document_id="2", event_date=datetime(2024, 1, 10),
                     customer_name="Other"),
            F.drop(container_number="C2", document_id="3", event_date=datetime(2024, 1, 12)),
        ]

        history = service.container_history(records, "C1", reference_now)

        assert history.container_number == "C1"
        assert history.total == 2
        assert [e.document_id for e in history.history] == ["2", "1"]
        assert history.history[1].days_in_use == 31

    def test_matches_picked_up_column(self, service, reference_now):
        records = [
            F.other(container_number="C5", container_picked_up="C6", document_id="9"),
        ]

        history = service.container_history(records, "C6", reference_now)

        assert [e.document_id for e in history.history] == ["9"]

    def test_number_compared_as_logged(self, service, reference_now):
        records = [F.drop(container_number="c 1", document_id="1")]

        assert service.container_history(records, "C1", reference_now).total == 0

"""
Unit tests for the container pairing engine.

Run: pytest tests/unit/test_pairing_service.py -v
"""

import pytest
from datetime import datetime

from models.container_pair import REASON_NO_DROP, REASON_NO_PICKUP, ContainerPair
from models.order import WarningCode
from services.pairing_service import (
    ContainerPairingService,
    GreedyEarliestPickupStrategy,
    PairingStrategy,
    sort_pairs,
)
from tests.factories import OrderRecordFactory as F

CUSTOMER = "ישראל ישראלי_050-1234567"


@pytest.fixture
def service():
    return ContainerPairingService()


def pair(service, records, reference_now):
    return service.pair_records(records, CUSTOMER, reference_now)


# ===================
# BASIC LIFECYCLES
# ===================

class TestBasicLifecycles:
    """Single drops and pickups, matched or not."""

    def test_single_drop_and_later_pickup_match(self, service, reference_now):
        """C1 dropped 01-01, picked up 01-10 -> 9 days, not anomalous."""
        records = [
            F.drop(container_number="C1", event_date=datetime(2024, 1, 1), document_id="D1"),
            F.pickup(container_number="C1", event_date=datetime(2024, 1, 10), document_id="P1"),
        ]

        result = pair(service, records, reference_now)

        assert len(result.pairs) == 1
        only = result.pairs[0]
        assert only.drop.document_id == "D1"
        assert only.pickup.document_id == "P1"
        assert only.days_in_use == 9
        assert only.is_anomalous is False
        assert only.anomaly_reason is None
        assert result.anomalous_count == 0

    def test_drop_without_pickup_is_anomalous(self, service, reference_now):
        """Drop with no pickup -> open anomalous pair, days to now."""
        records = [F.drop(container_number="C2", event_date=datetime(2024, 1, 1))]

        result = pair(service, records, reference_now)

        assert len(result.pairs) == 1
        only = result.pairs[0]
        assert only.pickup is None
        assert only.is_anomalous is True
        assert "no matching pickup found" in only.anomaly_reason
        assert only.anomaly_reason == REASON_NO_PICKUP
        # 2024-01-01 00:00 -> 2024-02-01 12:00
        assert only.days_in_use == 31

    def test_pickup_without_drop_is_anomalous(self, service, reference_now):
        """Pickup with no drop -> anomalous, drop None, no days."""
        records = [F.pickup(container_number="C3", event_date=datetime(2024, 1, 5))]

        result = pair(service, records, reference_now)

        assert len(result.pairs) == 1
        only = result.pairs[0]
        assert only.drop is None
        assert only.pickup.container_number == "C3"
        assert only.is_anomalous is True
        assert "no matching drop found" in only.anomaly_reason
        assert only.anomaly_reason == REASON_NO_DROP
        assert only.days_in_use is None

    def test_greedy_first_drop_claims_pickup(self, service, reference_now):
        """
        Two drops of C4 (01-01, 01-15), one pickup 01-20.

        The first drop in input order takes the pickup; the second drop
        stays open even though pairing it would also be date-valid.
        """
        records = [
            F.drop(container_number="C4", event_date=datetime(2024, 1, 1), document_id="D1"),
            F.drop(container_number="C4", event_date=datetime(2024, 1, 15), document_id="D2"),
            F.pickup(container_number="C4", event_date=datetime(2024, 1, 20), document_id="P1"),
        ]

        result = pair(service, records, reference_now)

        assert len(result.pairs) == 2
        first, second = result.pairs
        assert first.drop.document_id == "D1"
        assert first.pickup.document_id == "P1"
        assert first.days_in_use == 19
        assert first.is_anomalous is False

        assert second.drop.document_id == "D2"
        assert second.pickup is None
        assert second.is_anomalous is True
        assert second.days_in_use == 17


# ===================
# MATCHING RULES
# ===================

class TestMatchingRules:
    """Candidate selection details."""

    def test_pickup_before_drop_is_never_eligible(self, service, reference_now):
        records = [
            F.pickup(container_number="C1", event_date=datetime(2023, 12, 20), document_id="P0"),
            F.drop(container_number="C1", event_date=datetime(2024, 1, 1), document_id="D1"),
        ]

        result = pair(service, records, reference_now)

        assert len(result.pairs) == 2
        orphan, open_drop = result.pairs
        assert orphan.drop is None and orphan.pickup.document_id == "P0"
        assert open_drop.drop.document_id == "D1" and open_drop.pickup is None

    def test_same_day_pickup_matches_with_zero_days(self, service, reference_now):
        day = datetime(2024, 1, 3)
        records = [
            F.drop(container_number="C1", event_date=day),
            F.pickup(container_number="C1", event_date=day),
        ]

        result = pair(service, records, reference_now)

        assert len(result.pairs) == 1
        assert result.pairs[0].days_in_use == 0
        assert result.pairs[0].is_anomalous is False

    def test_container_numbers_must_match(self, service, reference_now):
        records = [
            F.drop(container_number="C1", event_date=datetime(2024, 1, 1)),
            F.pickup(container_number="C9", event_date=datetime(2024, 1, 5)),
        ]

        result = pair(service, records, reference_now)

        assert len(result.pairs) == 2
        assert all(p.is_anomalous for p in result.pairs)

    def test_earliest_candidate_wins_regardless_of_input_order(self, service, reference_now):
        records = [
            F.drop(container_number="C1", event_date=datetime(2024, 1, 1), document_id="D1"),
            F.pickup(container_number="C1", event_date=datetime(2024, 1, 25), document_id="P-late"),
            F.pickup(container_number="C1", event_date=datetime(2024, 1, 8), document_id="P-early"),
        ]

        result = pair(service, records, reference_now)

        matched = [p for p in result.pairs if not p.is_anomalous]
        assert len(matched) == 1
        assert matched[0].pickup.document_id == "P-early"
        assert matched[0].days_in_use == 7

    def test_equal_pickup_dates_keep_input_order(self, service, reference_now):
        same = datetime(2024, 1, 9)
        records = [
            F.drop(container_number="C1", event_date=datetime(2024, 1, 1)),
            F.pickup(container_number="C1", event_date=same, document_id="P-first"),
            F.pickup(container_number="C1", event_date=same, document_id="P-second"),
        ]

        result = pair(service, records, reference_now)

        matched = [p for p in result.pairs if not p.is_anomalous]
        assert matched[0].pickup.document_id == "P-first"

    def test_two_cycles_of_same_container(self, service, reference_now):
        records = [
            F.drop(container_number="C1", event_date=datetime(2024, 1, 1), document_id="D1"),
            F.pickup(container_number="C1", event_date=datetime(2024, 1, 5), document_id="P1"),
            F.drop(container_number="C1", event_date=datetime(2024, 1, 10), document_id="D2"),
            F.pickup(container_number="C1", event_date=datetime(2024, 1, 20), document_id="P2"),
        ]

        result = pair(service, records, reference_now)

        assert [(p.drop.document_id, p.pickup.document_id) for p in result.pairs] == [
            ("D1", "P1"),
            ("D2", "P2"),
        ]

    def test_days_in_use_floors_partial_days(self, service, reference_now):
        records = [
            F.drop(container_number="C1", event_date=datetime(2024, 1, 1, 18, 0)),
            F.pickup(container_number="C1", event_date=datetime(2024, 1, 3, 9, 0)),
        ]

        result = pair(service, records, reference_now)

        assert result.pairs[0].days_in_use == 1

    def test_other_customers_records_are_ignored(self, service, reference_now):
        records = [
            F.drop(customer_name="Alice", customer_phone="1", container_number="C1",
                   event_date=datetime(2024, 1, 1), document_id="D-ALICE"),
            F.pickup(customer_name="Bob", customer_phone="2", container_number="C1",
                     event_date=datetime(2024, 1, 5), document_id="P-BOB"),
        ]

        result = service.pair_records(records, "Alice_1", reference_now)

        assert len(result.pairs) == 1
        only = result.pairs[0]
        assert only.drop.document_id == "D-ALICE"
        assert only.pickup is None
        assert only.is_anomalous is True
        assert result.customer_key == "Alice_1"

    def test_pickups_without_document_id_are_claimed_separately(self, service, reference_now):
        records = [
            F.drop(container_number="C1", event_date=datetime(2024, 1, 1), document_id="D1"),
            F.pickup(container_number="C1", event_date=datetime(2024, 1, 5),
                     document_id="", sheet_row=10),
            F.pickup(container_number="C1", event_date=datetime(2024, 1, 8),
                     document_id="", sheet_row=11),
        ]

        result = pair(service, records, reference_now)

        assert len(result.pairs) == 2
        matched, orphan = result.pairs
        assert matched.pickup.date == datetime(2024, 1, 5)
        assert matched.is_anomalous is False
        assert orphan.drop is None
        assert orphan.pickup.date == datetime(2024, 1, 8)
        assert orphan.anomaly_reason == REASON_NO_DROP


# ===================
# PROPERTIES
# ===================

@pytest.fixture
def mixed_records():
    """Interleaved drops and pickups over three containers."""
    return [
        F.drop(container_number="A", event_date=datetime(2024, 1, 10), document_id="D-A2"),
        F.pickup(container_number="B", event_date=datetime(2024, 1, 4), document_id="P-B1"),
        F.drop(container_number="A", event_date=datetime(2024, 1, 1), document_id="D-A1"),
        F.pickup(container_number="A", event_date=datetime(2024, 1, 12), document_id="P-A1"),
        F.drop(container_number="B", event_date=datetime(2024, 1, 6), document_id="D-B1"),
        F.pickup(container_number="C", event_date=datetime(2024, 1, 2), document_id="P-C1"),
        F.pickup(container_number="A", event_date=datetime(2024, 1, 15), document_id="P-A2"),
        F.other(container_number="A", event_date=datetime(2024, 1, 7), document_id="X-1"),
    ]


class TestProperties:
    """Properties that hold for any input."""

    def test_pair_count(self, service, reference_now, mixed_records):
        result = pair(service, mixed_records, reference_now)

        drops = [r for r in mixed_records if r.action_type.value == "DROP"]
        pickups = [r for r in mixed_records if r.action_type.value == "PICKUP"]
        claimed = {p.pickup.document_id for p in result.pairs if p.drop and p.pickup}
        unclaimed = [p for p in pickups if p.document_id not in claimed]

        assert len(result.pairs) == len(drops) + len(unclaimed)

    def test_each_pickup_used_at_most_once(self, service, reference_now, mixed_records):
        result = pair(service, mixed_records, reference_now)

        pickup_ids = [p.pickup.document_id for p in result.pairs if p.pickup]
        assert len(pickup_ids) == len(set(pickup_ids))

    def test_matched_pickup_never_precedes_drop(self, service, reference_now, mixed_records):
        result = pair(service, mixed_records, reference_now)

        for p in result.pairs:
            if p.drop and p.pickup:
                assert p.pickup.date >= p.drop.date
                assert p.days_in_use == (p.pickup.date - p.drop.date).days
                assert p.days_in_use >= 0

    def test_sorted_by_effective_date(self, service, reference_now, mixed_records):
        result = pair(service, mixed_records, reference_now)

        dates = [p.effective_date for p in result.pairs]
        assert dates == sorted(dates)
        assert sort_pairs(result.pairs) == result.pairs

    def test_idempotent(self, service, reference_now, mixed_records):
        first = pair(service, mixed_records, reference_now)
        second = pair(service, mixed_records, reference_now)

        assert first.model_dump() == second.model_dump()

    def test_other_records_excluded_and_reported(self, service, reference_now, mixed_records):
        result = pair(service, mixed_records, reference_now)

        all_ids = {
            endpoint.document_id
            for p in result.pairs
            for endpoint in (p.drop, p.pickup)
            if endpoint is not None
        }
        assert "X-1" not in all_ids
        assert len(result.warnings) == 1
        assert result.warnings[0].code == WarningCode.UNCLASSIFIED_ACTION_TYPE
        assert result.warnings[0].document_id == "X-1"

    def test_empty_input(self, service, reference_now):
        result = pair(service, [], reference_now)

        assert result.pairs == []
        assert result.warnings == []
        assert result.customer_key == CUSTOMER


# ===================
# STRATEGY INTERFACE
# ===================

class TestStrategyInterface:
    """The pairing policy is swappable."""

    def test_default_strategy_is_greedy(self, service):
        assert isinstance(service.strategy, GreedyEarliestPickupStrategy)

    def test_custom_strategy_is_used(self, reference_now):

        class NoMatchStrategy(PairingStrategy):
            name = "no_match"

            def pair(self, drops, pickups, reference_now):
                pairs = [ContainerPair(is_anomalous=True, pickup=None, drop=None)] if drops else []
                return pairs, frozenset()

        service = ContainerPairingService(strategy=NoMatchStrategy())
        result = service.pair_records([F.drop()], CUSTOMER, reference_now)

        assert result.strategy == "no_match"
        assert len(result.pairs) == 1

    def test_greedy_returns_claimed_ids(self, reference_now):
        drops = [F.drop(container_number="C1", event_date=datetime(2024, 1, 1))]
        pickups = [
            F.pickup(container_number="C1", event_date=datetime(2024, 1, 2), document_id="P1"),
            F.pickup(container_number="C2", event_date=datetime(2024, 1, 2), document_id="P2"),
        ]

        pairs, claimed = GreedyEarliestPickupStrategy().pair(drops, pickups, reference_now)

        assert claimed == frozenset({"P1"})
        assert len(pairs) == 2

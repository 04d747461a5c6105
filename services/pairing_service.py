"""
Container pairing engine.

Reconstructs drop -> pickup lifecycles per container from one customer's
unordered order records.

Greedy policy (default):
1. Iterate drops in input order.
2. For each drop, candidates are pickups with the same container number,
   not yet claimed, dated on or after the drop. Earliest candidate wins;
   ties keep input order.
3. Drops without a candidate become anomalous (no pickup yet).
4. Pickups never claimed become anomalous (no drop).
5. Pairs sorted ascending by drop date, else pickup date.

Claiming is by pickup document id (sheet row when the id is empty). Greedy
is not globally optimal for overlapping cycles of one container; swap the
strategy to change that.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from functools import reduce
from typing import Iterable, Optional, Sequence
import structlog

from exceptions import UnclassifiedActionTypeError
from models.order import ActionType, OrderRecord, DataQualityWarning
from models.container_pair import (
    REASON_NO_DROP,
    REASON_NO_PICKUP,
    ContainerPair,
    PairEndpoint,
    PairingResult,
)
from services.ingestion_service import warning_from_error
from utils.date_utils import whole_days_between

logger = structlog.get_logger(__name__)

# (pairs emitted so far, pickup claim keys taken so far)
FoldState = tuple[tuple[ContainerPair, ...], frozenset[str]]


def _endpoint(record: OrderRecord) -> PairEndpoint:
    return PairEndpoint(
        date=record.event_date,
        document_id=record.document_id,
        container_number=record.container_number,
    )


def claim_key(pickup: OrderRecord) -> str:
    """Pickup identity for claiming: document id, or sheet row when the id is empty."""
    return pickup.document_id or f"row:{pickup.sheet_row}"


def sort_pairs(pairs: Iterable[ContainerPair]) -> list[ContainerPair]:
    """Stable ascending sort by effective date."""
    return sorted(pairs, key=lambda pair: pair.effective_date)


class PairingStrategy(ABC):
    """Matches drops to pickups for one customer."""

    name: str = "abstract"

    @abstractmethod
    def pair(
        self,
        drops: Sequence[OrderRecord],
        pickups: Sequence[OrderRecord],
        reference_now: datetime,
    ) -> tuple[list[ContainerPair], frozenset[str]]:
        """
        Build pairs.

        Args:
            drops: DROP records, in input order
            pickups: PICKUP records, in input order
            reference_now: Time to measure open drops against

        Returns:
            (pairs sorted by effective date, claimed pickup keys)
        """


class GreedyEarliestPickupStrategy(PairingStrategy):
    """Each drop takes the earliest eligible unclaimed pickup."""

    name = "greedy_earliest_pickup"

    def pair(
        self,
        drops: Sequence[OrderRecord],
        pickups: Sequence[OrderRecord],
        reference_now: datetime,
    ) -> tuple[list[ContainerPair], frozenset[str]]:

        def match_drop(state: FoldState, drop: OrderRecord) -> FoldState:
            pairs, claimed = state
            candidates = sorted(
                (
                    pickup for pickup in pickups
                    if pickup.container_number == drop.container_number
                    and claim_key(pickup) not in claimed
                    and pickup.event_date >= drop.event_date
                ),
                key=lambda pickup: pickup.event_date,
            )

            if not candidates:
                open_pair = ContainerPair(
                    drop=_endpoint(drop),
                    pickup=None,
                    days_in_use=whole_days_between(drop.event_date, reference_now),
                    is_anomalous=True,
                    anomaly_reason=REASON_NO_PICKUP,
                )
                return pairs + (open_pair,), claimed

            pickup = candidates[0]
            matched_pair = ContainerPair(
                drop=_endpoint(drop),
                pickup=_endpoint(pickup),
                days_in_use=whole_days_between(drop.event_date, pickup.event_date),
                is_anomalous=False,
            )
            return pairs + (matched_pair,), claimed | {claim_key(pickup)}

        initial: FoldState = ((), frozenset())
        drop_pairs, claimed = reduce(match_drop, drops, initial)

        orphan_pairs = tuple(
            ContainerPair(
                drop=None,
                pickup=_endpoint(pickup),
                days_in_use=None,
                is_anomalous=True,
                anomaly_reason=REASON_NO_DROP,
            )
            for pickup in pickups
            if claim_key(pickup) not in claimed
        )

        return sort_pairs(drop_pairs + orphan_pairs), claimed


class ContainerPairingService:
    """
    Pairing for one customer's records.

    Selects the customer's records, partitions them by resolved ActionType,
    runs the strategy, and reports OTHER records as data-quality warnings.
    Never raises on data issues.
    """

    def __init__(self, strategy: Optional[PairingStrategy] = None):
        self.strategy = strategy or GreedyEarliestPickupStrategy()

    def pair_records(
        self,
        records: Iterable[OrderRecord],
        customer_key: str,
        reference_now: datetime,
    ) -> PairingResult:
        """
        Pair one customer's records out of any record set.

        Args:
            records: Order records (unordered); other customers' rows are ignored
            customer_key: Composite "{name}_{phone}" key to pair for
            reference_now: Time to measure open drops against

        Returns:
            PairingResult with pairs and warnings
        """
        drops: list[OrderRecord] = []
        pickups: list[OrderRecord] = []
        warnings: list[DataQualityWarning] = []

        for record in records:
            if record.customer_key != customer_key:
                continue
            if record.action_type == ActionType.DROP:
                drops.append(record)
            elif record.action_type == ActionType.PICKUP:
                pickups.append(record)
            else:
                warnings.append(warning_from_error(
                    UnclassifiedActionTypeError(
                        record.document_id,
                        record.action_type_raw,
                        record.sheet_row,
                    )
                ))

        pairs, claimed = self.strategy.pair(drops, pickups, reference_now)
        anomalous_count = sum(1 for pair in pairs if pair.is_anomalous)

        logger.info(
            "container_pairs_built",
            customer_key=customer_key,
            strategy=self.strategy.name,
            drops=len(drops),
            pickups=len(pickups),
            claimed=len(claimed),
            pairs=len(pairs),
            anomalous=anomalous_count,
            unclassified=len(warnings),
        )

        return PairingResult(
            customer_key=customer_key,
            strategy=self.strategy.name,
            pairs=pairs,
            warnings=warnings,
            anomalous_count=anomalous_count,
        )


# Singleton instance
_pairing_service: Optional[ContainerPairingService] = None


def get_pairing_service() -> ContainerPairingService:
    """Get the singleton pairing service instance."""
    global _pairing_service
    if _pairing_service is None:
        _pairing_service = ContainerPairingService()
    return _pairing_service

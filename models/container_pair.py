"""
Container pair schemas.

A pair is a reconstructed drop -> pickup lifecycle of one container at one
customer. Pairs are derived on demand and never stored.
"""

from datetime import datetime
from typing import Optional
from pydantic import Field

from models.base import BaseSchema, FrozenSchema
from models.order import DataQualityWarning


REASON_NO_PICKUP = "container dropped but no matching pickup found"
REASON_NO_DROP = "container picked up but no matching drop found"


class PairEndpoint(FrozenSchema):
    """One side of a pair."""

    date: datetime
    document_id: str
    container_number: str


class ContainerPair(FrozenSchema):
    """
    Drop/pickup lifecycle.

    days_in_use:
        matched          -> whole days pickup - drop
        drop only        -> whole days drop -> reference time
        pickup only      -> None
    """

    drop: Optional[PairEndpoint] = None
    pickup: Optional[PairEndpoint] = None
    days_in_use: Optional[int] = None
    is_anomalous: bool = False
    anomaly_reason: Optional[str] = None

    @property
    def effective_date(self) -> datetime:
        """Sort key: drop date if present, else pickup date."""
        return self.drop.date if self.drop is not None else self.pickup.date


class PairingResult(BaseSchema):
    """Pairs plus the data-quality report for one customer."""

    customer_key: str
    strategy: str
    pairs: list[ContainerPair]
    warnings: list[DataQualityWarning] = Field(default_factory=list)
    anomalous_count: int = 0

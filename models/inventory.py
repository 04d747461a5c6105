"""
Container inventory schemas.

Where each container is right now: on a customer site or back in the yard.
"""

from datetime import datetime
from typing import Optional

from models.base import BaseSchema


class ContainerLocation(BaseSchema):
    """Latest known location of one container."""

    container_number: str
    document_id: str
    customer_name: str
    address: Optional[str] = None
    status: str
    since: datetime


class ContainerInventoryResponse(BaseSchema):
    """Containers split by availability."""

    in_use: list[ContainerLocation]
    available: list[ContainerLocation]
    in_use_count: int
    available_count: int

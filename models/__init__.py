"""
Pydantic models for validation and serialization.
"""

from models.base import (
    BaseSchema,
    FrozenSchema,
    PaginatedResponse,
)
from models.order import (
    ActionType,
    WarningCode,
    OrderRecord,
    OrderHistoryEntry,
    DataQualityWarning,
    CustomerHistoryResponse,
    IngestResponse,
    OrderUpdateRequest,
    OrderCreateRequest,
    OrderCloseRequest,
    OrderStatusRequest,
    OrderNotesRequest,
    OrderMutationResponse,
    OrderListResponse,
    OverdueOrdersResponse,
    ContainerHistoryResponse,
)
from models.container_pair import (
    REASON_NO_PICKUP,
    REASON_NO_DROP,
    PairEndpoint,
    ContainerPair,
    PairingResult,
)
from models.alert import (
    AlertSeverity,
    ConflictKind,
    AlertThresholds,
    OrderAlert,
    ConflictAlert,
    AlertsSummary,
    AlertListResponse,
    ConflictListResponse,
    AlertHandledRequest,
    AlertHandledResponse,
)
from models.inventory import (
    ContainerLocation,
    ContainerInventoryResponse,
)

__all__ = [
    # Base
    "BaseSchema",
    "FrozenSchema",
    "PaginatedResponse",

    # Orders
    "ActionType",
    "WarningCode",
    "OrderRecord",
    "OrderHistoryEntry",
    "DataQualityWarning",
    "CustomerHistoryResponse",
    "IngestResponse",
    "OrderUpdateRequest",
    "OrderCreateRequest",
    "OrderCloseRequest",
    "OrderStatusRequest",
    "OrderNotesRequest",
    "OrderMutationResponse",
    "OrderListResponse",
    "OverdueOrdersResponse",
    "ContainerHistoryResponse",

    # Pairs
    "REASON_NO_PICKUP",
    "REASON_NO_DROP",
    "PairEndpoint",
    "ContainerPair",
    "PairingResult",

    # Alerts
    "AlertSeverity",
    "ConflictKind",
    "AlertThresholds",
    "OrderAlert",
    "ConflictAlert",
    "AlertsSummary",
    "AlertListResponse",
    "ConflictListResponse",
    "AlertHandledRequest",
    "AlertHandledResponse",

    # Inventory
    "ContainerLocation",
    "ContainerInventoryResponse",
]

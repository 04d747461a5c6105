"""
Business logic services.

Each service handles one domain area.
"""

from services.action_classifier import ActionTypeClassifier, get_action_classifier
from services.ingestion_service import IngestionService, IngestionResult, get_ingestion_service
from services.history_service import decorate_records, extract_customer_history
from services.pairing_service import (
    PairingStrategy,
    GreedyEarliestPickupStrategy,
    ContainerPairingService,
    get_pairing_service,
)
from services.alert_service import AlertService, get_alert_service
from services.inventory_service import InventoryService, get_inventory_service

__all__ = [
    "ActionTypeClassifier",
    "get_action_classifier",
    "IngestionService",
    "IngestionResult",
    "get_ingestion_service",
    "decorate_records",
    "extract_customer_history",
    "PairingStrategy",
    "GreedyEarliestPickupStrategy",
    "ContainerPairingService",
    "get_pairing_service",
    "AlertService",
    "get_alert_service",
    "InventoryService",
    "get_inventory_service",
]

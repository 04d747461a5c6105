"""
Customer profile service.

Reads CRM rows fresh from the sheets backend on each request, then builds a
customer's history and container pairs. Rejected rows belonging to the
customer are reported alongside the results.
"""

from datetime import datetime
from typing import Optional
import structlog

from exceptions import CustomerNotFoundError
from integrations.sheets_client import SheetsClient, get_sheets_client
from models.container_pair import PairingResult
from models.order import CustomerHistoryResponse, DataQualityWarning
from services.history_service import extract_customer_history
from services.ingestion_service import IngestionResult
from services.pairing_service import ContainerPairingService, get_pairing_service

logger = structlog.get_logger(__name__)


class CustomerService:
    """Customer history and container pairing over live sheet data."""

    def __init__(
        self,
        sheets_client: Optional[SheetsClient] = None,
        pairing_service: Optional[ContainerPairingService] = None,
    ):
        self.sheets = sheets_client or get_sheets_client()
        self.pairing = pairing_service or get_pairing_service()

    def _load(self, customer_key: str) -> tuple[IngestionResult, list[DataQualityWarning]]:
        result = self.sheets.fetch_order_records()
        warnings = [
            warning for warning in result.warnings
            if warning.details.get("customer_key") == customer_key
        ]
        return result, warnings

    def get_history(self, customer_key: str, reference_now: datetime) -> CustomerHistoryResponse:
        """
        Get a customer's decorated history.

        Raises:
            CustomerNotFoundError: If no rows (valid or rejected) match the key
        """
        logger.info("getting_customer_history", customer_key=customer_key)

        result, warnings = self._load(customer_key)
        history = extract_customer_history(result.records, customer_key, reference_now)

        if not history and not warnings:
            raise CustomerNotFoundError(customer_key)

        return CustomerHistoryResponse(
            customer_key=customer_key,
            total=len(history),
            history=history,
            warnings=warnings,
        )

    def get_pairs(self, customer_key: str, reference_now: datetime) -> PairingResult:
        """
        Get a customer's container pairs.

        Raises:
            CustomerNotFoundError: If no rows (valid or rejected) match the key
        """
        logger.info("getting_customer_pairs", customer_key=customer_key)

        result, warnings = self._load(customer_key)
        records = [r for r in result.records if r.customer_key == customer_key]

        if not records and not warnings:
            raise CustomerNotFoundError(customer_key)

        pairing = self.pairing.pair_records(records, customer_key, reference_now)
        pairing.warnings = warnings + pairing.warnings
        return pairing


# Singleton instance
_customer_service: Optional[CustomerService] = None


def get_customer_service() -> CustomerService:
    """Get the singleton customer service instance."""
    global _customer_service
    if _customer_service is None:
        _customer_service = CustomerService()
    return _customer_service

"""
Ingestion service: raw CRM sheet rows -> validated OrderRecords.

Rows arrive as dicts keyed by the sheet's header row, either from the Apps
Script backend or from an Excel/CSV export. Action types are resolved into
ActionType here, once. Rows that cannot be trusted are rejected with a
DataQualityWarning instead of flowing invalid dates into day arithmetic.
"""

from dataclasses import dataclass, field
from typing import Any, Iterable, Optional
import structlog

from config import sheet_columns as cols
from exceptions import AppError, InvalidDateError, MissingFieldError
from models.order import ActionType, OrderRecord, DataQualityWarning, WarningCode
from services.action_classifier import ActionTypeClassifier, get_action_classifier
from utils.date_utils import parse_sheet_date
from utils.text_utils import build_customer_key, clean_cell

logger = structlog.get_logger(__name__)


@dataclass
class IngestionResult:
    """Result of ingesting a batch of sheet rows."""
    records: list[OrderRecord] = field(default_factory=list)
    warnings: list[DataQualityWarning] = field(default_factory=list)
    skipped_blank: int = 0

    @property
    def success(self) -> bool:
        """True if no row was rejected or flagged."""
        return len(self.warnings) == 0


def warning_from_error(error: AppError) -> DataQualityWarning:
    """Convert a row-level AppError into a DataQualityWarning."""
    return DataQualityWarning(
        code=WarningCode(error.code),
        document_id=error.details.get("document_id"),
        sheet_row=error.details.get("sheet_row"),
        message=error.message,
        details={k: v for k, v in error.details.items() if k not in ("document_id", "sheet_row")},
    )


class IngestionService:
    """
    Sheet row validation.

    Stateless apart from the classifier; safe to share.
    """

    def __init__(self, classifier: Optional[ActionTypeClassifier] = None):
        self.classifier = classifier or get_action_classifier()

    def ingest_rows(
        self,
        rows: Iterable[dict[str, Any]],
        first_row: int = cols.FIRST_DATA_ROW,
    ) -> IngestionResult:
        """
        Validate and convert raw rows.

        Args:
            rows: Row dicts keyed by sheet header
            first_row: Sheet row number of the first row, used when a row
                       carries no explicit sheetRow

        Returns:
            IngestionResult with records and warnings
        """
        result = IngestionResult()

        for offset, row in enumerate(rows):
            sheet_row = sheet_row_number(row, first_row + offset)

            if _is_blank(row):
                result.skipped_blank += 1
                continue

            try:
                result.records.append(self.ingest_row(row, sheet_row))
            except (InvalidDateError, MissingFieldError) as e:
                logger.warning(
                    "sheet_row_rejected",
                    code=e.code,
                    sheet_row=sheet_row,
                    document_id=e.details.get("document_id"),
                )
                warning = warning_from_error(e)
                warning.details["customer_key"] = build_customer_key(
                    clean_cell(row.get(cols.COL_CUSTOMER_NAME)),
                    clean_cell(row.get(cols.COL_CUSTOMER_PHONE)),
                )
                result.warnings.append(warning)

        logger.info(
            "sheet_rows_ingested",
            records=len(result.records),
            rejected=len(result.warnings),
            skipped_blank=result.skipped_blank,
        )

        return result

    def ingest_row(self, row: dict[str, Any], sheet_row: Optional[int] = None) -> OrderRecord:
        """
        Convert a single row.

        Raises:
            InvalidDateError: If the event date is missing or unparseable
            MissingFieldError: If the customer name is empty
        """
        document_id = clean_cell(row.get(cols.COL_DOCUMENT_ID)) or ""
        customer_name = clean_cell(row.get(cols.COL_CUSTOMER_NAME))
        if not customer_name:
            raise MissingFieldError(document_id, cols.COL_CUSTOMER_NAME, sheet_row)

        raw_event_date = row.get(cols.COL_EVENT_DATE)
        event_date = parse_sheet_date(raw_event_date)
        if event_date is None:
            raise InvalidDateError(document_id, cols.COL_EVENT_DATE, raw_event_date, sheet_row)

        # Optional dates: unparseable values are treated as absent
        closed_date = parse_sheet_date(row.get(cols.COL_CLOSED_DATE))
        expected_end_date = parse_sheet_date(row.get(cols.COL_EXPECTED_END_DATE))

        action_type_raw = clean_cell(row.get(cols.COL_ACTION_TYPE)) or ""
        action_type = self.classifier.classify(action_type_raw)

        # Container numbers are compared exactly as logged (bidi marks and
        # whitespace runs removed, case kept)
        container_dropped = clean_cell(row.get(cols.COL_CONTAINER_DROPPED)) or ""
        container_picked_up = clean_cell(row.get(cols.COL_CONTAINER_PICKED_UP)) or ""
        if action_type == ActionType.PICKUP:
            container_number = container_picked_up or container_dropped
        else:
            container_number = container_dropped or container_picked_up

        return OrderRecord(
            sheet_row=sheet_row,
            document_id=document_id,
            customer_name=customer_name,
            customer_phone=clean_cell(row.get(cols.COL_CUSTOMER_PHONE)) or "",
            address=clean_cell(row.get(cols.COL_ADDRESS)),
            container_number=container_number,
            container_picked_up=container_picked_up,
            action_type_raw=action_type_raw,
            action_type=action_type,
            event_date=event_date,
            closed_date=closed_date,
            expected_end_date=expected_end_date,
            status=clean_cell(row.get(cols.COL_STATUS)) or "",
            notes=clean_cell(row.get(cols.COL_NOTES)),
        )


# ===================
# HELPER FUNCTIONS
# ===================

def sheet_row_number(row: dict[str, Any], default: int) -> int:
    """Use the row's own sheetRow if present and numeric."""
    value = row.get(cols.COL_SHEET_ROW)
    try:
        return int(value) if value is not None else default
    except (TypeError, ValueError):
        return default


def _is_blank(row: dict[str, Any]) -> bool:
    """A row with no document id, customer, or container is padding."""
    return not any(
        clean_cell(row.get(col))
        for col in (
            cols.COL_DOCUMENT_ID,
            cols.COL_CUSTOMER_NAME,
            cols.COL_CONTAINER_DROPPED,
            cols.COL_CONTAINER_PICKED_UP,
        )
    )


# Singleton instance
_ingestion_service: Optional[IngestionService] = None


def get_ingestion_service() -> IngestionService:
    """Get the singleton ingestion service instance."""
    global _ingestion_service
    if _ingestion_service is None:
        _ingestion_service = IngestionService()
    return _ingestion_service

"""
Ingest API routes.

Validate an Excel/CSV download of the CRM sheet without touching the
live backend. Useful for auditing a sheet before a migration.
"""

from io import BytesIO

from fastapi import APIRouter, UploadFile, File
from fastapi.responses import JSONResponse
import structlog

from models.order import IngestResponse
from parsers.crm_export_parser import parse_crm_export
from services.ingestion_service import get_ingestion_service
from exceptions import AppError

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/ingest", tags=["Ingest"])


def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


@router.post("/crm-export", response_model=IngestResponse)
async def ingest_crm_export(file: UploadFile = File(...)):
    """
    Parse and validate a CRM sheet export (.xlsx or .csv).

    Returns the validated records and a warning per rejected row.

    Raises:
        422: File unreadable or required columns missing
    """
    logger.info(
        "crm_export_upload_started",
        filename=file.filename,
        content_type=file.content_type
    )

    try:
        content = await file.read()
        rows = parse_crm_export(BytesIO(content), filename=file.filename)
        result = get_ingestion_service().ingest_rows(rows)

        return IngestResponse(
            filename=file.filename,
            rows_read=len(rows),
            records=result.records,
            warnings=result.warnings,
        )

    except Exception as e:
        return handle_error(e)

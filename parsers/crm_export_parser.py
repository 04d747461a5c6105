"""
CRM sheet export parser.

Reads an Excel (.xlsx) or CSV download of the CRM sheet into row dicts
keyed by header, the same shape the Apps Script backend returns, so they
go through the same ingestion path.
"""

from io import BytesIO
from pathlib import Path
from typing import Any, Optional, Union
import structlog

import pandas as pd

from config import sheet_columns as cols
from exceptions import CrmExportParseError

logger = structlog.get_logger(__name__)


def parse_crm_export(
    file: Union[str, Path, BytesIO],
    filename: Optional[str] = None,
    sheet_name: Union[str, int] = 0,
) -> list[dict[str, Any]]:
    """
    Parse a CRM sheet export.

    Args:
        file: File path (str/Path) or file-like object (BytesIO)
        filename: Original filename, used to pick CSV vs Excel for uploads
        sheet_name: Worksheet name or index for Excel files

    Returns:
        Row dicts with a "sheetRow" key (header = row 1)

    Raises:
        CrmExportParseError: If the file cannot be read or required
                             columns are missing
    """
    name = filename or (str(file) if isinstance(file, (str, Path)) else "")
    is_csv = name.lower().endswith(".csv")

    logger.info("parsing_crm_export", filename=name, format="csv" if is_csv else "excel")

    try:
        if is_csv:
            df = pd.read_csv(file, dtype=object, encoding="utf-8-sig")
        else:
            df = pd.read_excel(file, sheet_name=sheet_name, engine="openpyxl", dtype=object)
    except Exception as e:
        logger.error("crm_export_read_failed", error=str(e))
        raise CrmExportParseError(
            message="Failed to read CRM export",
            details={"original_error": str(e)}
        )

    df.columns = [_normalize_header(col) for col in df.columns]

    missing = [col for col in cols.REQUIRED_COLUMNS if col not in df.columns]
    if missing:
        raise CrmExportParseError(
            message=f"Missing required columns: {', '.join(missing)}",
            details={"missing": missing, "found": list(df.columns)}
        )

    # NaN -> None so downstream cleaning sees empty cells
    df = df.astype(object).where(pd.notna(df), None)

    rows = []
    for idx, row in enumerate(df.to_dict(orient="records")):
        row[cols.COL_SHEET_ROW] = idx + cols.FIRST_DATA_ROW
        rows.append(row)

    logger.info("crm_export_parsed", rows=len(rows))

    return rows


def _normalize_header(col: Any) -> str:
    """
    Normalize header text.

    Collapses whitespace and unifies the Hebrew geresh (׳) and typographic
    apostrophes with ASCII "'" so "מס׳ מכולה ירדה" matches "מס' מכולה ירדה".
    """
    text = " ".join(str(col).split())
    for quote in ("׳", "’", "‘", "`"):
        text = text.replace(quote, "'")
    return text

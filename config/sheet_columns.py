"""
CRM sheet column headers.

The Apps Script backend returns rows keyed by these Hebrew headers.
An Excel/CSV export of the same sheet uses the same header row.
"""

# =============================================================================
# IDENTITY
# =============================================================================

COL_CUSTOMER_NAME = "לקוח"
COL_CUSTOMER_PHONE = "טלפון לקוח"
COL_DOCUMENT_ID = "תעודה"
COL_ADDRESS = "כתובת"

# =============================================================================
# ACTION
# =============================================================================

COL_ACTION_TYPE = "סוג פעולה"

# Dropped container; pickups also store the returned container here
COL_CONTAINER_DROPPED = "מס' מכולה ירדה"

# Fallback when the dropped column is empty
COL_CONTAINER_PICKED_UP = "מס' מכולה עלתה"

# =============================================================================
# DATES
# =============================================================================

# Single action date, reused by both drop and pickup rows
COL_EVENT_DATE = "תאריך"
COL_CLOSED_DATE = "תאריך סגירה"
COL_EXPECTED_END_DATE = "תאריך סיום צפוי"

# =============================================================================
# STATE
# =============================================================================

COL_STATUS = "סטטוס"
COL_NOTES = "הערות"
COL_CLOSE_NOTES = "הערות סיום"

# Days on site written by the backend when a container is returned
COL_DAYS_RETURNED = "ימים שעברו (עלתה)"

# Synthetic key added by the backend / export parser
COL_SHEET_ROW = "sheetRow"

REQUIRED_COLUMNS = (
    COL_CUSTOMER_NAME,
    COL_DOCUMENT_ID,
    COL_ACTION_TYPE,
    COL_EVENT_DATE,
    COL_STATUS,
)

# Header row occupies sheet row 1
FIRST_DATA_ROW = 2

"""
File parsers module.
"""

from parsers.crm_export_parser import parse_crm_export

__all__ = [
    "parse_crm_export",
]

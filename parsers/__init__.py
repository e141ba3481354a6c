"""
File and pasted-data parsers.
"""

from parsers.ledger_parser import (
    parse_ledger_bytes,
    parse_ledger_date,
    LedgerParseResult,
)
from parsers.pasted_rows_parser import (
    parse_pasted_rows,
    PastedRowsParseResult,
)

__all__ = [
    "parse_ledger_bytes",
    "parse_ledger_date",
    "LedgerParseResult",
    "parse_pasted_rows",
    "PastedRowsParseResult",
]

"""
Ledger export parser.

Parses the spreadsheet export of the external asset ledger (CSV or XLSX).
Each row is one asset tag.

Key columns:
- TOMBAMENTO: Asset tag (required)
- Descrição / Espécie: Description and asset class
- Nome Fornecedor: Supplier on the purchase invoice
- Unidade: Ledger unit
- Status: Availability (e.g. "Disponível")
- NF / Cadastro / Valor NF: Invoice number, registration date, invoice value
"""

from dataclasses import dataclass, field
from datetime import date
from io import BytesIO
from pathlib import Path
from typing import Optional

import pandas as pd
import structlog

from exceptions import LedgerParseError
from models.ledger import LedgerRecord
from utils.text_utils import normalize_asset_tag, parse_currency

logger = structlog.get_logger(__name__)

TAG_COLUMN = "TOMBAMENTO"

# Ledger column -> LedgerRecord field
COLUMN_MAP = {
    "Descrição": "description",
    "Espécie": "species",
    "Nome Fornecedor": "supplier_name",
    "Unidade": "unit",
    "Status": "availability_status",
    "NF": "invoice_number",
}
DATE_COLUMN = "Cadastro"
VALUE_COLUMN = "Valor NF"


@dataclass
class LedgerRowError:
    """Error for a specific row."""
    row: int
    field: str
    error: str
    value: Optional[str] = None


@dataclass
class LedgerParseResult:
    """Result of parsing a ledger export."""
    records: list[LedgerRecord] = field(default_factory=list)
    errors: list[LedgerRowError] = field(default_factory=list)
    total_rows: int = 0
    duplicate_tags: int = 0

    @property
    def success(self) -> bool:
        return len(self.records) > 0


def _safe_str(value) -> str:
    """Convert value to string, empty for NaN/None."""
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return ""
    return str(value).strip()


def parse_ledger_date(value) -> Optional[date]:
    """
    Parse a ledger date.

    Accepts DD/MM/YYYY (two-digit years pivot at 50) and YYYY-MM-DD.
    Returns None when the value cannot be read.
    """
    text = _safe_str(value)
    if not text:
        return None

    try:
        parts = text.split("/")
        if len(parts) == 3:
            day, month, year = (int(p) for p in parts)
            if year < 100:
                year += 1900 if year > 50 else 2000
            return date(year, month, day)

        iso_parts = text[:10].split("-")
        if len(iso_parts) == 3:
            year, month, day = (int(p) for p in iso_parts)
            return date(year, month, day)
    except ValueError:
        return None

    return None


def _read_frame(content: bytes, filename: str) -> pd.DataFrame:
    suffix = Path(filename).suffix.lower()
    if suffix in (".xlsx", ".xlsm"):
        df = pd.read_excel(BytesIO(content), engine="openpyxl", dtype=str)
    else:
        df = pd.read_csv(BytesIO(content), dtype=str, keep_default_na=False, encoding="utf-8-sig")
    # Exports carry stray spaces in headers
    df.columns = [str(c).strip() for c in df.columns]
    return df


def parse_ledger_bytes(content: bytes, filename: str = "ledger.csv") -> LedgerParseResult:
    """
    Parse a ledger export from bytes.

    Args:
        content: Raw file content
        filename: Used to pick the reader (.xlsx → openpyxl, else CSV)

    Returns:
        LedgerParseResult with one record per distinct asset tag

    Raises:
        LedgerParseError: If the file cannot be read or has no tag column
    """
    try:
        df = _read_frame(content, filename)
    except Exception as e:
        logger.error("ledger_file_read_error", filename=filename, error=str(e))
        raise LedgerParseError(f"Failed to read ledger export: {e}") from e

    if TAG_COLUMN not in df.columns:
        logger.error("ledger_missing_columns", missing=[TAG_COLUMN])
        raise LedgerParseError(
            f"Ledger export has no {TAG_COLUMN} column",
            details={"columns": list(df.columns)}
        )

    result = LedgerParseResult(total_rows=len(df))
    by_tag: dict[str, LedgerRecord] = {}

    for idx, row in df.iterrows():
        row_num = idx + 2  # Spreadsheet row (1-indexed + header)

        tag = normalize_asset_tag(_safe_str(row.get(TAG_COLUMN)))
        if not tag:
            result.errors.append(LedgerRowError(
                row=row_num,
                field=TAG_COLUMN,
                error="Missing asset tag"
            ))
            continue

        fields = {name: _safe_str(row.get(column)) for column, name in COLUMN_MAP.items()}
        raw_value = _safe_str(row.get(VALUE_COLUMN))

        record = LedgerRecord(
            asset_tag=tag,
            registration_date=parse_ledger_date(row.get(DATE_COLUMN)),
            invoice_value=parse_currency(raw_value) if raw_value else None,
            **fields
        )

        # Later rows win, as in a keyed lookup of the sheet
        if tag in by_tag:
            result.duplicate_tags += 1
        by_tag[tag] = record

    result.records = list(by_tag.values())

    logger.info(
        "ledger_parse_complete",
        filename=filename,
        total_rows=result.total_rows,
        records=len(result.records),
        errors=len(result.errors),
        duplicate_tags=result.duplicate_tags
    )

    return result

"""
Parser for rows pasted from an audit spreadsheet.

Users copy a block of cells (tab-separated, header row first) and paste it
into the batch update screen. Headers are matched loosely:

- "Item" / "Descrição" → description
- "Tombo" / "Tombamento" → asset tag
- "Local" / "Localização" → location
- "Estado" → condition

Rows without a tag get the "S/T" marker.
"""

from dataclasses import dataclass, field
from io import StringIO
from typing import Optional

import pandas as pd
import structlog

from exceptions import PastedDataParseError
from models.reconciliation import PastedRow
from utils.text_utils import UNTAGGED_MARKER, normalize_text

logger = structlog.get_logger(__name__)

# Normalized header fragment -> PastedRow field, first hit wins
HEADER_KEYWORDS = (
    ("item", "description"),
    ("descri", "description"),
    ("tombo", "asset_tag"),
    ("local", "location"),
    ("estado", "condition_state"),
)


@dataclass
class PastedRowsParseResult:
    """Result of parsing pasted rows."""
    rows: list[PastedRow] = field(default_factory=list)
    column_map: dict[str, str] = field(default_factory=dict)
    empty_rows: int = 0


def _map_header(header: str) -> Optional[str]:
    normalized = normalize_text(header)
    for keyword, target in HEADER_KEYWORDS:
        if keyword in normalized:
            return target
    return None


def _build_column_map(columns) -> dict[str, str]:
    column_map: dict[str, str] = {}
    for column in columns:
        target = _map_header(str(column))
        if target and target not in column_map.values():
            column_map[str(column)] = target
    return column_map


def parse_pasted_rows(text: str) -> PastedRowsParseResult:
    """
    Parse tab-separated text with a header row.

    Args:
        text: Cells copied from a spreadsheet

    Returns:
        PastedRowsParseResult with non-empty rows in paste order

    Raises:
        PastedDataParseError: If the text has no data rows or no
            description column
    """
    if not text or not text.strip():
        raise PastedDataParseError("No data pasted")

    try:
        df = pd.read_csv(
            StringIO(text.strip("\r\n")),
            sep="\t",
            dtype=str,
            keep_default_na=False,
            engine="python"
        )
    except Exception as e:
        logger.error("pasted_rows_read_error", error=str(e))
        raise PastedDataParseError(f"Could not read pasted rows: {e}") from e

    column_map = _build_column_map(df.columns)
    if "description" not in column_map.values():
        raise PastedDataParseError(
            "Pasted data needs an item/description column",
            details={"headers": [str(c) for c in df.columns]}
        )

    result = PastedRowsParseResult(column_map=column_map)

    for _, record in df.iterrows():
        # Short rows come back as NaN in the missing cells
        values = {
            target: "" if pd.isna(record[column]) else str(record[column]).strip()
            for column, target in column_map.items()
        }
        row = PastedRow(**values)
        if row.is_empty:
            result.empty_rows += 1
            continue
        if not row.asset_tag:
            row = row.model_copy(update={"asset_tag": UNTAGGED_MARKER})
        result.rows.append(row)

    if not result.rows:
        raise PastedDataParseError("Pasted data has no rows below the header")

    logger.info(
        "pasted_rows_parsed",
        rows=len(result.rows),
        empty_rows=result.empty_rows,
        columns=list(column_map.values())
    )

    return result

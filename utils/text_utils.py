"""
Text utilities for handling Portuguese inventory text.

Used to compare descriptions, canonicalize asset tags copied out of
spreadsheets, and recover condition/donation data from free-text notes.
"""

import re
import unicodedata
from decimal import Decimal, InvalidOperation
from typing import Any, NamedTuple, Optional

from models.inventory import ConditionState


# Digits with an optional leading zero and an optional ".0" float artifact
_NUMERIC_TAG_RE = re.compile(r"^0?(\d+)(?:\.0)?$")
_DONATION_PREFIX_RE = re.compile(r"^doa[cç][aã]o\s*", re.IGNORECASE)

UNTAGGED_MARKER = "S/T"


class ConditionAndOrigin(NamedTuple):
    """Condition state and donation origin recovered from a note."""
    state: ConditionState
    origin: str


def normalize_text(value: Any) -> str:
    """
    Normalize text for comparison.

    Handles Portuguese accents and case:
    - "Cadeira de Escritório" → "cadeira de escritorio"
    - "  AÇÃO  " → "acao"
    - None → ""

    Args:
        value: Text to normalize (numbers are coerced with str())

    Returns:
        Lowercase string without combining marks, trimmed
    """
    if value is None:
        return ""

    text = str(value)
    if not text:
        return ""

    # NFD decomposition separates base chars from accents
    decomposed = unicodedata.normalize("NFD", text)

    # Remove accent marks (combining characters in Unicode category 'Mn')
    stripped = "".join(
        c for c in decomposed
        if unicodedata.category(c) != "Mn"
    )

    return stripped.strip().lower()


def normalize_asset_tag(tag: Any) -> str:
    """
    Canonicalize an asset tag.

    Spreadsheet exports mangle numeric tags in two ways: a leading zero
    ("0150") and a float suffix ("1050.0"). Both collapse to the plain
    decimal form. Anything non-numeric is returned trimmed.

    Examples:
        "0150" → "150"
        "1050.0" → "1050"
        "S/T" → "S/T"
        None → ""
    """
    if tag is None:
        return ""

    value = str(tag).strip()
    if not value:
        return ""

    match = _NUMERIC_TAG_RE.match(value)
    if match:
        return str(int(match.group(1)))
    return value


def is_untagged(tag: Any) -> bool:
    """True when a record has no asset tag yet (empty or "S/T")."""
    value = normalize_asset_tag(tag)
    return not value or value.upper() == UNTAGGED_MARKER


def parse_condition_and_origin(text: Optional[str]) -> ConditionAndOrigin:
    """
    Recover condition state and donation origin from a free-text note.

    "Bom (Doação Secretaria X)" → (Bom, "Secretaria X")
    "Novo - doacao Prefeitura" → (Novo, "Prefeitura")
    "avariado" → (Avariado, "")
    "" → (Regular, "")
    """
    raw = (text or "").strip()
    if not raw:
        return ConditionAndOrigin(ConditionState.REGULAR, "")

    normalized = normalize_text(raw)

    for state in ConditionState:
        if not normalized.startswith(normalize_text(state.value)):
            continue

        rest = raw[len(state.value):].strip()
        if (rest.startswith("(") and rest.endswith(")")) or (rest.startswith("[") and rest.endswith("]")):
            rest = rest[1:-1].strip()
        elif rest.startswith("-"):
            rest = rest[1:].strip()

        origin = ""
        if rest and normalize_text(rest).startswith("doacao"):
            origin = _DONATION_PREFIX_RE.sub("", unicodedata.normalize("NFC", rest)).strip()
        return ConditionAndOrigin(state, origin)

    for state in ConditionState:
        if normalized == normalize_text(state.value):
            return ConditionAndOrigin(state, "")

    return ConditionAndOrigin(ConditionState.REGULAR, "")


def parse_currency(value: Any) -> Decimal:
    """
    Parse a Brazilian currency string into a Decimal.

    "R$ 1.234,56" → Decimal("1234.56"); empty or garbage → Decimal("0").
    """
    if value is None:
        return Decimal("0")
    if isinstance(value, (int, float, Decimal)):
        return Decimal(str(value))

    text = str(value).replace("R$", "").strip()
    if not text:
        return Decimal("0")

    text = text.replace(".", "").replace(",", ".")
    try:
        amount = Decimal(text)
    except InvalidOperation:
        return Decimal("0")
    return amount if amount.is_finite() else Decimal("0")

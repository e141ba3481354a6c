"""
Unit tests for text normalization helpers.

Run: pytest tests/unit/test_text_utils.py -v
"""

from decimal import Decimal

import pytest

from models.inventory import ConditionState
from utils.text_utils import (
    is_untagged,
    normalize_asset_tag,
    normalize_text,
    parse_condition_and_origin,
    parse_currency,
)


# ===================
# normalize_text
# ===================

class TestNormalizeText:
    """Tests for normalize_text()"""

    def test_removes_accents_and_lowercases(self):
        assert normalize_text("Cadeira de Escritório") == "cadeira de escritorio"

    def test_trims(self):
        assert normalize_text("  AÇÃO  ") == "acao"

    def test_none_and_empty(self):
        assert normalize_text(None) == ""
        assert normalize_text("") == ""

    def test_coerces_numbers(self):
        assert normalize_text(150) == "150"

    def test_idempotent(self):
        once = normalize_text("  Armário de Aço ")
        assert normalize_text(once) == once


# ===================
# normalize_asset_tag
# ===================

class TestNormalizeAssetTag:
    """Tests for normalize_asset_tag()"""

    @pytest.mark.parametrize("raw,expected", [
        ("0150", "150"),
        ("1050.0", "1050"),
        ("150", "150"),
        (" 0042 ", "42"),
        ("S/T", "S/T"),
        ("PERMUTA-12", "PERMUTA-12"),
        (None, ""),
        ("", ""),
    ])
    def test_canonical_forms(self, raw, expected):
        assert normalize_asset_tag(raw) == expected

    def test_idempotent(self):
        for raw in ["0150", "1050.0", "S/T", "abc"]:
            once = normalize_asset_tag(raw)
            assert normalize_asset_tag(once) == once

    def test_keeps_real_decimals(self):
        """Only a trailing .0 is a spreadsheet artifact."""
        assert normalize_asset_tag("10.5") == "10.5"


class TestIsUntagged:
    """Tests for is_untagged()"""

    def test_marker_any_case(self):
        assert is_untagged("S/T")
        assert is_untagged("s/t")

    def test_empty(self):
        assert is_untagged(None)
        assert is_untagged("  ")

    def test_real_tag(self):
        assert not is_untagged("0150")


# ===================
# parse_condition_and_origin
# ===================

class TestParseConditionAndOrigin:
    """Tests for parse_condition_and_origin()"""

    def test_donation_in_parentheses(self):
        result = parse_condition_and_origin("Bom (Doação Secretaria X)")

        assert result.state == ConditionState.BOM
        assert result.origin == "Secretaria X"

    def test_donation_after_hyphen_without_accents(self):
        result = parse_condition_and_origin("Novo - doacao Prefeitura")

        assert result == (ConditionState.NOVO, "Prefeitura")

    def test_state_only_case_insensitive(self):
        assert parse_condition_and_origin("avariado") == (ConditionState.AVARIADO, "")

    def test_non_donation_remainder_has_no_origin(self):
        assert parse_condition_and_origin("Regular (sem etiqueta)") == (ConditionState.REGULAR, "")

    def test_empty_defaults_to_regular(self):
        assert parse_condition_and_origin("") == (ConditionState.REGULAR, "")
        assert parse_condition_and_origin(None) == (ConditionState.REGULAR, "")

    def test_unknown_defaults_to_regular(self):
        assert parse_condition_and_origin("Quebrado") == (ConditionState.REGULAR, "")


# ===================
# parse_currency
# ===================

class TestParseCurrency:
    """Tests for parse_currency()"""

    def test_brazilian_format(self):
        assert parse_currency("R$ 1.234,56") == Decimal("1234.56")

    def test_plain_number(self):
        assert parse_currency("99,90") == Decimal("99.90")

    def test_garbage_is_zero(self):
        assert parse_currency("n/a") == Decimal("0")
        assert parse_currency("") == Decimal("0")
        assert parse_currency(None) == Decimal("0")

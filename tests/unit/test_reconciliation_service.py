"""
Unit tests for ReconciliationService.

Run: pytest tests/unit/test_reconciliation_service.py -v
"""

from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest

from config.database import SupabaseConnectionError
from exceptions import AssetTagInUseError, DatabaseError, PastedDataParseError
from models.reconciliation import (
    BatchMatchRequest,
    BatchPreviewRequest,
    LinkConfirmationRequest,
    PastedRow,
    PendingLink,
    SuggestionRequest,
)
from services.reconciliation_service import ReconciliationService, get_reconciliation_service
from tests.factories import ConfirmedLinkFactory, InventoryRecordFactory, LedgerRecordFactory


INVENTORY_TABLE = "inventory_items"
PATTERNS_TABLE = "reconciliation_patterns"
CONFIRMED_AT = datetime(2025, 3, 10, 9, 30, tzinfo=timezone.utc)


# ===================
# FIXTURES
# ===================

@pytest.fixture
def chair():
    return InventoryRecordFactory.build(id="r1", description="Cadeira de escritório")


@pytest.fixture
def chair_ledger():
    return LedgerRecordFactory.build(
        asset_tag="200", description="Cadeira de escritório", supplier_name="Móveis Alfa"
    )


@pytest.fixture
def confirmation(chair, chair_ledger):
    return LinkConfirmationRequest(
        links=[PendingLink(record=chair, ledger_record=chair_ledger)],
        inventory=[chair],
        confirmed_at=CONFIRMED_AT,
        confirmed_by="ana"
    )


# ===================
# PATTERN MEMORY
# ===================

class TestPatternMemoryHydration:
    """Lazy hydration of the shared Pattern Memory."""

    def test_hydrates_from_storage(self, mock_db, mock_supabase):
        mock_supabase.set_table_data(PATTERNS_TABLE, [
            ConfirmedLinkFactory.create(asset_tag="old", minutes_ago=10),
            ConfirmedLinkFactory.create(asset_tag="new"),
        ])

        patterns = ReconciliationService().list_patterns()

        assert [p.asset_tag for p in patterns] == ["new", "old"]

    def test_storage_failure_starts_empty(self, failing_db):
        assert ReconciliationService().list_patterns() == []

    def test_unconfigured_storage_starts_empty(self):
        with patch(
            "services.confirmed_link_service.get_supabase_client",
            side_effect=SupabaseConnectionError("not configured")
        ):
            assert ReconciliationService().list_patterns() == []

    def test_hydrates_once(self, mock_db, mock_supabase):
        service = ReconciliationService()
        first = service.memory

        mock_supabase.set_table_data(PATTERNS_TABLE, [ConfirmedLinkFactory.create()])

        assert service.memory is first
        assert len(service.memory) == 0


# ===================
# MATCHING
# ===================

class TestMatching:
    """suggest, batch_match, preview_batch."""

    def test_suggest_uses_learned_patterns(self, mock_db, mock_supabase):
        mock_supabase.set_table_data(PATTERNS_TABLE, [ConfirmedLinkFactory.create(
            system_description="Armário de aço",
            ledger_description="Armário de aço metálico mod. X"
        )])
        item = InventoryRecordFactory.build(description="Armário de aço")
        pool = [
            LedgerRecordFactory.build(asset_tag="201", description="Armário de aço", species="escolar velho"),
            LedgerRecordFactory.build(asset_tag="202", description="Armário de aço", species="metálico mod. Y"),
        ]

        result = ReconciliationService().suggest(SuggestionRequest(item=item, pool=pool))

        assert result.ranked[0].record.asset_tag == "202"

    def test_suggest_skips_excluded_tags(self, mock_db, chair, chair_ledger):
        request = SuggestionRequest(item=chair, pool=[chair_ledger], excluded_tags=["200"])

        assert ReconciliationService().suggest(request).ranked == []

    def test_batch_match_counts(self, mock_db):
        pool = [InventoryRecordFactory.build(description="Mesa")]
        request = BatchMatchRequest(
            rows=[PastedRow(description="Mesa"), PastedRow(description="Ventilador")],
            pool=pool
        )

        response = ReconciliationService().batch_match(request)

        assert response.total == 2
        assert response.matched == 1

    def test_preview_batch(self, mock_db, chair, chair_ledger):
        request = BatchPreviewRequest(
            pasted_text="Item\tTombo\tLocal\nCadeira de escritório\t0200\tSala 3\nVentilador\t\t",
            unit="Escola A",
            inventory=[chair],
            ledger=[chair_ledger]
        )

        response = ReconciliationService().preview_batch(request)

        assert response.total == 2
        assert response.valid == 1
        assert response.data[0].ledger_record.asset_tag == "200"

    def test_preview_batch_bad_paste(self, mock_db):
        request = BatchPreviewRequest(pasted_text="Tombo\n150", unit="Escola A")

        with pytest.raises(PastedDataParseError):
            ReconciliationService().preview_batch(request)


# ===================
# CONFIRMATION
# ===================

class TestConfirmLinks:
    """confirm_links writes, learns and persists."""

    def test_writes_updates_and_learns(self, mock_db, mock_supabase, confirmation):
        service = ReconciliationService()

        response = service.confirm_links(confirmation)

        assert response.updates[0].changes["asset_tag"] == "200"
        assert response.confirmed[0].confirmed_by == "ana"
        assert response.persisted == 1

        updates = mock_supabase.writes_to(INVENTORY_TABLE, "update")
        assert updates[0]["asset_tag"] == "200"
        assert updates[0]["pending_tag_flag"] is True
        assert len(mock_supabase.writes_to(PATTERNS_TABLE, "insert")) == 1
        assert [p.asset_tag for p in service.list_patterns()] == ["200"]

    def test_defaults_confirmation_time(self, mock_db, chair, chair_ledger):
        request = LinkConfirmationRequest(
            links=[PendingLink(record=chair, ledger_record=chair_ledger)]
        )

        response = ReconciliationService().confirm_links(request)

        assert response.confirmed[0].confirmed_at.tzinfo is not None

    def test_tag_in_use_is_rejected(self, mock_db, mock_supabase, chair, chair_ledger):
        holder = InventoryRecordFactory.build(id="r2", asset_tag="0200")
        request = LinkConfirmationRequest(
            links=[PendingLink(record=chair, ledger_record=chair_ledger)],
            inventory=[chair, holder]
        )

        with pytest.raises(AssetTagInUseError):
            ReconciliationService().confirm_links(request)

        assert mock_supabase.writes == []

    def test_write_failure_learns_nothing(self, failing_db, confirmation):
        service = ReconciliationService()

        with pytest.raises(DatabaseError):
            service.confirm_links(confirmation)

        assert service.list_patterns() == []

    def test_pattern_persist_failure_is_not_fatal(self, mock_db, mock_supabase, confirmation):
        link_service = MagicMock()
        link_service.load_recent.return_value = []
        link_service.save_many.side_effect = ConnectionError("down")

        with patch(
            "services.reconciliation_service.get_confirmed_link_service",
            return_value=link_service
        ):
            service = ReconciliationService()
            response = service.confirm_links(confirmation)

        assert response.persisted == 0
        assert len(service.list_patterns()) == 1
        assert len(mock_supabase.writes_to(INVENTORY_TABLE, "update")) == 1


def test_singleton():
    assert get_reconciliation_service() is get_reconciliation_service()

"""
Reconciliation service - API-facing orchestration.

Owns the process-wide Pattern Memory (hydrated lazily from the
confirmed-link log) and builds a ReconciliationSession per request from
the snapshots the client sends.
"""

from datetime import datetime, timezone
from typing import Optional
import structlog

from config import get_supabase_client, settings
from exceptions import DatabaseError
from models.inventory import InventoryUpdate
from models.reconciliation import (
    BatchMatchRequest,
    BatchMatchResponse,
    BatchMatchStatus,
    BatchPreviewRequest,
    BatchPreviewResponse,
    ConfirmedLink,
    LinkConfirmationRequest,
    LinkConfirmationResponse,
    RankResult,
    SuggestionRequest,
)
from parsers.ledger_parser import LedgerParseResult
from parsers.pasted_rows_parser import parse_pasted_rows
from services.batch_match_service import match_batch
from services.candidate_ranker_service import rank_candidates
from services.confirmed_link_service import get_confirmed_link_service
from services.ledger_snapshot_service import get_ledger_snapshot_service
from services.pattern_memory import PatternMemory
from services.reconciliation_session import ReconciliationSession

logger = structlog.get_logger(__name__)


class ReconciliationService:
    """
    Reconciliation business logic.

    Ranking and batch matching are pure; confirmation writes record
    updates (required) and confirmed links (best-effort).
    """

    def __init__(self):
        self._memory: Optional[PatternMemory] = None

    @property
    def memory(self) -> PatternMemory:
        """Pattern Memory, hydrated from storage on first use."""
        if self._memory is None:
            memory = PatternMemory()
            try:
                memory.hydrate(get_confirmed_link_service().load_recent())
            except Exception as e:
                logger.warning("pattern_memory_hydration_failed", error=str(e))
            self._memory = memory
        return self._memory

    # ===================
    # MATCHING
    # ===================

    def suggest(self, request: SuggestionRequest) -> RankResult:
        """Rank ledger candidates for one inventory record."""
        return rank_candidates(
            request.item,
            request.pool,
            memory=self.memory,
            excluded_tags=request.excluded_tags
        )

    def batch_match(self, request: BatchMatchRequest) -> BatchMatchResponse:
        """Run the batch matcher over explicit rows and pool."""
        results = match_batch(request.rows, request.pool)
        return BatchMatchResponse(
            data=results,
            matched=sum(1 for r in results if r.status == BatchMatchStatus.MATCHED),
            total=len(results)
        )

    def preview_batch(self, request: BatchPreviewRequest) -> BatchPreviewResponse:
        """
        Parse pasted rows and classify them for one unit.

        Raises:
            PastedDataParseError: If the pasted text cannot be read
        """
        parsed = parse_pasted_rows(request.pasted_text)
        session = ReconciliationSession(
            inventory=request.inventory,
            ledger=request.ledger,
            memory=self.memory,
            unit_mapping=request.unit_mapping
        )
        rows = session.preview_batch(parsed.rows, request.unit)
        return BatchPreviewResponse(
            data=rows,
            valid=sum(1 for row in rows if row.is_valid),
            total=len(rows)
        )

    # ===================
    # CONFIRMATION
    # ===================

    def _write_updates(self, updates: list[InventoryUpdate]) -> None:
        """
        Write record updates to the inventory table.

        Raises:
            DatabaseError: On any write failure
        """
        if not updates:
            return

        try:
            db = get_supabase_client()
            for update in updates:
                (
                    db.table(settings.inventory_table)
                    .update(update.changes)
                    .eq("id", update.record_id)
                    .execute()
                )
        except Exception as e:
            logger.error("inventory_update_failed", error=str(e), updates=len(updates))
            raise DatabaseError("update", str(e))

        logger.info("inventory_updated", updates=len(updates))

    def _persist_links(self, links: list[ConfirmedLink]) -> int:
        """Best-effort write of confirmed links. Returns how many were stored."""
        try:
            return get_confirmed_link_service().save_many(links)
        except Exception as e:
            logger.warning("confirmed_link_persist_failed", error=str(e), links=len(links))
            return 0

    def confirm_links(self, request: LinkConfirmationRequest) -> LinkConfirmationResponse:
        """
        Confirm pending links.

        Validates tags against the current inventory, writes the record
        updates, then learns the links and stores them best-effort.

        Raises:
            AssetTagInUseError: If a tag is already held
            PendingLinkConflictError: If a record appears twice
            DatabaseError: If record updates cannot be written
        """
        session = ReconciliationSession(
            inventory=request.inventory,
            ledger=[link.ledger_record for link in request.links],
            memory=self.memory
        )
        for link in request.links:
            session.add_pending_link(
                link.record,
                link.ledger_record,
                link.use_ledger_description
            )

        confirmed_at = request.confirmed_at or datetime.now(timezone.utc)
        plan = session.plan_commit(confirmed_at, request.confirmed_by)

        self._write_updates(plan.updates)
        session.apply_commit(plan)
        persisted = self._persist_links(plan.links)

        logger.info(
            "links_confirmed",
            confirmed=len(plan.links),
            persisted=persisted,
            confirmed_by=request.confirmed_by
        )

        return LinkConfirmationResponse(
            updates=plan.updates,
            confirmed=plan.links,
            persisted=persisted
        )

    # ===================
    # READ OPERATIONS
    # ===================

    def list_patterns(self) -> list[ConfirmedLink]:
        """Pattern Memory contents, newest first."""
        return self.memory.snapshot()

    def fetch_ledger(self) -> LedgerParseResult:
        """Download and parse the current ledger snapshot."""
        return get_ledger_snapshot_service().fetch()


# Singleton instance
_reconciliation_service: Optional[ReconciliationService] = None


def get_reconciliation_service() -> ReconciliationService:
    """Get or create ReconciliationService instance."""
    global _reconciliation_service
    if _reconciliation_service is None:
        _reconciliation_service = ReconciliationService()
    return _reconciliation_service

"""
Business logic services.

Matching engine (pure) plus the services that feed it snapshots and
persist its results.
"""

from services.similarity_service import similarity, levenshtein_distance
from services.pattern_memory import PatternMemory
from services.candidate_ranker_service import rank_candidates
from services.batch_match_service import match_batch
from services.reconciliation_session import ReconciliationSession
from services.confirmed_link_service import ConfirmedLinkService, get_confirmed_link_service
from services.ledger_snapshot_service import LedgerSnapshotService, get_ledger_snapshot_service
from services.reconciliation_service import ReconciliationService, get_reconciliation_service

__all__ = [
    "similarity",
    "levenshtein_distance",
    "PatternMemory",
    "rank_candidates",
    "match_batch",
    "ReconciliationSession",
    "ConfirmedLinkService",
    "get_confirmed_link_service",
    "LedgerSnapshotService",
    "get_ledger_snapshot_service",
    "ReconciliationService",
    "get_reconciliation_service",
]

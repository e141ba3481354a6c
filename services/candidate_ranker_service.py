"""
Candidate Ranker - interactive suggestions for one untagged record.

Scores every ledger candidate in a pre-scoped pool against an inventory
record and sorts them best-first for a human to confirm.

Algorithm:
1. base = similarity(item description + supplier,
                     candidate description + species + supplier)
2. +supplier_bonus when both suppliers are real and alike
3. bonus from learned patterns: for each confirmed link whose system side
   resembles the item, every candidate resembling that link's ledger side
   gets sim_system * sim_ledger * pattern_bonus_weight
4. score = min(1, base + bonus), sorted descending (stable)
"""

from dataclasses import dataclass
from typing import Iterable, Optional

import structlog

from config import settings
from models.inventory import InventoryRecord
from models.ledger import LedgerRecord
from models.reconciliation import ConfirmedLink, RankedCandidate, RankResult
from services.similarity_service import similarity, token_overlap
from utils.text_utils import normalize_asset_tag, normalize_text

logger = structlog.get_logger(__name__)

SUPPLIER_PLACEHOLDERS = {"", "-"}


@dataclass
class _ScoredCandidate:
    """Working state for one candidate during a single ranking call."""
    record: LedgerRecord
    descriptor: str
    base_score: float
    bonus_score: float = 0.0

    @property
    def final_score(self) -> float:
        return min(self.base_score + self.bonus_score, 1.0)


def _is_real_supplier(name: Optional[str]) -> bool:
    return normalize_text(name) not in SUPPLIER_PLACEHOLDERS


def _base_score(item: InventoryRecord, system_descriptor: str, candidate: LedgerRecord) -> float:
    score = similarity(system_descriptor, candidate.descriptor)

    if _is_real_supplier(item.supplier) and _is_real_supplier(candidate.supplier_name):
        if similarity(item.supplier, candidate.supplier_name) > settings.supplier_similarity_threshold:
            score += settings.supplier_bonus

    return min(score, 1.0)


def _cap_pool(system_descriptor: str, pool: list[LedgerRecord]) -> list[LedgerRecord]:
    """Keep the candidates with the best word overlap when the pool is too large."""
    limit = settings.max_candidate_pool
    if len(pool) <= limit:
        return pool

    logger.warning(
        "candidate_pool_capped",
        pool_size=len(pool),
        limit=limit
    )
    ranked = sorted(
        pool,
        key=lambda record: token_overlap(system_descriptor, record.descriptor),
        reverse=True
    )
    return ranked[:limit]


def _apply_patterns(
    system_descriptor: str,
    scored: list[_ScoredCandidate],
    patterns: Iterable[ConfirmedLink],
) -> int:
    """Add learned-pattern bonuses in place. Returns how many patterns fired."""
    fired = 0
    for pattern in patterns:
        sim_system = similarity(system_descriptor, pattern.system_descriptor)
        if sim_system <= settings.pattern_system_threshold:
            continue

        fired += 1
        for candidate in scored:
            sim_ledger = similarity(candidate.descriptor, pattern.ledger_descriptor)
            if sim_ledger > settings.pattern_ledger_threshold:
                candidate.bonus_score += sim_system * sim_ledger * settings.pattern_bonus_weight
    return fired


def rank_candidates(
    item: InventoryRecord,
    pool: Iterable[LedgerRecord],
    memory: Optional[Iterable[ConfirmedLink]] = None,
    excluded_tags: Optional[Iterable[str]] = None,
) -> RankResult:
    """
    Rank ledger candidates for one inventory record.

    Args:
        item: Untagged inventory record
        pool: Ledger records already scoped by unit/availability
        memory: Confirmed links (PatternMemory or any iterable), newest first
        excluded_tags: Asset tags already consumed this session

    Returns:
        RankResult with candidates best-first and the top score
    """
    excluded = {normalize_asset_tag(tag) for tag in (excluded_tags or [])}
    candidates = [
        record for record in pool
        if normalize_asset_tag(record.asset_tag) not in excluded
    ]

    system_descriptor = item.descriptor
    candidates = _cap_pool(system_descriptor, candidates)

    scored = [
        _ScoredCandidate(
            record=record,
            descriptor=record.descriptor,
            base_score=_base_score(item, system_descriptor, record)
        )
        for record in candidates
    ]

    patterns_fired = 0
    if memory is not None and scored:
        patterns_fired = _apply_patterns(system_descriptor, scored, memory)

    scored.sort(key=lambda candidate: candidate.final_score, reverse=True)

    ranked = [
        RankedCandidate(
            record=candidate.record,
            score=candidate.final_score,
            base_score=candidate.base_score,
            bonus_score=candidate.bonus_score
        )
        for candidate in scored
    ]
    top_score = ranked[0].score if ranked else 0.0

    logger.debug(
        "candidates_ranked",
        item_id=item.id,
        pool_size=len(ranked),
        excluded=len(excluded),
        patterns_fired=patterns_fired,
        top_score=round(top_score, 3)
    )

    return RankResult(ranked=ranked, top_score=top_score)

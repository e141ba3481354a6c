"""
Batch Matcher - deterministic matching of pasted audit rows.

Each pasted row is matched against the inventory records of one unit.
Tiers are tried in order and the first hit consumes the record:

    Perfect   description + location + condition equal (normalized)
    High      description + location equal
    Exact     description equal
    Similarity best score > threshold, unless the top two are too close
              (Ambiguous, nothing consumed)
    Not found nothing clears the threshold

Assignment is greedy and depends on row order, so a fixed paste always
produces the same audit trail. Consumption is tracked in a boolean list
owned by the call; pool records are never mutated.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Optional, Sequence

import structlog

from config import settings
from models.inventory import InventoryRecord
from models.reconciliation import (
    BatchMatchResult,
    BatchMatchStatus,
    MatchTier,
    PastedRow,
)
from services.similarity_service import similarity
from utils.text_utils import normalize_text

logger = structlog.get_logger(__name__)


def similarity_label(score: float) -> str:
    """Label shown for similarity matches, e.g. "By similarity (87%)"."""
    percent = (Decimal(str(score)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return f"{MatchTier.SIMILARITY.value} ({percent}%)"


def _find_and_consume(
    pool: Sequence[InventoryRecord],
    consumed: list[bool],
    predicate: Callable[[InventoryRecord], bool],
) -> Optional[int]:
    for index, record in enumerate(pool):
        if not consumed[index] and predicate(record):
            consumed[index] = True
            return index
    return None


def _match_row(
    row_index: int,
    row: PastedRow,
    pool: Sequence[InventoryRecord],
    consumed: list[bool],
) -> BatchMatchResult:
    description = normalize_text(row.description)
    location = normalize_text(row.location)
    condition = normalize_text(row.condition_state)

    exact_tiers = (
        (MatchTier.PERFECT, lambda r: (
            normalize_text(r.description) == description
            and normalize_text(r.location) == location
            and normalize_text(r.condition_state.value) == condition
        )),
        (MatchTier.HIGH, lambda r: (
            normalize_text(r.description) == description
            and normalize_text(r.location) == location
        )),
        (MatchTier.EXACT, lambda r: normalize_text(r.description) == description),
    )

    for tier, predicate in exact_tiers:
        index = _find_and_consume(pool, consumed, predicate)
        if index is not None:
            return BatchMatchResult(
                row_index=row_index,
                pool_index=index,
                matched_record=pool[index],
                tier=tier,
                match_type=tier.value,
                status=BatchMatchStatus.MATCHED,
                score=1.0
            )

    threshold = settings.batch_similarity_threshold
    potential = [
        (index, similarity(record.description, row.description))
        for index, record in enumerate(pool)
        if not consumed[index]
    ]
    potential = [(index, score) for index, score in potential if score > threshold]
    potential.sort(key=lambda match: match[1], reverse=True)

    if not potential:
        return BatchMatchResult(
            row_index=row_index,
            tier=MatchTier.NOT_FOUND,
            match_type=MatchTier.NOT_FOUND.value,
            status=BatchMatchStatus.NOT_FOUND
        )

    best_index, best_score = potential[0]
    if len(potential) > 1 and (best_score - potential[1][1]) < settings.batch_ambiguity_gap:
        logger.info(
            "batch_row_ambiguous",
            row_index=row_index,
            description=row.description,
            top_scores=[round(score, 3) for _, score in potential[:3]]
        )
        return BatchMatchResult(
            row_index=row_index,
            tier=MatchTier.AMBIGUOUS,
            match_type=MatchTier.AMBIGUOUS.value,
            status=BatchMatchStatus.AMBIGUOUS,
            score=best_score
        )

    consumed[best_index] = True
    return BatchMatchResult(
        row_index=row_index,
        pool_index=best_index,
        matched_record=pool[best_index],
        tier=MatchTier.SIMILARITY,
        match_type=similarity_label(best_score),
        status=BatchMatchStatus.MATCHED,
        score=best_score
    )


def match_batch(
    rows: Sequence[PastedRow],
    pool: Sequence[InventoryRecord],
) -> list[BatchMatchResult]:
    """
    Match pasted rows against inventory records, in row order.

    Args:
        rows: Pasted rows, in the order they appear in the sheet
        pool: Inventory records of one unit

    Returns:
        One BatchMatchResult per row; no pool record is matched twice
    """
    consumed = [False] * len(pool)
    results = [
        _match_row(row_index, row, pool, consumed)
        for row_index, row in enumerate(rows)
    ]

    logger.info(
        "batch_matched",
        rows=len(rows),
        pool_size=len(pool),
        matched=sum(1 for r in results if r.status == BatchMatchStatus.MATCHED),
        ambiguous=sum(1 for r in results if r.status == BatchMatchStatus.AMBIGUOUS)
    )
    return results

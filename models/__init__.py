"""
Pydantic models for validation and serialization.
"""

from models.base import (
    BaseSchema,
    SnapshotSchema,
)
from models.inventory import (
    ConditionState,
    InventoryRecord,
    InventoryUpdate,
)
from models.ledger import (
    LedgerRecord,
    LedgerListResponse,
)
from models.reconciliation import (
    MatchTier,
    BatchMatchStatus,
    BatchPreviewStatus,
    ConfirmedLink,
    PendingLink,
    CommitPlan,
    RankedCandidate,
    RankResult,
    PastedRow,
    BatchMatchResult,
    BatchPreviewRow,
    SuggestionRequest,
    BatchMatchRequest,
    BatchPreviewRequest,
    LinkConfirmationRequest,
    SimilarityRequest,
    BatchMatchResponse,
    BatchPreviewResponse,
    LinkConfirmationResponse,
    PatternListResponse,
    SimilarityResponse,
    AssetTagResponse,
    ConditionParseResponse,
)

__all__ = [
    # Base
    "BaseSchema",
    "SnapshotSchema",

    # Inventory
    "ConditionState",
    "InventoryRecord",
    "InventoryUpdate",

    # Ledger
    "LedgerRecord",
    "LedgerListResponse",

    # Reconciliation
    "MatchTier",
    "BatchMatchStatus",
    "BatchPreviewStatus",
    "ConfirmedLink",
    "PendingLink",
    "CommitPlan",
    "RankedCandidate",
    "RankResult",
    "PastedRow",
    "BatchMatchResult",
    "BatchPreviewRow",
    "SuggestionRequest",
    "BatchMatchRequest",
    "BatchPreviewRequest",
    "LinkConfirmationRequest",
    "SimilarityRequest",
    "BatchMatchResponse",
    "BatchPreviewResponse",
    "LinkConfirmationResponse",
    "PatternListResponse",
    "SimilarityResponse",
    "AssetTagResponse",
    "ConditionParseResponse",
]

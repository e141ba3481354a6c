"""
Reconciliation schemas for validation and serialization.

Models for linking untagged inventory records to ledger entries:
- ConfirmedLink: a human-confirmed pairing kept as a learned pattern
- PendingLink: a proposed pairing awaiting confirmation
- RankedCandidate / RankResult: interactive suggestions
- PastedRow / BatchMatchResult / BatchPreviewRow: bulk matching
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field

from models.base import BaseSchema
from models.inventory import InventoryRecord, InventoryUpdate
from models.ledger import LedgerRecord


# ===================
# ENUMS
# ===================

class MatchTier(str, Enum):
    """Batch matching tiers, tried in order."""
    PERFECT = "Perfect"
    HIGH = "High"
    EXACT = "Exact"
    SIMILARITY = "By similarity"
    AMBIGUOUS = "Ambiguous"
    NOT_FOUND = "Not found"


class BatchMatchStatus(str, Enum):
    """Outcome of matching one pasted row."""
    MATCHED = "matched"
    AMBIGUOUS = "ambiguous"
    NOT_FOUND = "not_found"


class BatchPreviewStatus(str, Enum):
    """Row classification shown before a batch update is applied."""
    OK = "ok"
    NOT_FOUND = "not_found"
    AMBIGUOUS = "ambiguous"
    TAG_IN_USE = "tag_in_use"
    TAG_WRONG_LOCATION = "tag_wrong_location"
    TAG_NOT_IN_LEDGER = "tag_not_in_ledger"
    MISSING_DESCRIPTION = "missing_description"


# ===================
# LEARNED PATTERNS
# ===================

class ConfirmedLink(BaseSchema):
    """
    Human-confirmed inventory ↔ ledger pairing.

    Stored newest-first; the in-memory log is capped and the oldest
    entries fall off.
    """

    system_description: str = Field("", description="Inventory description at confirmation")
    system_supplier: str = Field("", description="Inventory supplier at confirmation")
    ledger_description: str = Field("", description="Ledger description + species")
    ledger_supplier: str = Field("", description="Ledger supplier name")
    asset_tag: str = Field("", description="Linked asset tag")
    unit: str = Field("", description="Inventory unit")
    item_type: str = Field("", description="Inventory unit type")
    score: float = Field(0.0, ge=0, le=1, description="Similarity at confirmation")
    confirmed_at: datetime = Field(..., description="Caller-supplied confirmation time")
    confirmed_by: Optional[str] = Field(None, description="User who confirmed")

    @property
    def system_descriptor(self) -> str:
        return f"{self.system_description} {self.system_supplier}".strip()

    @property
    def ledger_descriptor(self) -> str:
        return f"{self.ledger_description} {self.ledger_supplier}".strip()


class PendingLink(BaseSchema):
    """Proposed pairing awaiting confirmation."""

    record: InventoryRecord
    ledger_record: LedgerRecord
    use_ledger_description: bool = Field(
        False,
        description="Replace the inventory description with the ledger one"
    )


class CommitPlan(BaseSchema):
    """Writes and learned patterns produced by confirming pending links."""

    updates: list[InventoryUpdate] = Field(default_factory=list)
    links: list[ConfirmedLink] = Field(default_factory=list)


# ===================
# INTERACTIVE RANKING
# ===================

class RankedCandidate(BaseSchema):
    """Ledger candidate scored against one inventory record."""

    record: LedgerRecord
    score: float = Field(..., ge=0, le=1, description="Final score")
    base_score: float = Field(..., ge=0, le=1, description="Text + supplier score")
    bonus_score: float = Field(0.0, ge=0, description="Learned-pattern bonus")


class RankResult(BaseSchema):
    """Ranked candidates, best first."""

    ranked: list[RankedCandidate] = Field(default_factory=list)
    top_score: float = Field(0.0, ge=0, le=1)


# ===================
# BATCH MATCHING
# ===================

class PastedRow(BaseSchema):
    """One row pasted from an audit spreadsheet."""

    description: str = Field("", description="Item description")
    asset_tag: str = Field("", description="Asset tag as pasted")
    location: str = Field("", description="Location as pasted")
    condition_state: str = Field("", description="Condition as pasted")

    @property
    def is_empty(self) -> bool:
        return not (self.description or self.asset_tag or self.location or self.condition_state)


class BatchMatchResult(BaseSchema):
    """Outcome of matching one pasted row against the pool."""

    row_index: int
    pool_index: Optional[int] = None
    matched_record: Optional[InventoryRecord] = None
    tier: MatchTier
    match_type: str = Field(..., description="Human-readable tier label")
    status: BatchMatchStatus
    score: Optional[float] = None


class BatchPreviewRow(BaseSchema):
    """Batch row classification, including ledger checks."""

    row_index: int
    pasted: PastedRow
    status: BatchPreviewStatus
    match_type: str = ""
    matched_record: Optional[InventoryRecord] = None
    ledger_record: Optional[LedgerRecord] = None

    @property
    def is_valid(self) -> bool:
        return self.status in (BatchPreviewStatus.OK, BatchPreviewStatus.TAG_NOT_IN_LEDGER)


# ===================
# REQUEST SCHEMAS
# ===================

class SuggestionRequest(BaseSchema):
    """Rank a ledger pool for one inventory record."""

    item: InventoryRecord
    pool: list[LedgerRecord] = Field(default_factory=list)
    excluded_tags: list[str] = Field(default_factory=list, description="Tags already consumed")


class BatchMatchRequest(BaseSchema):
    """Match pasted rows against a pool of inventory records."""

    rows: list[PastedRow] = Field(default_factory=list)
    pool: list[InventoryRecord] = Field(default_factory=list)


class BatchPreviewRequest(BaseSchema):
    """Parse pasted spreadsheet text and classify each row."""

    pasted_text: str = Field(..., min_length=1, description="Rows copied from a spreadsheet")
    unit: str = Field(..., min_length=1, description="Target unit")
    inventory: list[InventoryRecord] = Field(default_factory=list)
    ledger: list[LedgerRecord] = Field(default_factory=list)
    unit_mapping: dict[str, list[str]] = Field(default_factory=dict)


class LinkConfirmationRequest(BaseSchema):
    """Confirm a set of pending links."""

    links: list[PendingLink] = Field(..., min_length=1)
    inventory: list[InventoryRecord] = Field(
        default_factory=list,
        description="Current inventory, used to reject tags already assigned"
    )
    confirmed_at: Optional[datetime] = Field(None, description="Defaults to server time")
    confirmed_by: Optional[str] = None


class SimilarityRequest(BaseSchema):
    """Compare two strings."""

    a: Optional[str] = None
    b: Optional[str] = None


# ===================
# RESPONSE SCHEMAS
# ===================

class BatchMatchResponse(BaseSchema):
    data: list[BatchMatchResult]
    matched: int
    total: int


class BatchPreviewResponse(BaseSchema):
    data: list[BatchPreviewRow]
    valid: int
    total: int


class LinkConfirmationResponse(BaseSchema):
    updates: list[InventoryUpdate]
    confirmed: list[ConfirmedLink]
    persisted: int = Field(0, description="Confirmed links written to storage")


class PatternListResponse(BaseSchema):
    data: list[ConfirmedLink]
    total: int


class SimilarityResponse(BaseSchema):
    score: float


class AssetTagResponse(BaseSchema):
    raw: str
    normalized: str
    untagged: bool


class ConditionParseResponse(BaseSchema):
    state: str
    origin: str

"""
Reconciliation API routes.

Suggestions, batch matching, link confirmation and the normalizer
helpers used by the reconciliation screens. Handlers are plain functions:
matching is CPU-bound and FastAPI runs them in its threadpool.
"""

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
import structlog

from exceptions import AppError
from models.ledger import LedgerListResponse
from models.reconciliation import (
    AssetTagResponse,
    BatchMatchRequest,
    BatchMatchResponse,
    BatchPreviewRequest,
    BatchPreviewResponse,
    ConditionParseResponse,
    LinkConfirmationRequest,
    LinkConfirmationResponse,
    PatternListResponse,
    RankResult,
    SimilarityRequest,
    SimilarityResponse,
    SuggestionRequest,
)
from services.reconciliation_service import get_reconciliation_service
from services.similarity_service import similarity
from utils.text_utils import is_untagged, normalize_asset_tag, parse_condition_and_origin

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/reconciliation", tags=["Reconciliation"])


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


# ===================
# MATCHING
# ===================

@router.post("/suggestions", response_model=RankResult)
def suggest_candidates(request: SuggestionRequest):
    """
    Rank ledger candidates for one untagged record.

    The pool must already be scoped (unit, availability); tags in
    excluded_tags are skipped.
    """
    try:
        service = get_reconciliation_service()
        return service.suggest(request)

    except Exception as e:
        return handle_error(e)


@router.post("/batch-match", response_model=BatchMatchResponse)
def batch_match(request: BatchMatchRequest):
    """
    Match pasted rows against inventory records.

    Each record is matched at most once; rows are processed in order.
    """
    try:
        service = get_reconciliation_service()
        return service.batch_match(request)

    except Exception as e:
        return handle_error(e)


@router.post("/batch-preview", response_model=BatchPreviewResponse)
def batch_preview(request: BatchPreviewRequest):
    """
    Parse pasted spreadsheet text and classify each row.

    Rows come back as ok, not_found, ambiguous, tag_in_use,
    tag_wrong_location, tag_not_in_ledger or missing_description.
    """
    try:
        service = get_reconciliation_service()
        return service.preview_batch(request)

    except Exception as e:
        return handle_error(e)


@router.post("/links", response_model=LinkConfirmationResponse)
def confirm_links(request: LinkConfirmationRequest):
    """
    Confirm pending links.

    Writes the record updates and learns each link as a pattern.
    """
    try:
        service = get_reconciliation_service()
        return service.confirm_links(request)

    except Exception as e:
        return handle_error(e)


@router.get("/patterns", response_model=PatternListResponse)
def list_patterns():
    """Learned patterns, newest first."""
    try:
        service = get_reconciliation_service()
        patterns = service.list_patterns()
        return PatternListResponse(data=patterns, total=len(patterns))

    except Exception as e:
        return handle_error(e)


# ===================
# NORMALIZERS
# ===================

@router.post("/similarity", response_model=SimilarityResponse)
def compare_texts(request: SimilarityRequest):
    """Similarity score between two strings."""
    return SimilarityResponse(score=similarity(request.a, request.b))


@router.get("/asset-tags/normalize", response_model=AssetTagResponse)
def normalize_tag(tag: str = Query("", description="Asset tag as typed or exported")):
    """Canonical form of an asset tag."""
    return AssetTagResponse(
        raw=tag,
        normalized=normalize_asset_tag(tag),
        untagged=is_untagged(tag)
    )


@router.get("/conditions/parse", response_model=ConditionParseResponse)
def parse_condition(text: str = Query("", description="Condition note, e.g. 'Bom (Doação X)'")):
    """Condition state and donation origin from a free-text note."""
    parsed = parse_condition_and_origin(text)
    return ConditionParseResponse(state=parsed.state.value, origin=parsed.origin)


# ===================
# LEDGER
# ===================

@router.get("/ledger", response_model=LedgerListResponse)
def get_ledger():
    """
    Fetch and parse the current ledger snapshot.

    Returns 503 if the export cannot be downloaded.
    """
    try:
        service = get_reconciliation_service()
        result = service.fetch_ledger()
        return LedgerListResponse(data=result.records, total=len(result.records))

    except Exception as e:
        return handle_error(e)

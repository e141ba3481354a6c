"""
Similarity scoring for inventory descriptions.

Composite fuzzy metric in [0, 1] used by both the interactive ranker and
the batch matcher:

    exact (after normalization)       -> 1.0
    one contains the other            -> 0.92
    no word over 2 chars on any side  -> 0.0
    otherwise                         -> min(1, jaccard*0.6 + substring + levenshtein)

The substring bonus tops out at 0.3 and the Levenshtein bonus at 0.2.
"""

from decimal import Decimal
from typing import Any

from rapidfuzz.distance import Levenshtein

from utils.text_utils import normalize_text

EXACT_SCORE = 1.0
CONTAINMENT_SCORE = 0.92

JACCARD_WEIGHT = 0.6
SUBSTRING_WEIGHT = 0.3
LEVENSHTEIN_WEIGHT = 0.2

MIN_TOKEN_LENGTH = 3
SUBSTRING_MAX_SIZE = 8
SUBSTRING_MIN_SIZE = 4
LEVENSHTEIN_MAX_LENGTH = 50
LEVENSHTEIN_MAX_LENGTH_GAP = 20

_COERCIBLE_TYPES = (str, int, float, Decimal)


def _coerce(value: Any, name: str) -> str:
    """Normalize one operand, rejecting values that are not text-like."""
    if value is None:
        return ""
    if isinstance(value, bool) or not isinstance(value, _COERCIBLE_TYPES):
        raise TypeError(
            f"similarity() operand '{name}' must be str or number, got {type(value).__name__}"
        )
    return normalize_text(value)


def levenshtein_distance(s1: str, s2: str) -> int:
    """
    Edit distance with unit insert/delete/substitute costs.

    Strings whose lengths differ by more than 20 characters are not
    compared; the longer length is returned as the distance.
    """
    len1, len2 = len(s1), len(s2)
    if abs(len1 - len2) > LEVENSHTEIN_MAX_LENGTH_GAP:
        return max(len1, len2)
    return Levenshtein.distance(s1, s2)


def _tokens(text: str) -> set[str]:
    return {word for word in text.split() if len(word) >= MIN_TOKEN_LENGTH}


def _jaccard(s1: str, s2: str) -> float:
    words1, words2 = _tokens(s1), _tokens(s2)
    union = words1 | words2
    if not union:
        return 0.0
    return len(words1 & words2) / len(union)


def _substring_bonus(s1: str, s2: str) -> float:
    """Longest shared chunk of 8 down to 4 chars, relative to the longer string."""
    longest = max(len(s1), len(s2))
    top = min(SUBSTRING_MAX_SIZE, len(s1), len(s2))
    for size in range(top, SUBSTRING_MIN_SIZE - 1, -1):
        for start in range(len(s1) - size + 1):
            if s1[start:start + size] in s2:
                return (size / longest) * SUBSTRING_WEIGHT
    return 0.0


def _levenshtein_bonus(s1: str, s2: str) -> float:
    if len(s1) >= LEVENSHTEIN_MAX_LENGTH or len(s2) >= LEVENSHTEIN_MAX_LENGTH:
        return 0.0
    longest = max(len(s1), len(s2))
    if longest == 0:
        return 0.0
    distance = levenshtein_distance(s1, s2)
    return (1 - distance / longest) * LEVENSHTEIN_WEIGHT


def similarity(a: Any, b: Any) -> float:
    """
    Score how alike two descriptions are.

    Args:
        a: First text (str, number or None)
        b: Second text (str, number or None)

    Returns:
        Score between 0.0 and 1.0

    Raises:
        TypeError: If an operand is not string-coercible
    """
    s1 = _coerce(a, "a")
    s2 = _coerce(b, "b")

    if s1 == s2:
        return EXACT_SCORE

    # An empty side is contained in anything
    if s1 in s2 or s2 in s1:
        return CONTAINMENT_SCORE

    if not _tokens(s1) and not _tokens(s2):
        return 0.0

    score = (
        _jaccard(s1, s2) * JACCARD_WEIGHT
        + _substring_bonus(s1, s2)
        + _levenshtein_bonus(s1, s2)
    )
    return min(score, 1.0)


def token_overlap(a: Any, b: Any) -> float:
    """Jaccard word overlap only; cheap pre-filter for large pools."""
    return _jaccard(_coerce(a, "a"), _coerce(b, "b"))

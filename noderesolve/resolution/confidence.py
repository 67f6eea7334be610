"""Per-strategy confidence scoring for entity resolution.

Rules:
- Exact name equality is the only way to reach 1.0
- Fuzzy: 1 - levenshtein / max_len, boosted for same tag (+0.10) and
  entity nodes (+0.05), capped at 0.95
- Semantic: cosine similarity band [0.5, 1.0] mapped linearly onto
  [0, 0.95]; anything below 0.5 is noise
"""

import math

from rapidfuzz.distance import Levenshtein

EXACT_CONFIDENCE = 1.0

SAME_TAG_BOOST = 0.10
ENTITY_BOOST = 0.05
FUZZY_CEILING = 0.95

SEMANTIC_FLOOR = 0.5
SEMANTIC_SCALE = 1.9
SEMANTIC_CEILING = 0.95


def levenshtein_distance(query: str, candidate_name: str) -> int:
    """Case-insensitive edit distance between a query and a stored name."""
    return Levenshtein.distance(query.lower(), candidate_name.lower())


def calculate_fuzzy_confidence(
    query: str,
    candidate_name: str,
    *,
    same_tag: bool = False,
    is_entity: bool = False,
) -> float:
    """Calculate fuzzy confidence from Levenshtein distance.

    Args:
        query: Query variant (any case)
        candidate_name: Stored node name (any case)
        same_tag: Candidate carries the caller's tag filter
        is_entity: Store flags the node as an entity

    Returns:
        Confidence in [0, 0.95]
    """
    q = query.lower()
    c = candidate_name.lower()
    max_len = max(len(q), len(c))
    if max_len == 0:
        return 0.0

    score = 1.0 - Levenshtein.distance(q, c) / max_len

    if same_tag:
        score += SAME_TAG_BOOST
    if is_entity:
        score += ENTITY_BOOST

    return min(FUZZY_CEILING, max(0.0, score))


def map_semantic_to_confidence(cosine_similarity: float) -> float:
    """Map a vector-index similarity onto a confidence score.

    Args:
        cosine_similarity: Raw similarity in [-1, 1]

    Returns:
        0 below the 0.5 floor or when not finite, else (s - 0.5) * 1.9
        capped at 0.95
    """
    if not math.isfinite(cosine_similarity) or cosine_similarity < SEMANTIC_FLOOR:
        return 0.0
    return min(SEMANTIC_CEILING, (cosine_similarity - SEMANTIC_FLOOR) * SEMANTIC_SCALE)

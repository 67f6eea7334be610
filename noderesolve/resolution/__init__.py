"""Entity resolution module for deciding whether a name is a known node.

This module provides:
- EntityResolver: Find-or-create pipeline (exact + fuzzy + semantic)
- Query normalization and "Last, First" name variants
- Per-strategy confidence scoring (Levenshtein via RapidFuzz, cosine mapping)
- Merge/deduplicate and the matched/ambiguous/no_match decision policy
- Candidate source protocols and result schemas
"""

from noderesolve.resolution.confidence import (
    calculate_fuzzy_confidence,
    map_semantic_to_confidence,
)
from noderesolve.resolution.normalizer import generate_name_variants, normalize_query
from noderesolve.resolution.ranking import (
    decide,
    determine_action,
    merge_and_deduplicate,
)
from noderesolve.resolution.resolver import EntityResolver, validate_short_query
from noderesolve.resolution.schemas import (
    DEFAULT_LIMIT,
    DEFAULT_THRESHOLD,
    MatchType,
    ResolutionAction,
    ResolutionResult,
    ResolvedCandidate,
    ResolveQuery,
)
from noderesolve.resolution.sources import (
    ExactSource,
    FuzzyHit,
    FuzzySource,
    NodeRecord,
    SemanticHit,
    SemanticSource,
    SemanticUnavailable,
)

__all__ = [
    "DEFAULT_LIMIT",
    "DEFAULT_THRESHOLD",
    "EntityResolver",
    "ExactSource",
    "FuzzyHit",
    "FuzzySource",
    "MatchType",
    "NodeRecord",
    "ResolutionAction",
    "ResolutionResult",
    "ResolveQuery",
    "ResolvedCandidate",
    "SemanticHit",
    "SemanticSource",
    "SemanticUnavailable",
    "calculate_fuzzy_confidence",
    "decide",
    "determine_action",
    "generate_name_variants",
    "map_semantic_to_confidence",
    "merge_and_deduplicate",
    "normalize_query",
    "validate_short_query",
]

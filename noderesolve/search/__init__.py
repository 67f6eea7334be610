"""Search module for resolution candidates.

Provides the FTS5 fuzzy candidate source and the embedding-backed
semantic candidate source.
"""

from noderesolve.search.fts_service import NodeSearchService, escape_fts5_query
from noderesolve.search.semantic import (
    Embedder,
    EmbeddingSearchService,
    cosine_similarities,
)

__all__ = [
    "Embedder",
    "EmbeddingSearchService",
    "NodeSearchService",
    "cosine_similarities",
    "escape_fts5_query",
]

"""Semantic candidate search over stored node embeddings.

Embeds the query with an injected embedder and ranks stored node vectors
by cosine similarity. Semantic search is an optional enhancement: when
no embedder is configured, no embeddings are stored, or embedding fails,
the service reports SemanticUnavailable instead of raising.
"""

import json
from typing import Protocol

import numpy as np
import structlog

from noderesolve.db.turso import TursoClient
from noderesolve.repositories.node_repo import NodeRepository
from noderesolve.resolution.sources import SemanticHit, SemanticUnavailable

logger = structlog.get_logger()


class Embedder(Protocol):
    """Turns text into an embedding vector."""

    async def embed(self, text: str) -> list[float]: ...


def cosine_similarities(query: np.ndarray, matrix: np.ndarray) -> np.ndarray:
    """Cosine similarity of one vector against each row of a matrix.

    Rows (or a query) with zero norm score 0.
    """
    query_norm = np.linalg.norm(query)
    row_norms = np.linalg.norm(matrix, axis=1)
    denominator = row_norms * query_norm
    dots = matrix @ query
    with np.errstate(divide="ignore", invalid="ignore"):
        scores = np.where(denominator > 0, dots / denominator, 0.0)
    return scores


class EmbeddingSearchService:
    """Semantic candidate source backed by the node_embeddings table."""

    def __init__(
        self,
        db_client: TursoClient,
        node_repo: NodeRepository,
        embedder: Embedder | None = None,
    ):
        """Initialize semantic search.

        Args:
            db_client: TursoClient instance for database operations
            node_repo: Repository used to attach names and tags to hits
            embedder: Query embedder; without one the service is unavailable
        """
        self._db = db_client
        self._nodes = node_repo
        self._embedder = embedder

    async def search(
        self, query: str, limit: int = 20
    ) -> list[SemanticHit] | SemanticUnavailable:
        """Find nodes whose embeddings are closest to the query.

        Args:
            query: Normalized name variant
            limit: Maximum hits

        Returns:
            Hits by similarity descending, or SemanticUnavailable
        """
        if self._embedder is None:
            return SemanticUnavailable(reason="no embedder configured")

        try:
            result = await self._db.execute(
                """
                SELECT e.node_id, e.vector, n.name
                FROM node_embeddings e
                JOIN nodes n ON n.id = e.node_id
                WHERE n.name IS NOT NULL
                """
            )
        except Exception as e:
            logger.info("embedding index unavailable", error=str(e))
            return SemanticUnavailable(reason="embedding index unavailable")

        if not result.rows:
            return SemanticUnavailable(reason="no embeddings stored")

        try:
            query_vector = np.asarray(await self._embedder.embed(query), dtype=float)
        except Exception as e:
            logger.warning("query embedding failed", query=query, error=str(e))
            return SemanticUnavailable(reason="query embedding failed")

        ids: list[str] = []
        names: list[str] = []
        vectors: list[list[float]] = []
        for row in result.rows:
            node_id, name = row[0], row[2]
            vector = json.loads(row[1])
            if len(vector) != len(query_vector):
                continue
            ids.append(str(node_id))
            names.append(name)
            vectors.append(vector)

        if not vectors:
            return SemanticUnavailable(reason="embedding dimensions do not match")

        scores = cosine_similarities(query_vector, np.asarray(vectors, dtype=float))
        top = np.argsort(-scores, kind="stable")[: max(limit, 0)]

        top_ids = [ids[i] for i in top]
        tags_by_id = await self._nodes.get_tags_for(top_ids)

        return [
            SemanticHit(
                id=ids[i],
                name=names[i],
                tags=tags_by_id.get(ids[i], []),
                similarity=float(scores[i]),
            )
            for i in top
        ]

"""Tests for embedding-based semantic candidate search."""

import numpy as np
import pytest

from noderesolve.repositories.node_repo import NodeRepository
from noderesolve.resolution.sources import SemanticUnavailable
from noderesolve.search.semantic import EmbeddingSearchService, cosine_similarities


class FixedEmbedder:
    """Embeds every text as the same vector."""

    def __init__(self, vector: list[float]):
        self.vector = vector
        self.calls: list[str] = []

    async def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        return self.vector


class FailingEmbedder:
    async def embed(self, text: str) -> list[float]:
        raise ConnectionError("embedding service down")


@pytest.fixture
async def embedded_repo(seeded_repo: NodeRepository) -> NodeRepository:
    await seeded_repo.save_embedding("node-1", [1.0, 0.0, 0.0])
    await seeded_repo.save_embedding("node-2", [0.0, 1.0, 0.0])
    await seeded_repo.save_embedding("node-3", [0.7, 0.7, 0.0])
    return seeded_repo


class TestCosineSimilarities:
    def test_scores_each_row(self):
        scores = cosine_similarities(
            np.array([1.0, 0.0]), np.array([[1.0, 0.0], [0.0, 1.0], [-1.0, 0.0]])
        )

        assert scores.tolist() == pytest.approx([1.0, 0.0, -1.0])

    def test_zero_norm_scores_zero(self):
        scores = cosine_similarities(
            np.array([1.0, 0.0]), np.array([[0.0, 0.0], [2.0, 0.0]])
        )

        assert scores.tolist() == pytest.approx([0.0, 1.0])


class TestEmbeddingSearchService:
    async def test_ranks_by_similarity(self, db_client, embedded_repo):
        embedder = FixedEmbedder([1.0, 0.0, 0.0])
        service = EmbeddingSearchService(db_client, embedded_repo, embedder)

        hits = await service.search("daniel miessler")

        assert isinstance(hits, list)
        assert [hit.id for hit in hits] == ["node-1", "node-3", "node-2"]
        assert hits[0].similarity == pytest.approx(1.0)
        assert hits[1].similarity == pytest.approx(0.7071, abs=1e-3)
        assert hits[0].name == "Daniel Miessler"
        assert hits[0].tags == ["person"]
        assert embedder.calls == ["daniel miessler"]

    async def test_limit(self, db_client, embedded_repo):
        service = EmbeddingSearchService(
            db_client, embedded_repo, FixedEmbedder([1.0, 0.0, 0.0])
        )

        hits = await service.search("daniel", limit=2)

        assert [hit.id for hit in hits] == ["node-1", "node-3"]

    async def test_no_embedder_is_unavailable(self, db_client, embedded_repo):
        service = EmbeddingSearchService(db_client, embedded_repo)

        result = await service.search("daniel")

        assert isinstance(result, SemanticUnavailable)

    async def test_no_stored_embeddings_is_unavailable(self, db_client, seeded_repo):
        service = EmbeddingSearchService(
            db_client, seeded_repo, FixedEmbedder([1.0, 0.0, 0.0])
        )

        result = await service.search("daniel")

        assert isinstance(result, SemanticUnavailable)
        assert result.reason == "no embeddings stored"

    async def test_embedder_failure_is_unavailable(self, db_client, embedded_repo):
        service = EmbeddingSearchService(db_client, embedded_repo, FailingEmbedder())

        result = await service.search("daniel")

        assert isinstance(result, SemanticUnavailable)

    async def test_dimension_mismatch_is_unavailable(self, db_client, embedded_repo):
        service = EmbeddingSearchService(
            db_client, embedded_repo, FixedEmbedder([1.0, 0.0])
        )

        result = await service.search("daniel")

        assert isinstance(result, SemanticUnavailable)

"""Candidate source protocols for entity resolution.

The resolver consumes three candidate-producing collaborators, one per
matching strategy. Sources return raw records; confidence is always
computed by the resolver, never by the source.
"""

from typing import Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field


class NodeRecord(BaseModel):
    """Node as returned by a candidate source."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Opaque store identifier")
    name: str = Field(description="Display name as stored")
    tags: list[str] = Field(default_factory=list, description="Applied tags")


class FuzzyHit(NodeRecord):
    """Full-text search candidate (unscored)."""

    is_entity: bool = Field(
        default=False, description="Store flags this node as an entity"
    )


class SemanticHit(NodeRecord):
    """Vector search candidate with its raw similarity."""

    similarity: float = Field(description="Cosine similarity (-1..1)")


class SemanticUnavailable(BaseModel):
    """Returned by a semantic source that cannot serve this call."""

    model_config = ConfigDict(frozen=True)

    reason: str = Field(default="", description="Why embeddings are unavailable")


@runtime_checkable
class ExactSource(Protocol):
    """Case-insensitive full-name lookup."""

    async def lookup(self, name: str, tag: str | None = None) -> list[NodeRecord]:
        """Return nodes whose name equals `name` ignoring case.

        Args:
            name: Normalized name variant
            tag: Optional tag the node must carry (case-insensitive)

        Returns:
            Matching nodes with their tags
        """
        ...


@runtime_checkable
class FuzzySource(Protocol):
    """Full-text / trigram candidate search."""

    async def search(
        self, query: str, tag: str | None = None, limit: int = 100
    ) -> list[FuzzyHit]:
        """Return a superset of plausible candidates for `query`.

        Implementations escape the query for their backend and degrade
        backend errors to an empty list.
        """
        ...


@runtime_checkable
class SemanticSource(Protocol):
    """Vector-similarity candidate search."""

    async def search(
        self, query: str, limit: int = 20
    ) -> list[SemanticHit] | SemanticUnavailable:
        """Return nearest nodes with similarity, or SemanticUnavailable.

        Tag filtering is applied by the resolver after scoring.
        """
        ...

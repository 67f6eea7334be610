"""Entity resolution schemas.

Defines the query, candidate and result models shared by the resolution
pipeline and its callers.
"""

from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

DEFAULT_THRESHOLD = 0.85
DEFAULT_LIMIT = 5


class MatchType(str, Enum):
    """Strategy that produced a candidate."""

    EXACT = "exact"
    FUZZY = "fuzzy"
    SEMANTIC = "semantic"


class ResolutionAction(str, Enum):
    """What the caller should do with a resolution result."""

    MATCHED = "matched"
    AMBIGUOUS = "ambiguous"
    NO_MATCH = "no_match"


class _CamelModel(BaseModel):
    """Serializes with camelCase aliases for agent-facing callers."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class ExactDetails(_CamelModel):
    """Exact matches carry no diagnostics."""

    kind: Literal["exact"] = "exact"


class FuzzyDetails(_CamelModel):
    """Edit distance between the query variant and the stored name."""

    kind: Literal["fuzzy"] = "fuzzy"
    levenshtein_distance: int = Field(ge=0, description="Levenshtein distance")


class SemanticDetails(_CamelModel):
    """Raw similarity reported by the vector index."""

    kind: Literal["semantic"] = "semantic"
    cosine_similarity: float = Field(description="Cosine similarity (-1..1)")


MatchDetails = Annotated[
    ExactDetails | FuzzyDetails | SemanticDetails,
    Field(discriminator="kind"),
]


class ResolveQuery(BaseModel):
    """Input to a single resolution.

    Immutable; created once per resolve call.
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=False)

    text: str = Field(description="Raw name to resolve")
    tag: str | None = Field(default=None, description="Optional tag filter")
    threshold: float = Field(
        default=DEFAULT_THRESHOLD,
        ge=0.0,
        le=1.0,
        description="Minimum confidence for a candidate to count",
    )
    limit: int = Field(
        default=DEFAULT_LIMIT,
        description="Max candidates to return (non-positive means no limit)",
    )
    exact: bool = Field(default=False, description="Skip fuzzy and semantic")
    workspace: str | None = Field(
        default=None, description="Index scope; carried for callers, not interpreted"
    )


class ResolvedCandidate(_CamelModel):
    """One node proposed as a match for a query."""

    id: str = Field(description="Opaque store identifier")
    name: str = Field(description="Display name as stored")
    tags: list[str] = Field(default_factory=list, description="Applied tags")
    confidence: float = Field(ge=0.0, le=1.0, description="Match confidence (0-1)")
    match_type: MatchType = Field(description="Strategy that found the node")
    match_details: MatchDetails = Field(description="Strategy diagnostics")

    @model_validator(mode="after")
    def _details_match_type(self) -> "ResolvedCandidate":
        if self.match_details.kind != self.match_type.value:
            msg = (
                f"match_details kind '{self.match_details.kind}' does not "
                f"match match_type '{self.match_type.value}'"
            )
            raise ValueError(msg)
        return self


class ResolutionResult(_CamelModel):
    """Outcome of resolving one query.

    best_match is set if and only if action is MATCHED.
    """

    query: str = Field(description="Original query text")
    normalized_query: str = Field(description="Normalized query")
    candidates: list[ResolvedCandidate] = Field(
        default_factory=list,
        description="Deduplicated candidates, confidence descending",
    )
    best_match: ResolvedCandidate | None = Field(
        default=None, description="Top candidate when matched"
    )
    action: ResolutionAction = Field(description="Decision for the caller")
    embeddings_available: bool = Field(
        default=False, description="Whether semantic search was reachable"
    )

    @model_validator(mode="after")
    def _best_match_iff_matched(self) -> "ResolutionResult":
        matched = self.action == ResolutionAction.MATCHED
        if matched != (self.best_match is not None):
            msg = "best_match must be set if and only if action is 'matched'"
            raise ValueError(msg)
        return self

    @property
    def is_resolved(self) -> bool:
        """True when a single node was confidently identified."""
        return self.action == ResolutionAction.MATCHED

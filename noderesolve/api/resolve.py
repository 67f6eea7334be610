"""Entity resolution API endpoints.

Provides find-or-create resolution for single names and batches, shaped
for agent callers deciding whether to create a new node or reuse one.
"""

from collections import Counter
from typing import Literal

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from noderesolve.config import settings
from noderesolve.resolution.formatter import (
    create_suggestion,
    format_batch_csv,
    format_resolution_text,
)
from noderesolve.resolution.resolver import EntityResolver
from noderesolve.resolution.schemas import (
    MatchType,
    ResolutionAction,
    ResolutionResult,
    ResolveQuery,
)

router = APIRouter(prefix="/resolve", tags=["resolve"])


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ResolveRequest(_CamelModel):
    """Request to resolve one name."""

    name: str = Field(min_length=1, description="Name to resolve")
    tag: str | None = Field(default=None, description="Filter to a specific tag")
    threshold: float | None = Field(
        default=None, ge=0.0, le=1.0, description="Minimum confidence (0-1)"
    )
    limit: int | None = Field(default=None, description="Max candidates to return")
    exact: bool = Field(default=False, description="Exact match only")
    workspace: str | None = Field(default=None, description="Index scope")
    create_if_missing: bool = Field(
        default=False, description="Include a create suggestion when unmatched"
    )

    def to_query(self) -> ResolveQuery:
        """Build the resolver query, filling defaults from settings."""
        return ResolveQuery(
            text=self.name,
            tag=self.tag,
            threshold=(
                self.threshold
                if self.threshold is not None
                else settings.default_threshold
            ),
            limit=self.limit if self.limit is not None else settings.default_limit,
            exact=self.exact,
            workspace=self.workspace,
        )


class CandidateOut(_CamelModel):
    """Single candidate for API response."""

    id: str
    name: str
    tags: list[str] = Field(default_factory=list)
    confidence: float = Field(description="Confidence rounded to 3 decimals")
    match_type: MatchType


class BestMatchOut(_CamelModel):
    """Best match summary for API response."""

    id: str
    name: str
    confidence: float


class CreateSuggestion(_CamelModel):
    """Hint for callers running find-or-create."""

    suggestion: str


class ResolveResponse(_CamelModel):
    """Response for a single resolution."""

    query: str = Field(description="Original name")
    normalized_query: str = Field(description="Normalized name")
    action: ResolutionAction = Field(description="matched, ambiguous or no_match")
    candidates: list[CandidateOut] = Field(default_factory=list)
    best_match: BestMatchOut | None = Field(default=None)
    embeddings_available: bool = Field(
        description="False when semantic search could not be used"
    )
    created: CreateSuggestion | None = Field(
        default=None, description="Set when create_if_missing applies"
    )

    @classmethod
    def from_resolution_result(
        cls,
        result: ResolutionResult,
        create_if_missing: bool = False,
        tag: str | None = None,
    ) -> "ResolveResponse":
        """Convert internal ResolutionResult to API response model."""
        created = None
        if create_if_missing:
            suggestion = create_suggestion(result, result.query, tag)
            if suggestion:
                created = CreateSuggestion(suggestion=suggestion)

        best = result.best_match
        return cls(
            query=result.query,
            normalized_query=result.normalized_query,
            action=result.action,
            candidates=[
                CandidateOut(
                    id=c.id,
                    name=c.name,
                    tags=c.tags,
                    confidence=round(c.confidence, 3),
                    match_type=c.match_type,
                )
                for c in result.candidates
            ],
            best_match=(
                BestMatchOut(
                    id=best.id, name=best.name, confidence=round(best.confidence, 3)
                )
                if best
                else None
            ),
            embeddings_available=result.embeddings_available,
            created=created,
        )


class BatchResolveRequest(_CamelModel):
    """Request to resolve several names with shared options."""

    names: list[str] = Field(min_length=1, description="Names to resolve")
    tag: str | None = Field(default=None)
    threshold: float | None = Field(default=None, ge=0.0, le=1.0)
    limit: int | None = Field(default=None)
    exact: bool = Field(default=False)
    workspace: str | None = Field(default=None)


class BatchResolveResponse(_CamelModel):
    """Response with one resolution per requested name."""

    results: list[ResolveResponse] = Field(description="Results in request order")
    counts: dict[str, int] = Field(description="Number of results per action")
    review_summary: str | None = Field(
        default=None,
        description="Human-readable summary of names that did not match",
    )


def get_entity_resolver(request: Request) -> EntityResolver:
    """Dependency to get EntityResolver from app state."""
    return request.app.state.entity_resolver


def _generate_review_summary(results: list[ResolveResponse]) -> str | None:
    """Summarize names that need attention (ambiguous or unmatched).

    Args:
        results: Batch results

    Returns:
        Summary string or None if everything matched
    """
    pending = [r for r in results if r.action != ResolutionAction.MATCHED]
    if not pending:
        return None

    lines = [f"{len(pending)} name(s) not resolved:"]
    for item in pending[:5]:  # Show first 5
        if item.action == ResolutionAction.AMBIGUOUS:
            names = ", ".join(c.name for c in item.candidates[:3])
            lines.append(f"  - '{item.query}' is ambiguous between: {names}")
        else:
            lines.append(f"  - '{item.query}' has no match")
    if len(pending) > 5:
        lines.append(f"  ... and {len(pending) - 5} more")
    return "\n".join(lines)


@router.post("", response_model=ResolveResponse, response_model_by_alias=True)
async def resolve_name(
    request: ResolveRequest,
    resolver: EntityResolver = Depends(get_entity_resolver),
    format: Literal["json", "text"] = Query(default="json"),
) -> ResolveResponse | PlainTextResponse:
    """Find existing nodes by name with confidence scoring.

    With format=text the result is rendered for a person instead.
    """
    result = await resolver.resolve(request.to_query())
    if format == "text":
        return PlainTextResponse(
            format_resolution_text(
                result,
                exact=request.exact,
                create_if_missing=request.create_if_missing,
                tag=request.tag,
            )
        )
    return ResolveResponse.from_resolution_result(
        result, create_if_missing=request.create_if_missing, tag=request.tag
    )


@router.post(
    "/batch", response_model=BatchResolveResponse, response_model_by_alias=True
)
async def resolve_batch(
    request: BatchResolveRequest,
    resolver: EntityResolver = Depends(get_entity_resolver),
    format: Literal["json", "csv"] = Query(default="json"),
) -> BatchResolveResponse | PlainTextResponse:
    """Resolve several names; blank lines are skipped."""
    names = [name.strip() for name in request.names if name.strip()]
    queries = [
        ResolveRequest(
            name=name,
            tag=request.tag,
            threshold=request.threshold,
            limit=request.limit,
            exact=request.exact,
            workspace=request.workspace,
        ).to_query()
        for name in names
    ]

    results = await resolver.resolve_all(queries)
    if format == "csv":
        return PlainTextResponse(format_batch_csv(results), media_type="text/csv")

    responses = [ResolveResponse.from_resolution_result(r) for r in results]
    counts = Counter(r.action.value for r in responses)

    return BatchResolveResponse(
        results=responses,
        counts={
            action.value: counts.get(action.value, 0) for action in ResolutionAction
        },
        review_summary=_generate_review_summary(responses),
    )

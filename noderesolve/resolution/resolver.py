"""EntityResolver orchestrates find-or-create entity resolution.

Resolution pipeline:
1. Normalize the query and apply the short-query guard
2. Generate name variants ("Last, First" <-> "First Last")
3. Query exact, fuzzy and semantic sources for every variant concurrently
4. Score, merge and deduplicate candidates
5. Decide matched / ambiguous / no_match

resolve() never raises. "No match" and "ambiguous" are normal outcomes,
and a failing source only removes its own contribution.
"""

import asyncio
from typing import Any

import structlog

from noderesolve.resolution.confidence import (
    EXACT_CONFIDENCE,
    calculate_fuzzy_confidence,
    levenshtein_distance,
    map_semantic_to_confidence,
)
from noderesolve.resolution.normalizer import generate_name_variants, normalize_query
from noderesolve.resolution.ranking import decide, merge_and_deduplicate
from noderesolve.resolution.schemas import (
    ExactDetails,
    FuzzyDetails,
    MatchType,
    ResolutionAction,
    ResolutionResult,
    ResolvedCandidate,
    ResolveQuery,
    SemanticDetails,
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

logger = structlog.get_logger()

MIN_QUERY_LENGTH = 3


def validate_short_query(normalized_query: str, query: ResolveQuery) -> str | None:
    """Reject short queries that have no exact flag or tag filter.

    Short strings produce pathological fuzzy and semantic false positives.

    Returns:
        None if the query may proceed, else a message for the user
    """
    if len(normalized_query) < MIN_QUERY_LENGTH and not query.exact and not query.tag:
        return (
            f"Query is too short (< {MIN_QUERY_LENGTH} characters). "
            "Use exact mode or a tag filter to narrow results."
        )
    return None


def _has_tag(tags: list[str], tag: str) -> bool:
    wanted = tag.lower()
    return any(t.lower() == wanted for t in tags)


class EntityResolver:
    """Resolves a free-text name to an existing node, if any.

    Sources are injected; only the exact source is required. Without a
    fuzzy source only exact matches are found, and without a semantic
    source every result reports embeddings_available=False.
    """

    def __init__(
        self,
        exact_source: ExactSource,
        fuzzy_source: FuzzySource | None = None,
        semantic_source: SemanticSource | None = None,
        fuzzy_candidate_limit: int = 100,
        semantic_candidate_limit: int = 20,
    ):
        """Initialize resolver with candidate sources.

        Args:
            exact_source: Case-insensitive name lookup
            fuzzy_source: Optional full-text candidate search
            semantic_source: Optional vector candidate search
            fuzzy_candidate_limit: Candidates requested per fuzzy search
            semantic_candidate_limit: Candidates requested per semantic search
        """
        self._exact = exact_source
        self._fuzzy = fuzzy_source
        self._semantic = semantic_source
        self._fuzzy_limit = fuzzy_candidate_limit
        self._semantic_limit = semantic_candidate_limit

    async def resolve(self, query: ResolveQuery) -> ResolutionResult:
        """Resolve a query to matched, ambiguous or no_match.

        Args:
            query: Query text and options

        Returns:
            ResolutionResult; never raises
        """
        try:
            return await self._resolve(query)
        except Exception as e:
            logger.error("resolution failed", query=query.text, error=str(e))
            return ResolutionResult(
                query=query.text,
                normalized_query=normalize_query(query.text),
                action=ResolutionAction.NO_MATCH,
                embeddings_available=False,
            )

    async def resolve_all(self, queries: list[ResolveQuery]) -> list[ResolutionResult]:
        """Resolve several queries.

        Args:
            queries: Queries to resolve

        Returns:
            Results in the same order as queries
        """
        return [await self.resolve(query) for query in queries]

    async def _resolve(self, query: ResolveQuery) -> ResolutionResult:
        normalized = normalize_query(query.text)

        rejection = validate_short_query(normalized, query)
        if rejection:
            logger.info("short query rejected", query=query.text, reason=rejection)
            return ResolutionResult(
                query=query.text,
                normalized_query=normalized,
                action=ResolutionAction.NO_MATCH,
                embeddings_available=False,
            )

        keys = self._variant_keys(query.text)

        exact_calls = [self._exact.lookup(key, query.tag) for key in keys]
        fuzzy_calls = []
        semantic_calls = []
        if not query.exact:
            if self._fuzzy is not None:
                fuzzy_calls = [
                    self._fuzzy.search(key, query.tag, self._fuzzy_limit)
                    for key in keys
                ]
            if self._semantic is not None:
                semantic_calls = [
                    self._semantic.search(key, self._semantic_limit) for key in keys
                ]

        results = await asyncio.gather(
            *exact_calls, *fuzzy_calls, *semantic_calls, return_exceptions=True
        )
        exact_results = results[: len(exact_calls)]
        fuzzy_results = results[len(exact_calls) : len(exact_calls) + len(fuzzy_calls)]
        semantic_results = results[len(exact_calls) + len(fuzzy_calls) :]

        candidates: list[ResolvedCandidate] = []

        for result in exact_results:
            records = self._extract_result(result, "exact", [])
            candidates.extend(self._score_exact(records))

        for key, result in zip(keys, fuzzy_results):
            hits = self._extract_result(result, "fuzzy", [])
            candidates.extend(self._score_fuzzy(key, hits, query.tag))

        embeddings_available = bool(semantic_calls)
        for result in semantic_results:
            if isinstance(result, SemanticUnavailable):
                logger.info("semantic search unavailable", reason=result.reason)
                embeddings_available = False
                continue
            hits = self._extract_result(result, "semantic", None)
            if hits is None:
                embeddings_available = False
                continue
            candidates.extend(self._score_semantic(hits, query.tag))

        merged = merge_and_deduplicate(candidates, query.limit)
        action, best_match = decide(merged, query.threshold)

        logger.debug(
            "resolved query",
            query=query.text,
            workspace=query.workspace,
            variants=len(keys),
            raw_candidates=len(candidates),
            candidates=len(merged),
            action=action.value,
            embeddings_available=embeddings_available,
        )

        return ResolutionResult(
            query=query.text,
            normalized_query=normalized,
            candidates=merged,
            best_match=best_match,
            action=action,
            embeddings_available=embeddings_available,
        )

    def _variant_keys(self, text: str) -> list[str]:
        """Normalize each name variant; drop empties and duplicates."""
        keys = (normalize_query(variant) for variant in generate_name_variants(text))
        return list(dict.fromkeys(key for key in keys if key))

    def _extract_result(self, result: Any, source_name: str, default: Any) -> Any:
        """Extract result from asyncio.gather, handling exceptions."""
        if isinstance(result, BaseException):
            logger.warning(
                "candidate source failed",
                source=source_name,
                error=str(result),
            )
            return default
        return result

    def _score_exact(self, records: list[NodeRecord]) -> list[ResolvedCandidate]:
        return [
            ResolvedCandidate(
                id=record.id,
                name=record.name,
                tags=list(record.tags),
                confidence=EXACT_CONFIDENCE,
                match_type=MatchType.EXACT,
                match_details=ExactDetails(),
            )
            for record in records
        ]

    def _score_fuzzy(
        self, key: str, hits: list[FuzzyHit], tag: str | None
    ) -> list[ResolvedCandidate]:
        scored = []
        for hit in hits:
            confidence = calculate_fuzzy_confidence(
                key,
                hit.name,
                same_tag=bool(tag) and _has_tag(hit.tags, tag),
                is_entity=hit.is_entity,
            )
            if confidence <= 0:
                continue
            scored.append(
                ResolvedCandidate(
                    id=hit.id,
                    name=hit.name,
                    tags=list(hit.tags),
                    confidence=confidence,
                    match_type=MatchType.FUZZY,
                    match_details=FuzzyDetails(
                        levenshtein_distance=levenshtein_distance(key, hit.name)
                    ),
                )
            )
        return scored

    def _score_semantic(
        self, hits: list[SemanticHit], tag: str | None
    ) -> list[ResolvedCandidate]:
        scored = []
        for hit in hits:
            if tag and not _has_tag(hit.tags, tag):
                continue
            confidence = map_semantic_to_confidence(hit.similarity)
            if confidence <= 0:
                continue
            scored.append(
                ResolvedCandidate(
                    id=hit.id,
                    name=hit.name,
                    tags=list(hit.tags),
                    confidence=confidence,
                    match_type=MatchType.SEMANTIC,
                    match_details=SemanticDetails(cosine_similarity=hit.similarity),
                )
            )
        return scored

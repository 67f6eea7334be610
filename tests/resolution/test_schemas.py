"""Tests for resolution schemas."""

import pytest
from pydantic import ValidationError

from noderesolve.resolution.schemas import (
    DEFAULT_LIMIT,
    DEFAULT_THRESHOLD,
    ExactDetails,
    FuzzyDetails,
    MatchType,
    ResolutionAction,
    ResolutionResult,
    ResolvedCandidate,
    ResolveQuery,
    SemanticDetails,
)


def test_query_defaults():
    query = ResolveQuery(text="Daniel")

    assert query.threshold == DEFAULT_THRESHOLD == 0.85
    assert query.limit == DEFAULT_LIMIT == 5
    assert query.tag is None
    assert query.exact is False


def test_query_is_immutable():
    query = ResolveQuery(text="Daniel")

    with pytest.raises(ValidationError):
        query.text = "Other"


def test_query_threshold_bounds():
    with pytest.raises(ValidationError):
        ResolveQuery(text="Daniel", threshold=1.5)


def test_candidate_rejects_mismatched_details():
    with pytest.raises(ValidationError):
        ResolvedCandidate(
            id="a",
            name="A",
            confidence=0.9,
            match_type=MatchType.EXACT,
            match_details=FuzzyDetails(levenshtein_distance=1),
        )


def test_candidate_details_parse_by_kind():
    candidate = ResolvedCandidate.model_validate(
        {
            "id": "a",
            "name": "A",
            "confidence": 0.5,
            "matchType": "semantic",
            "matchDetails": {"kind": "semantic", "cosineSimilarity": 0.76},
        }
    )

    assert isinstance(candidate.match_details, SemanticDetails)
    assert candidate.match_details.cosine_similarity == 0.76


def test_result_serializes_camel_case():
    candidate = ResolvedCandidate(
        id="a",
        name="A",
        confidence=1.0,
        match_type=MatchType.EXACT,
        match_details=ExactDetails(),
    )
    result = ResolutionResult(
        query="A",
        normalized_query="a",
        candidates=[candidate],
        best_match=candidate,
        action=ResolutionAction.MATCHED,
        embeddings_available=True,
    )

    data = result.model_dump(mode="json", by_alias=True)

    assert data["normalizedQuery"] == "a"
    assert data["bestMatch"]["matchType"] == "exact"
    assert data["embeddingsAvailable"] is True
    assert data["action"] == "matched"


def test_best_match_required_when_matched():
    with pytest.raises(ValidationError):
        ResolutionResult(
            query="A",
            normalized_query="a",
            action=ResolutionAction.MATCHED,
        )


def test_best_match_forbidden_unless_matched():
    candidate = ResolvedCandidate(
        id="a",
        name="A",
        confidence=1.0,
        match_type=MatchType.EXACT,
        match_details=ExactDetails(),
    )

    with pytest.raises(ValidationError):
        ResolutionResult(
            query="A",
            normalized_query="a",
            candidates=[candidate],
            best_match=candidate,
            action=ResolutionAction.AMBIGUOUS,
        )

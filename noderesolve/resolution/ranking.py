"""Merging candidates across strategies and deciding the outcome.

Two candidates above the threshold that are closer than AMBIGUITY_GAP
are reported as ambiguous; the resolver never picks between them.
"""

from noderesolve.resolution.schemas import ResolutionAction, ResolvedCandidate

AMBIGUITY_GAP = 0.1

# Absorbs float error so that e.g. 0.96 - 0.86 still clears the gap.
_GAP_EPSILON = 1e-9


def merge_and_deduplicate(
    candidates: list[ResolvedCandidate],
    limit: int | None = None,
) -> list[ResolvedCandidate]:
    """Combine candidates from all strategies and name variants.

    Keeps the highest-confidence entry per node id (the winner's match
    type and details are kept as-is), sorts by confidence descending and
    applies the limit. Ties keep input order.

    Args:
        candidates: Scored candidates in discovery order
        limit: Max entries to keep; None or non-positive means no limit

    Returns:
        Deduplicated, sorted candidates
    """
    by_id: dict[str, ResolvedCandidate] = {}
    for candidate in candidates:
        existing = by_id.get(candidate.id)
        if existing is None or candidate.confidence > existing.confidence:
            by_id[candidate.id] = candidate

    ranked = sorted(by_id.values(), key=lambda c: c.confidence, reverse=True)

    if limit is not None and limit > 0:
        return ranked[:limit]
    return ranked


def determine_action(
    candidates: list[ResolvedCandidate],
    threshold: float,
) -> ResolutionAction:
    """Classify merged candidates against a confidence threshold.

    - none above threshold: NO_MATCH
    - exactly one: MATCHED
    - several: MATCHED if the top two are at least 0.1 apart, else AMBIGUOUS

    Args:
        candidates: Merged candidates, confidence descending
        threshold: Minimum confidence for a candidate to count

    Returns:
        The resolution action
    """
    above = [c for c in candidates if c.confidence >= threshold]

    if not above:
        return ResolutionAction.NO_MATCH
    if len(above) == 1:
        return ResolutionAction.MATCHED

    first, second = above[0], above[1]
    if first.confidence - second.confidence >= AMBIGUITY_GAP - _GAP_EPSILON:
        return ResolutionAction.MATCHED
    return ResolutionAction.AMBIGUOUS


def decide(
    candidates: list[ResolvedCandidate],
    threshold: float,
) -> tuple[ResolutionAction, ResolvedCandidate | None]:
    """Determine the action and, when matched, the best match."""
    action = determine_action(candidates, threshold)
    if action == ResolutionAction.MATCHED:
        return action, candidates[0]
    return action, None

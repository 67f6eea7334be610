"""Plain-text and CSV rendering of resolution results.

Used by the API for create suggestions and for its text and CSV output
formats, when a resolution is shown to a person rather than an agent.
"""

import csv
from io import StringIO

from noderesolve.resolution.schemas import (
    MatchType,
    ResolutionAction,
    ResolutionResult,
)

ACTION_ICONS = {
    ResolutionAction.MATCHED: "✅",
    ResolutionAction.AMBIGUOUS: "⚠️",
    ResolutionAction.NO_MATCH: "❌",
}

MATCH_ICONS = {
    MatchType.EXACT: "🎯",
    MatchType.FUZZY: "🔍",
    MatchType.SEMANTIC: "🧠",
}


def create_suggestion(
    result: ResolutionResult, name: str, tag: str | None
) -> str | None:
    """Suggest what to do when the caller would create a missing node.

    Returns:
        A hint for no_match with a tag, a refusal for ambiguous, else None
    """
    if result.action == ResolutionAction.NO_MATCH and tag:
        return f'Create a node tagged "{tag}" named "{name}"'
    if result.action == ResolutionAction.AMBIGUOUS:
        return (
            "Ambiguous match - cannot auto-create. "
            "Use a tag filter to narrow candidates."
        )
    return None


def format_resolution_text(
    result: ResolutionResult,
    *,
    exact: bool = False,
    create_if_missing: bool = False,
    tag: str | None = None,
) -> str:
    """Render a resolution result as human-readable lines.

    Args:
        result: Resolution to render
        exact: Query ran in exact mode (suppresses the embeddings notice)
        create_if_missing: Add create/refuse hints
        tag: Tag filter used, for the create hint

    Returns:
        Multi-line text
    """
    lines = [
        f'{ACTION_ICONS[result.action]} {result.action.value.upper()}: "{result.query}"'
    ]

    if not result.embeddings_available and not exact:
        lines.append("  ℹ️  Semantic search unavailable (no embeddings)")

    if not result.candidates:
        lines.append("  No matches found.")
        if create_if_missing:
            suggestion = create_suggestion(result, result.query, tag)
            if suggestion:
                lines.append(f"  💡 {suggestion}")
        return "\n".join(lines)

    for c in result.candidates:
        tag_str = f" [{' '.join(f'#{t}' for t in c.tags)}]" if c.tags else ""
        lines.append(
            f"  {MATCH_ICONS[c.match_type]} {c.confidence * 100:.1f}% "
            f"{c.name}{tag_str}  ({c.id})"
        )

    if result.action == ResolutionAction.AMBIGUOUS and create_if_missing:
        lines.append(
            "  ⚠️  Ambiguous match - refusing to create. "
            "Narrow with a tag or threshold."
        )

    return "\n".join(lines)


def format_batch_csv(results: list[ResolutionResult]) -> str:
    """Render batch results as CSV, one row per query.

    Columns: query, action, best_match_id, best_match_name, confidence,
    match_type. Unmatched queries leave the best-match columns empty.
    Rows use CRLF line endings; fields are quoted by the csv module.
    """
    output = StringIO()
    writer = csv.writer(output)

    writer.writerow(
        [
            "query",
            "action",
            "best_match_id",
            "best_match_name",
            "confidence",
            "match_type",
        ]
    )

    for r in results:
        bm = r.best_match
        writer.writerow(
            [
                r.query,
                r.action.value,
                bm.id if bm else "",
                bm.name if bm else "",
                f"{bm.confidence:.3f}" if bm else "",
                bm.match_type.value if bm else "",
            ]
        )

    return output.getvalue()

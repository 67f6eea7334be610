"""Full-text candidate search over node names.

Provides FTS5 MATCH queries with escaping, a LIKE fallback, and the
per-node tag and entity data the resolver needs to score candidates.
"""

import re

import structlog

from noderesolve.db.turso import TursoClient
from noderesolve.repositories.node_repo import NodeRepository, is_entity_flagged
from noderesolve.resolution.sources import FuzzyHit

logger = structlog.get_logger()

# FTS5 syntax characters. Apostrophe and comma are not valid in FTS5
# barewords either, so names like "o'brien" must be quoted.
FTS5_SPECIAL_CHARS = frozenset("\"*^():-+',")
_FTS5_OPERATORS = re.compile(r"\b(AND|OR|NOT|NEAR)\b", re.IGNORECASE)


def escape_fts5_query(query: str) -> str:
    """Escape special characters in FTS5 query.

    Wraps the whole term in double quotes when it contains FTS5 syntax
    characters or operator words, doubling any internal double quotes,
    so a name like "Jens-Christian" or "Tom and Jerry" is matched
    literally instead of as an expression.

    Args:
        query: Raw query string

    Returns:
        Escaped query safe for FTS5 MATCH

    Example:
        >>> escape_fts5_query("Jens-Christian")
        '"Jens-Christian"'
    """
    if any(char in FTS5_SPECIAL_CHARS for char in query):
        return '"' + query.replace('"', '""') + '"'

    if _FTS5_OPERATORS.search(query):
        return f'"{query}"'

    return query


class NodeSearchService:
    """Fuzzy candidate source using the nodes_fts FTS5 index.

    Returns a superset of plausible candidates; confidence is computed
    by the resolver. Backend errors degrade to an empty list.
    """

    def __init__(self, db_client: TursoClient, node_repo: NodeRepository):
        """Initialize search service.

        Args:
            db_client: TursoClient instance for database operations
            node_repo: Repository used to attach tags to hits
        """
        self._db = db_client
        self._nodes = node_repo

    async def search(
        self, query: str, tag: str | None = None, limit: int = 100
    ) -> list[FuzzyHit]:
        """Search node names for fuzzy-match candidates.

        Tries FTS5 first; falls back to a LIKE scan when FTS5 rejects the
        query or finds nothing.

        Args:
            query: Normalized name variant (unescaped)
            tag: Optional tag the node must carry (case-insensitive)
            limit: Maximum candidates

        Returns:
            Candidate hits with tags and entity flag
        """
        if not query.strip():
            return []

        try:
            rows = await self._fts_search(escape_fts5_query(query), tag, limit)
        except Exception as e:
            logger.debug(
                "fts search failed, using like fallback", query=query, error=str(e)
            )
            rows = []

        try:
            if not rows:
                rows = await self._like_search(query, tag, limit)
            tags_by_id = await self._nodes.get_tags_for(
                [node_id for node_id, _, _ in rows]
            )
        except Exception as e:
            logger.warning("fuzzy candidate search failed", query=query, error=str(e))
            return []

        return [
            FuzzyHit(
                id=node_id,
                name=name,
                tags=tags_by_id.get(node_id, []),
                is_entity=is_entity_flagged(raw_data),
            )
            for node_id, name, raw_data in rows
        ]

    async def _fts_search(
        self, escaped_query: str, tag: str | None, limit: int
    ) -> list[tuple[str, str, str | None]]:
        """Search nodes_fts with an already escaped MATCH expression."""
        if tag:
            sql = """
                SELECT DISTINCT n.id, n.name, n.raw_data
                FROM nodes n
                JOIN nodes_fts ON nodes_fts.rowid = n.rowid
                JOIN tag_applications ta ON n.id = ta.data_node_id
                WHERE nodes_fts MATCH ? AND LOWER(ta.tag_name) = LOWER(?)
                LIMIT ?
            """
            params: list = [escaped_query, tag, limit]
        else:
            sql = """
                SELECT n.id, n.name, n.raw_data
                FROM nodes n
                JOIN nodes_fts ON nodes_fts.rowid = n.rowid
                WHERE nodes_fts MATCH ?
                LIMIT ?
            """
            params = [escaped_query, limit]

        result = await self._db.execute(sql, params)
        return self._rows(result.rows)

    async def _like_search(
        self, query: str, tag: str | None, limit: int
    ) -> list[tuple[str, str, str | None]]:
        """Substring scan for queries FTS5 cannot serve."""
        pattern = f"%{query}%"
        if tag:
            sql = """
                SELECT DISTINCT n.id, n.name, n.raw_data
                FROM nodes n
                JOIN tag_applications ta ON n.id = ta.data_node_id
                WHERE n.name LIKE ? AND LOWER(ta.tag_name) = LOWER(?)
                LIMIT ?
            """
            params: list = [pattern, tag, limit]
        else:
            sql = """
                SELECT id, name, raw_data FROM nodes
                WHERE name LIKE ?
                LIMIT ?
            """
            params = [pattern, limit]

        result = await self._db.execute(sql, params)
        return self._rows(result.rows)

    def _rows(self, rows) -> list[tuple[str, str, str | None]]:
        return [(str(row[0]), row[1], row[2]) for row in rows if row[1] is not None]

"""Repository for knowledge-graph nodes and their tags.

Serves case-insensitive exact name lookups for entity resolution and
owns the node store schema (nodes, tag applications, FTS5 name index,
node embeddings). Uses SQLite (via TursoClient) for persistence.
"""

import json
import logging

from noderesolve.db.turso import TursoClient
from noderesolve.resolution.sources import NodeRecord

logger = logging.getLogger(__name__)

# Bit in raw_data.props._flags marking a node as a real-world entity
ENTITY_FLAG = 0x1


def is_entity_flagged(raw_data: str | None) -> bool:
    """Read the entity bit from a node's raw JSON payload.

    Args:
        raw_data: JSON text stored with the node (may be None or invalid)

    Returns:
        True if props._flags has the entity bit set
    """
    if not raw_data:
        return False
    try:
        payload = json.loads(raw_data)
    except json.JSONDecodeError:
        return False
    if not isinstance(payload, dict):
        return False
    props = payload.get("props")
    if not isinstance(props, dict):
        return False
    flags = props.get("_flags")
    return isinstance(flags, int) and bool(flags & ENTITY_FLAG)


class NodeRepository:
    """Repository for nodes, tags and node embeddings.

    Implements the exact candidate source used by EntityResolver.
    Resolution itself only reads; initialize(), add_node() and
    save_embedding() are for the store owner (indexers, tests).
    """

    def __init__(self, db_client: TursoClient, exact_limit: int = 50):
        """Initialize repository with database client.

        Args:
            db_client: TursoClient instance for database operations
            exact_limit: Max rows returned by an exact lookup
        """
        self._db = db_client
        self._exact_limit = exact_limit

    async def initialize(self) -> None:
        """Create node tables, FTS5 index and sync triggers if not exists.

        FTS5 statements run through individual execute() calls; they fail
        inside execute_batch().
        """
        await self._db.execute_batch(
            [
                """
            CREATE TABLE IF NOT EXISTS nodes (
                rowid INTEGER PRIMARY KEY AUTOINCREMENT,
                id TEXT UNIQUE NOT NULL,
                name TEXT,
                created TEXT DEFAULT CURRENT_TIMESTAMP,
                raw_data TEXT DEFAULT '{}'
            )
            """,
                """
            CREATE TABLE IF NOT EXISTS tag_applications (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                data_node_id TEXT NOT NULL,
                tag_name TEXT NOT NULL,
                UNIQUE(data_node_id, tag_name)
            )
            """,
                """
            CREATE INDEX IF NOT EXISTS idx_tag_applications_node
            ON tag_applications(data_node_id)
            """,
                """
            CREATE INDEX IF NOT EXISTS idx_nodes_name_lower
            ON nodes(LOWER(name))
            """,
                """
            CREATE TABLE IF NOT EXISTS node_embeddings (
                node_id TEXT PRIMARY KEY,
                vector TEXT NOT NULL
            )
            """,
            ]
        )

        # Name index kept in sync with nodes by triggers
        await self._db.execute("""
            CREATE VIRTUAL TABLE IF NOT EXISTS nodes_fts USING fts5(
                name,
                content='nodes',
                content_rowid='rowid',
                tokenize='unicode61'
            )
        """)

        await self._db.execute("""
            CREATE TRIGGER IF NOT EXISTS nodes_ai
            AFTER INSERT ON nodes
            BEGIN
                INSERT INTO nodes_fts(rowid, name) VALUES (new.rowid, new.name);
            END
        """)

        await self._db.execute("""
            CREATE TRIGGER IF NOT EXISTS nodes_ad
            AFTER DELETE ON nodes
            BEGIN
                INSERT INTO nodes_fts(nodes_fts, rowid, name)
                VALUES ('delete', old.rowid, old.name);
            END
        """)

        await self._db.execute("""
            CREATE TRIGGER IF NOT EXISTS nodes_au
            AFTER UPDATE ON nodes
            BEGIN
                INSERT INTO nodes_fts(nodes_fts, rowid, name)
                VALUES ('delete', old.rowid, old.name);
                INSERT INTO nodes_fts(rowid, name) VALUES (new.rowid, new.name);
            END
        """)

    async def add_node(
        self,
        node_id: str,
        name: str,
        tags: list[str] | None = None,
        is_entity: bool = False,
    ) -> None:
        """Insert a node with its tags.

        Args:
            node_id: Store identifier (unique)
            name: Display name
            tags: Tag names to apply
            is_entity: Set the entity bit in raw_data
        """
        raw_data = json.dumps({"props": {"_flags": ENTITY_FLAG if is_entity else 0}})
        await self._db.execute(
            "INSERT INTO nodes (id, name, raw_data) VALUES (?, ?, ?)",
            [node_id, name, raw_data],
        )
        for tag in tags or []:
            await self._db.execute(
                """
                INSERT OR IGNORE INTO tag_applications (data_node_id, tag_name)
                VALUES (?, ?)
                """,
                [node_id, tag],
            )

    async def save_embedding(self, node_id: str, vector: list[float]) -> None:
        """Store (or replace) the embedding vector for a node."""
        await self._db.execute(
            """
            INSERT INTO node_embeddings (node_id, vector) VALUES (?, ?)
            ON CONFLICT(node_id) DO UPDATE SET vector = excluded.vector
            """,
            [node_id, json.dumps(vector)],
        )

    async def lookup(self, name: str, tag: str | None = None) -> list[NodeRecord]:
        """Find nodes whose name equals `name`, ignoring case.

        Args:
            name: Name to match
            tag: Optional tag the node must carry (case-insensitive)

        Returns:
            Matching nodes with all their tags
        """
        if tag:
            sql = """
                SELECT DISTINCT n.id, n.name
                FROM nodes n
                JOIN tag_applications ta ON n.id = ta.data_node_id
                WHERE LOWER(n.name) = LOWER(?) AND LOWER(ta.tag_name) = LOWER(?)
                LIMIT ?
            """
            params: list = [name, tag, self._exact_limit]
        else:
            sql = """
                SELECT id, name FROM nodes
                WHERE LOWER(name) = LOWER(?)
                LIMIT ?
            """
            params = [name, self._exact_limit]

        result = await self._db.execute(sql, params)
        rows = [(str(row[0]), row[1]) for row in result.rows if row[1] is not None]
        tags_by_id = await self.get_tags_for([node_id for node_id, _ in rows])

        return [
            NodeRecord(id=node_id, name=node_name, tags=tags_by_id.get(node_id, []))
            for node_id, node_name in rows
        ]

    async def get_tags(self, node_id: str) -> list[str]:
        """Get all tag names applied to a node.

        Returns an empty list if the tags cannot be read.
        """
        tags = await self.get_tags_for([node_id])
        return tags.get(node_id, [])

    async def get_tags_for(self, node_ids: list[str]) -> dict[str, list[str]]:
        """Get tag names for several nodes in one query.

        Args:
            node_ids: Node identifiers

        Returns:
            Mapping of node id -> tag names (nodes without tags are absent)
        """
        if not node_ids:
            return {}

        placeholders = ", ".join("?" for _ in node_ids)
        try:
            result = await self._db.execute(
                f"""
                SELECT data_node_id, tag_name
                FROM tag_applications
                WHERE data_node_id IN ({placeholders})
                ORDER BY id
                """,
                list(node_ids),
            )
        except Exception as e:
            logger.warning(f"Tag lookup failed for {len(node_ids)} node(s): {e}")
            return {}

        tags: dict[str, list[str]] = {}
        for row in result.rows:
            tags.setdefault(str(row[0]), []).append(row[1])
        return tags

    async def is_entity(self, node_id: str) -> bool:
        """Check whether the store flags a node as an entity."""
        result = await self._db.execute(
            "SELECT raw_data FROM nodes WHERE id = ?",
            [node_id],
        )
        if not result.rows:
            return False
        return is_entity_flagged(result.rows[0][0])

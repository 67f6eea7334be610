"""Tests for NodeRepository."""

import json

import pytest

from noderesolve.repositories.node_repo import NodeRepository, is_entity_flagged


class TestIsEntityFlagged:
    @pytest.mark.parametrize(
        "raw_data,expected",
        [
            ('{"props": {"_flags": 1}}', True),
            ('{"props": {"_flags": 3}}', True),
            ('{"props": {"_flags": 2}}', False),
            ('{"props": {}}', False),
            ("{}", False),
            ("not json", False),
            ("[1, 2]", False),
            (None, False),
            ("", False),
        ],
    )
    def test_reads_entity_bit(self, raw_data, expected):
        assert is_entity_flagged(raw_data) is expected


class TestNodeRepository:
    async def test_initialize_is_idempotent(self, node_repo: NodeRepository):
        await node_repo.initialize()
        await node_repo.add_node("n1", "Alice")

        assert [r.id for r in await node_repo.lookup("alice")] == ["n1"]

    async def test_lookup_ignores_case(self, seeded_repo: NodeRepository):
        records = await seeded_repo.lookup("PROJECT ALPHA")

        assert len(records) == 1
        assert records[0].id == "node-3"
        assert records[0].name == "Project Alpha"
        assert records[0].tags == ["project"]

    async def test_lookup_returns_all_same_name_nodes(
        self, seeded_repo: NodeRepository
    ):
        records = await seeded_repo.lookup("daniel miessler")

        assert {r.id for r in records} == {"node-1", "node-4"}

    async def test_lookup_with_tag(self, seeded_repo: NodeRepository):
        records = await seeded_repo.lookup("daniel miessler", tag="Person")

        assert [r.id for r in records] == ["node-1"]

    async def test_lookup_is_full_name_only(self, seeded_repo: NodeRepository):
        assert await seeded_repo.lookup("daniel") == []

    async def test_lookup_respects_limit(self, db_client):
        repo = NodeRepository(db_client, exact_limit=2)
        await repo.initialize()
        for i in range(4):
            await repo.add_node(f"n{i}", "Same Name")

        assert len(await repo.lookup("same name")) == 2

    async def test_get_tags(self, node_repo: NodeRepository):
        await node_repo.add_node("n1", "Alice", tags=["person", "team", "person"])

        assert await node_repo.get_tags("n1") == ["person", "team"]
        assert await node_repo.get_tags("missing") == []

    async def test_get_tags_for_several_nodes(self, seeded_repo: NodeRepository):
        tags = await seeded_repo.get_tags_for(["node-1", "node-3", "node-6"])

        assert tags == {"node-1": ["person"], "node-3": ["project"]}
        assert await seeded_repo.get_tags_for([]) == {}

    async def test_is_entity(self, seeded_repo: NodeRepository):
        assert await seeded_repo.is_entity("node-1") is True
        assert await seeded_repo.is_entity("node-5") is False
        assert await seeded_repo.is_entity("missing") is False

    async def test_save_embedding_replaces_vector(
        self, db_client, node_repo: NodeRepository
    ):
        await node_repo.add_node("n1", "Alice")
        await node_repo.save_embedding("n1", [0.1, 0.2])
        await node_repo.save_embedding("n1", [0.3, 0.4])

        result = await db_client.execute(
            "SELECT vector FROM node_embeddings WHERE node_id = ?", ["n1"]
        )

        assert len(result.rows) == 1
        assert json.loads(result.rows[0][0]) == [0.3, 0.4]

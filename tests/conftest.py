"""Pytest configuration and fixtures."""

from collections.abc import AsyncIterator
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

from noderesolve.db.turso import TursoClient
from noderesolve.main import app, build_resolver
from noderesolve.repositories.node_repo import NodeRepository


@pytest.fixture
async def db_client(tmp_path: Path) -> AsyncIterator[TursoClient]:
    """Create a temp file database client for testing."""
    db_path = tmp_path / "test_nodes.db"
    client = TursoClient(url=f"file:{db_path}")
    await client.connect()
    yield client
    await client.close()


@pytest.fixture
async def node_repo(db_client: TursoClient) -> NodeRepository:
    """Node repository with schema created."""
    repo = NodeRepository(db_client)
    await repo.initialize()
    return repo


@pytest.fixture
async def seeded_repo(node_repo: NodeRepository) -> NodeRepository:
    """Seed the store with a small knowledge graph.

    "Daniel Miessler" exists twice: once as a person, once as a project.
    """
    nodes = [
        ("node-1", "Daniel Miessler", ["person"], True),
        ("node-2", "Daniel Fischer", ["person"], True),
        ("node-3", "Project Alpha", ["project"], True),
        ("node-4", "Daniel Miessler", ["project"], True),
        ("node-5", "Meeting Notes", ["meeting"], False),
        ("node-6", "AB", [], True),
        ("node-7", "Jens-Christian Fischer", ["person"], True),
    ]
    for node_id, name, tags, is_entity in nodes:
        await node_repo.add_node(node_id, name, tags=tags, is_entity=is_entity)
    return node_repo


@pytest.fixture
async def client(
    db_client: TursoClient, seeded_repo: NodeRepository
) -> AsyncIterator[AsyncClient]:
    """Create async test client for FastAPI app backed by the seeded store."""
    app.state.db = db_client
    app.state.node_repo = seeded_repo
    app.state.embedder = None
    app.state.entity_resolver = build_resolver(db_client, seeded_repo)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    # Clean up app state
    del app.state.db
    del app.state.node_repo
    del app.state.embedder
    del app.state.entity_resolver

"""Tests for API endpoints."""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient) -> None:
    """Test basic health check endpoint."""
    response = await client.get("/health/")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["service"] == "Node Resolve"
    assert "timestamp" in data
    assert data["version"] == "0.1.0"


@pytest.mark.asyncio
async def test_liveness(client: AsyncClient) -> None:
    """Test liveness probe endpoint."""
    response = await client.get("/health/live")
    assert response.status_code == 200
    assert response.json()["status"] == "alive"


@pytest.mark.asyncio
async def test_readiness(client: AsyncClient) -> None:
    """Readiness needs the node store; embeddings are informational."""
    response = await client.get("/health/ready")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ready"
    assert data["checks"]["resolver"] == "ok"
    assert data["checks"]["database"] == "ok"
    assert data["checks"]["embeddings"] == "not_configured"


@pytest.mark.asyncio
async def test_resolve_against_store(client: AsyncClient) -> None:
    """POST /resolve runs the real pipeline over the seeded store."""
    response = await client.post(
        "/resolve", json={"name": "Daniel Miessler", "tag": "person"}
    )
    assert response.status_code == 200
    data = response.json()
    assert data["action"] == "matched"
    assert data["bestMatch"]["id"] == "node-1"
    assert data["embeddingsAvailable"] is False


@pytest.mark.asyncio
async def test_batch_against_store(client: AsyncClient) -> None:
    response = await client.post(
        "/resolve/batch",
        json={"names": ["Project Alpha", "Daniel Miessler", "Nobody Here"]},
    )
    assert response.status_code == 200
    data = response.json()
    assert [r["action"] for r in data["results"]] == [
        "matched",
        "ambiguous",
        "no_match",
    ]
    assert data["counts"] == {"matched": 1, "ambiguous": 1, "no_match": 1}

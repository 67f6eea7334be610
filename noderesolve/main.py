"""FastAPI application entry point."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from noderesolve.api.router import api_router
from noderesolve.config import settings
from noderesolve.db.turso import TursoClient
from noderesolve.repositories.node_repo import NodeRepository
from noderesolve.resolution.resolver import EntityResolver
from noderesolve.search.fts_service import NodeSearchService
from noderesolve.search.semantic import Embedder, EmbeddingSearchService

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
structlog.configure(
    wrapper_class=structlog.make_filtering_bound_logger(
        getattr(logging, settings.log_level.upper())
    ),
)
logger = logging.getLogger(__name__)


def build_resolver(
    db: TursoClient,
    node_repo: NodeRepository,
    embedder: Embedder | None = None,
) -> EntityResolver:
    """Wire the candidate sources into an EntityResolver.

    Args:
        db: Connected node store client
        node_repo: Node repository (exact source)
        embedder: Optional query embedder enabling semantic search

    Returns:
        Ready-to-use resolver
    """
    return EntityResolver(
        exact_source=node_repo,
        fuzzy_source=NodeSearchService(db, node_repo),
        semantic_source=EmbeddingSearchService(db, node_repo, embedder),
        fuzzy_candidate_limit=settings.fuzzy_candidate_limit,
        semantic_candidate_limit=settings.semantic_candidate_limit,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan management.

    Startup:
    - Connect to the node store and ensure its schema exists
    - Build the entity resolver (semantic search only if an embedder
      was placed on app.state.embedder before startup)

    Shutdown:
    - Close the node store connection
    """
    logger.info(f"Starting {settings.app_name}...")

    db = TursoClient()
    await db.connect()
    app.state.db = db
    logger.info(f"Database connected: {db.url}")

    node_repo = NodeRepository(db, exact_limit=settings.exact_candidate_limit)
    await node_repo.initialize()
    app.state.node_repo = node_repo

    embedder = getattr(app.state, "embedder", None)
    app.state.embedder = embedder
    app.state.entity_resolver = build_resolver(db, node_repo, embedder)
    logger.info(
        "Entity resolver initialized "
        f"(semantic search {'enabled' if embedder else 'disabled'})"
    )

    yield

    logger.info(f"Shutting down {settings.app_name}...")
    await db.close()


app = FastAPI(
    title=settings.app_name,
    description="Find-or-create entity resolution for knowledge-graph nodes",
    version=settings.app_version,
    lifespan=lifespan,
)

app.include_router(api_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "noderesolve.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )

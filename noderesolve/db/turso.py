"""Turso/libSQL database client wrapper for the node store."""

import logging
from typing import Any

from libsql_client import Client, ResultSet, create_client
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from noderesolve.config import settings

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised when the node store cannot serve a request."""

    pass


class StoreNotConnectedError(StoreError):
    """Raised when a statement is issued before connect()."""

    pass


def is_transient_error(error: BaseException) -> bool:
    """True for lock/busy errors worth retrying (SQLITE_BUSY, SQLITE_LOCKED)."""
    message = str(error).lower()
    return "database is locked" in message or "busy" in message


class TursoClient:
    """Wrapper for Turso/libSQL async client.

    Supports both cloud Turso (with auth token) and local SQLite files.
    The caller owns the handle: connect() before use, close() when done.
    """

    def __init__(
        self,
        url: str | None = None,
        auth_token: str | None = None,
        retry_attempts: int | None = None,
    ):
        """Initialize client with connection parameters.

        Args:
            url: Database URL. Defaults to settings.
            auth_token: Auth token for Turso cloud. Defaults to settings.
            retry_attempts: Attempts for statements hitting a locked database
        """
        self.url = url or settings.database_url
        self.auth_token = auth_token or settings.database_auth_token
        self._retry_attempts = retry_attempts or settings.db_retry_attempts
        self._client: Client | None = None

    async def connect(self) -> None:
        """Establish database connection."""
        if self._client is not None:
            return

        if self.auth_token and self.url.startswith("libsql://"):
            # Cloud Turso
            self._client = create_client(
                url=self.url,
                auth_token=self.auth_token,
            )
        else:
            # Local file database
            self._client = create_client(url=self.url)

        logger.info(f"Connected to node store: {self.url}")

    async def execute(
        self,
        sql: str,
        params: list[Any] | None = None,
    ) -> ResultSet:
        """Execute a SQL statement, retrying transient lock errors.

        Args:
            sql: SQL query with ? placeholders
            params: Query parameters

        Returns:
            ResultSet with rows and metadata

        Raises:
            StoreNotConnectedError: If connect() was not called
        """
        client = self._require_client()
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._retry_attempts),
            wait=wait_exponential(multiplier=0.05, max=1),
            retry=retry_if_exception(is_transient_error),
            reraise=True,
        ):
            with attempt:
                return await client.execute(sql, params or [])
        raise StoreError("retry loop ended without a result")

    async def execute_batch(self, statements: list[str]) -> None:
        """Execute multiple SQL statements in a batch.

        Args:
            statements: List of SQL statements
        """
        await self._require_client().batch(statements)

    async def close(self) -> None:
        """Close the database connection."""
        if self._client:
            await self._client.close()
            self._client = None
            logger.info("Node store connection closed")

    async def is_healthy(self) -> bool:
        """Check if database connection is healthy."""
        try:
            if not self._client:
                return False
            result = await self._client.execute("SELECT 1")
            return len(result.rows) == 1
        except Exception:
            return False

    def _require_client(self) -> Client:
        if not self._client:
            msg = "Not connected. Call connect() first."
            raise StoreNotConnectedError(msg)
        return self._client

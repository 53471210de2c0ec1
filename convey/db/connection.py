"""
MongoDB async connection module using Motor.

Provides connection management, health checks, and store access.
"""

import asyncio

import structlog
from motor.motor_asyncio import AsyncIOMotorClient

from convey.config.settings import Settings, get_settings
from convey.db.motor_store import MotorDocumentStore

logger = structlog.get_logger(__name__)


class DatabaseConnection:
    """
    Manages MongoDB connection lifecycle using Motor async driver.

    Usage:
        conn = DatabaseConnection()
        await conn.connect()
        store = conn.store
        # ... use store
        await conn.disconnect()

    Or as context manager:
        async with DatabaseConnection() as store:
            # ... use store
    """

    def __init__(self, settings: Settings | None = None, uri: str | None = None) -> None:
        self.settings = settings or get_settings()
        self._uri = uri
        self._client: AsyncIOMotorClient | None = None
        self._store: MotorDocumentStore | None = None
        self._lock = asyncio.Lock()

    @property
    def uri(self) -> str:
        return self._uri or self.settings.mongo.uri

    @property
    def client(self) -> AsyncIOMotorClient:
        """Get the Motor client instance."""
        if self._client is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._client

    @property
    def store(self) -> MotorDocumentStore:
        """Get the document store."""
        if self._store is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._store

    async def connect(self) -> None:
        """
        Establish connection to MongoDB.

        Safe to call twice: uses lock to prevent multiple simultaneous connections.
        """
        async with self._lock:
            if self._client is not None:
                logger.debug("Already connected to MongoDB")
                return

            mongo_settings = self.settings.mongo

            logger.info(
                "Connecting to MongoDB",
                host=mongo_settings.host,
                port=mongo_settings.port,
            )

            try:
                self._client = AsyncIOMotorClient(
                    self.uri,
                    minPoolSize=mongo_settings.min_pool_size,
                    maxPoolSize=mongo_settings.max_pool_size,
                    connectTimeoutMS=mongo_settings.connect_timeout_ms,
                    serverSelectionTimeoutMS=mongo_settings.server_selection_timeout_ms,
                )

                # Verify connection with ping
                await self._client.admin.command("ping")

                self._store = MotorDocumentStore(
                    self._client,
                    collection_name=self.settings.convey.documents_collection,
                )

                logger.info("Successfully connected to MongoDB")

            except Exception as e:
                logger.error("Failed to connect to MongoDB", error=str(e))
                if self._client is not None:
                    self._client.close()
                self._client = None
                self._store = None
                raise

    async def disconnect(self) -> None:
        """Close the MongoDB connection."""
        async with self._lock:
            if self._client is None:
                logger.debug("No active MongoDB connection to close")
                return

            logger.info("Disconnecting from MongoDB")
            self._client.close()
            self._client = None
            self._store = None

    async def health_check(self) -> dict:
        """
        Perform a health check on the database connection.

        Returns:
            dict with status and latency information
        """
        try:
            if self._client is None:
                return {
                    "status": "disconnected",
                    "healthy": False,
                    "error": "No active connection",
                }

            loop = asyncio.get_running_loop()
            start = loop.time()
            await self._client.admin.command("ping")
            latency_ms = (loop.time() - start) * 1000

            server_info = await self._client.server_info()

            return {
                "status": "connected",
                "healthy": True,
                "latency_ms": round(latency_ms, 2),
                "server_version": server_info.get("version", "unknown"),
            }

        except Exception as e:
            logger.error("Health check failed", error=str(e))
            return {
                "status": "error",
                "healthy": False,
                "error": str(e),
            }

    async def __aenter__(self) -> MotorDocumentStore:
        """Async context manager entry."""
        await self.connect()
        return self.store

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.disconnect()

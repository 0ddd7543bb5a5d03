"""
MongoDB connection management for the library API.
Handles connection bootstrapping, indexing and health reporting for the
books and borrows collections.
"""

import asyncio
from typing import Any, Dict, Optional

import structlog
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from library.errors import StorageConnectionError

logger = structlog.get_logger(__name__)


class MongoDBManager:
    """
    Async MongoDB manager owning the client and both collections.
    """

    def __init__(
        self,
        connection_url: Optional[str],
        database_name: str,
        books_collection: str = "books",
        borrows_collection: str = "borrows",
        server_selection_timeout_ms: int = 5000,
        socket_timeout_ms: int = 45000,
    ):
        """
        Initialize MongoDB manager.

        Args:
            connection_url: MongoDB connection URL
            database_name: Name of the database
            books_collection: Name of the books collection
            borrows_collection: Name of the borrows collection
            server_selection_timeout_ms: Connection-establishment timeout
            socket_timeout_ms: Idle-socket timeout
        """
        self.connection_url = connection_url
        self.database_name = database_name
        self.books_collection_name = books_collection
        self.borrows_collection_name = borrows_collection
        self.server_selection_timeout_ms = server_selection_timeout_ms
        self.socket_timeout_ms = socket_timeout_ms
        self.client: Optional[AsyncIOMotorClient] = None
        self.database: Optional[AsyncIOMotorDatabase] = None
        self.books: Optional[AsyncIOMotorCollection] = None
        self.borrows: Optional[AsyncIOMotorCollection] = None
        self._connect_lock = asyncio.Lock()

    @classmethod
    def from_config(cls, config) -> "MongoDBManager":
        return cls(
            connection_url=config.mongodb_uri,
            database_name=config.mongodb_database,
            books_collection=config.books_collection,
            borrows_collection=config.borrows_collection,
            server_selection_timeout_ms=config.server_selection_timeout_ms,
            socket_timeout_ms=config.socket_timeout_ms,
        )

    @property
    def is_connected(self) -> bool:
        return self.client is not None

    async def connect(self) -> None:
        """
        Establish connection to MongoDB and create indexes.

        Raises:
            StorageConnectionError: If the URI is missing or the server is unreachable
        """
        if not self.connection_url:
            logger.error("MongoDB connection URI is not configured")
            raise StorageConnectionError("MONGODB_URI is not defined in environment")

        client = AsyncIOMotorClient(
            self.connection_url,
            serverSelectionTimeoutMS=self.server_selection_timeout_ms,
            socketTimeoutMS=self.socket_timeout_ms,
        )
        try:
            await client.admin.command('ping')
            database = client[self.database_name]
            self.books = database[self.books_collection_name]
            self.borrows = database[self.borrows_collection_name]
            self.database = database
            await self._create_indexes()
        except PyMongoError as e:
            client.close()
            self.database = self.books = self.borrows = None
            logger.error("Failed to connect to MongoDB", error=str(e))
            raise StorageConnectionError(str(e))

        self.client = client
        logger.info("Successfully connected to MongoDB", database=self.database_name)

    async def ensure_connected(self) -> None:
        """Connect on first use; later calls are no-ops."""
        if self.is_connected:
            return
        async with self._connect_lock:
            if not self.is_connected:
                await self.connect()

    async def disconnect(self) -> None:
        """Close MongoDB connection."""
        if self.client:
            self.client.close()
            self.client = None
            logger.info("Disconnected from MongoDB")

    async def _create_indexes(self) -> None:
        """Create the unique ISBN index plus the indexes used by listing and summary."""
        await self.books.create_index("isbn", unique=True)
        await self.books.create_index("genre")
        await self.books.create_index("createdAt")
        await self.borrows.create_index("book")
        logger.info("Successfully created MongoDB indexes")

    async def health_check(self) -> Dict[str, Any]:
        """
        Perform database health check.

        Returns:
            Dictionary with health status
        """
        if not self.is_connected:
            return {"status": "disconnected"}
        try:
            await self.database.command("ping")
            return {
                "status": "connected",
                "books_count": await self.books.count_documents({}),
                "borrows_count": await self.borrows.count_documents({}),
            }
        except PyMongoError as e:
            logger.error("Database health check failed", error=str(e))
            return {"status": "unhealthy", "error": str(e)}

"""
MongoDB connection and session management.
Wraps the pymongo async client behind a small gateway with an explicit
connect/disconnect lifecycle and a transaction helper.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional
import logging

import pymongo
from pymongo import AsyncMongoClient
from pymongo.asynchronous.client_session import AsyncClientSession
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import PyMongoError

from realty_api.config import Settings

logger = logging.getLogger(__name__)


class Database:
    """
    Gateway to the document store.

    One instance is created per application and shared by every request;
    the underlying client keeps its own connection pool.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.client: Optional[AsyncMongoClient] = None
        self.db: Optional[AsyncDatabase] = None

    async def connect(self) -> None:
        """
        Open the client and verify the server answers.

        Raises:
            PyMongoError: If the server cannot be reached
        """
        client = AsyncMongoClient(
            self.settings.mongodb_url,
            appname=self.settings.app_name,
            timeoutMS=self.settings.mongodb_timeout_ms,
            serverSelectionTimeoutMS=self.settings.mongodb_timeout_ms,
            tz_aware=True,
        )
        try:
            await client.admin.command("ping")
        except PyMongoError as e:
            logger.error(f"MongoDB connection failed: {e}")
            await client.close()
            raise

        self.client = client
        self.db = client.get_default_database(default=self.settings.mongodb_db_name)
        logger.info(f"MongoDB connected (database: {self.db.name})")

    async def disconnect(self) -> None:
        """Close the client. Safe to call when never connected."""
        if self.client is not None:
            await self.client.close()
            logger.info("MongoDB connection closed")
        self.client = None
        self.db = None

    @property
    def is_connected(self) -> bool:
        return self.db is not None

    def collection(self, name: str) -> AsyncCollection:
        if self.db is None:
            raise RuntimeError("Database is not connected")
        return self.db[name]

    async def ping(self) -> bool:
        """
        Test database connectivity.
        Returns True if the server answers, False otherwise.
        """
        if self.client is None:
            return False
        try:
            await self.client.admin.command("ping")
            return True
        except PyMongoError as e:
            logger.error(f"Database ping failed: {e}")
            return False

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncClientSession]:
        """
        Run a block inside a multi-document transaction.

        Commits when the block exits normally. Any exception raised inside
        the block, including the transaction deadline expiring, aborts the
        transaction and propagates.
        """
        if self.client is None:
            raise RuntimeError("Database is not connected")

        async with self.client.start_session() as session:
            with pymongo.timeout(self.settings.transaction_timeout_seconds):
                async with await session.start_transaction():
                    yield session

"""
Base repository class with common CRUD operations over one MongoDB collection.
Provides generic document operations that can be extended by specific repositories.
"""

from typing import Optional, List, Dict, Any, Union
import logging

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.asynchronous.client_session import AsyncClientSession
from pymongo.asynchronous.collection import AsyncCollection

from realty_api.database import Database
from realty_api.utils.validators import ValidationUtils

logger = logging.getLogger(__name__)

IdLike = Union[str, ObjectId]


class BaseRepository:
    """
    Base repository class providing common CRUD operations.

    Ids that are not valid ObjectIds are treated as "no such document":
    lookups return None and deletes return False instead of raising.
    """

    collection_name: str = ""

    def __init__(self, database: Database):
        """
        Initialize repository with the database gateway.

        Args:
            database: Connected Database instance
        """
        self.database = database

    @property
    def collection(self) -> AsyncCollection:
        return self.database.collection(self.collection_name)

    async def create(self, document: Dict[str, Any], session: Optional[AsyncClientSession] = None) -> ObjectId:
        """
        Insert a new document.

        Args:
            document: Field values for the new document
            session: Optional session to run inside a transaction

        Returns:
            The store-generated id
        """
        try:
            result = await self.collection.insert_one(document, session=session)
            logger.debug(f"Created {self.collection_name} document with id: {result.inserted_id}")
            return result.inserted_id
        except Exception as e:
            logger.error(f"Failed to create {self.collection_name} document: {e}")
            raise

    async def get_by_id(self, id: IdLike, session: Optional[AsyncClientSession] = None) -> Optional[Dict[str, Any]]:
        """
        Get a document by its id.

        Returns:
            The document if found, None otherwise
        """
        object_id = ValidationUtils.parse_object_id(id)
        if object_id is None:
            logger.debug(f"{self.collection_name} id {id!r} is not a valid ObjectId")
            return None
        return await self.get_by_field("_id", object_id, session=session)

    async def get_by_field(
        self,
        field: str,
        value: Any,
        session: Optional[AsyncClientSession] = None
    ) -> Optional[Dict[str, Any]]:
        """
        Get the first document whose field equals value.

        Returns:
            The document if found, None otherwise
        """
        try:
            document = await self.collection.find_one({field: value}, session=session)

            if document:
                logger.debug(f"Retrieved {self.collection_name} by {field}: {value}")
            else:
                logger.debug(f"{self.collection_name} with {field}={value} not found")

            return document
        except Exception as e:
            logger.error(f"Failed to get {self.collection_name} by {field}={value}: {e}")
            raise

    async def update(
        self,
        id: IdLike,
        data: Dict[str, Any],
        session: Optional[AsyncClientSession] = None
    ) -> Optional[Dict[str, Any]]:
        """
        Merge the given fields into a document.

        Only the supplied fields change; None values are dropped so that
        absent fields keep their stored value.

        Returns:
            The updated document if found, None otherwise
        """
        object_id = ValidationUtils.parse_object_id(id)
        if object_id is None:
            return None

        update_data = {k: v for k, v in data.items() if v is not None}
        if not update_data:
            logger.warning(f"No valid data provided for updating {self.collection_name} {id}")
            return await self.get_by_id(object_id, session=session)

        try:
            document = await self.collection.find_one_and_update(
                {"_id": object_id},
                {"$set": update_data},
                return_document=ReturnDocument.AFTER,
                session=session
            )

            if document is None:
                logger.debug(f"{self.collection_name} with id {id} not found for update")
            else:
                logger.debug(f"Updated {self.collection_name} with id: {id}")

            return document
        except Exception as e:
            logger.error(f"Failed to update {self.collection_name} {id}: {e}")
            raise

    async def delete(self, id: IdLike, session: Optional[AsyncClientSession] = None) -> bool:
        """
        Delete a document by its id.

        Returns:
            True if a document was deleted, False if not found
        """
        object_id = ValidationUtils.parse_object_id(id)
        if object_id is None:
            return False

        try:
            result = await self.collection.delete_one({"_id": object_id}, session=session)

            deleted = result.deleted_count > 0
            if deleted:
                logger.debug(f"Deleted {self.collection_name} with id: {id}")
            else:
                logger.debug(f"{self.collection_name} with id {id} not found for deletion")

            return deleted
        except Exception as e:
            logger.error(f"Failed to delete {self.collection_name} {id}: {e}")
            raise

    async def count(self, filters: Optional[Dict[str, Any]] = None) -> int:
        """
        Count documents matching a filter.

        Returns:
            Number of matching documents
        """
        try:
            count = await self.collection.count_documents(filters or {})
            logger.debug(f"Counted {count} {self.collection_name} documents")
            return count
        except Exception as e:
            logger.error(f"Failed to count {self.collection_name} documents: {e}")
            raise

    async def aggregate(
        self,
        pipeline: List[Dict[str, Any]],
        session: Optional[AsyncClientSession] = None
    ) -> List[Dict[str, Any]]:
        """Run an aggregation pipeline and collect every result."""
        try:
            cursor = await self.collection.aggregate(pipeline, session=session)
            return await cursor.to_list(length=None)
        except Exception as e:
            logger.error(f"Aggregation on {self.collection_name} failed: {e}")
            raise

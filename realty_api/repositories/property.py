"""
Property repository for managing property listings with filtering and creator expansion.
Builds the MongoDB filters and aggregation pipelines behind the listing,
detail and update endpoints.
"""

from typing import Optional, List, Dict, Any, Tuple
import logging
import re

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING
from pymongo.asynchronous.client_session import AsyncClientSession

from realty_api.database import Database
from realty_api.models.property import Property
from realty_api.models.user import User
from realty_api.repositories.base import BaseRepository, IdLike
from realty_api.utils.validators import ValidationUtils

logger = logging.getLogger(__name__)

# Creator fields embedded in listing rows
CREATOR_SUMMARY_FIELDS = ("name", "email", "avatar")

# Sentinel propertyType meaning "no type filter"
ALL_PROPERTY_TYPES = "All"


class PropertySearchFilters:
    """Filters accepted by the property listing."""

    def __init__(
        self,
        title_like: Optional[str] = None,
        property_type: Optional[str] = None,
        creator: Optional[str] = None
    ):
        self.title_like = title_like
        self.property_type = property_type
        self.creator = creator

    def to_query(self) -> Dict[str, Any]:
        """
        Build the MongoDB filter document.

        - title: case-insensitive substring, matched literally
        - propertyType: exact, skipped for "All"
        - creator: ObjectId equality; an id that does not parse is compared
          verbatim and so matches nothing
        """
        query: Dict[str, Any] = {}

        if self.property_type and self.property_type != ALL_PROPERTY_TYPES:
            query["propertyType"] = self.property_type

        if self.title_like:
            query["title"] = {"$regex": re.escape(self.title_like), "$options": "i"}

        if self.creator:
            creator_id = ValidationUtils.parse_object_id(self.creator)
            query["creator"] = creator_id if creator_id is not None else self.creator

        return query


class PropertyRepository(BaseRepository):
    """
    Repository for property documents.
    Listing and detail reads go through aggregation so the creator can be
    joined in from the users collection.
    """

    collection_name = Property.collection_name

    def __init__(self, database: Database):
        super().__init__(database)

    @staticmethod
    def _creator_lookup(summary: bool) -> List[Dict[str, Any]]:
        """
        Pipeline stages replacing the creator id with the user document.

        Args:
            summary: Only keep name, email and avatar (plus _id)
        """
        if summary:
            lookup = {
                "$lookup": {
                    "from": User.collection_name,
                    "let": {"creatorId": "$creator"},
                    "pipeline": [
                        {"$match": {"$expr": {"$eq": ["$_id", "$$creatorId"]}}},
                        {"$project": {field: 1 for field in CREATOR_SUMMARY_FIELDS}},
                    ],
                    "as": "creator",
                }
            }
        else:
            lookup = {
                "$lookup": {
                    "from": User.collection_name,
                    "localField": "creator",
                    "foreignField": "_id",
                    "as": "creator",
                }
            }

        return [
            lookup,
            {"$unwind": {"path": "$creator", "preserveNullAndEmptyArrays": True}},
        ]

    async def create_property(self, property_obj: Property, session: Optional[AsyncClientSession] = None) -> ObjectId:
        """
        Insert a property document.

        Args:
            property_obj: Property to store
            session: Session of the surrounding transaction

        Returns:
            The new property id
        """
        property_id = await self.create(property_obj.to_document(), session=session)
        logger.info(f"Created property: {property_obj.title} (ID: {property_id})")
        return property_id

    async def search_properties(
        self,
        filters: PropertySearchFilters,
        skip: int = 0,
        limit: int = 10,
        sort_by: str = "_id",
        sort_direction: int = ASCENDING
    ) -> Tuple[List[Dict[str, Any]], int]:
        """
        Search properties with filtering, pagination and sorting.

        The total is counted with the same filter before pagination. Count
        and page are two separate reads, so a concurrent write may land
        between them.

        Args:
            filters: PropertySearchFilters instance
            skip: Number of documents to skip
            limit: Page size, must be positive
            sort_by: Field to sort on
            sort_direction: pymongo.ASCENDING or pymongo.DESCENDING

        Returns:
            Tuple of (properties with creator summary, total count)
        """
        query = filters.to_query()
        logger.debug(f"Property search filter: {query}")

        total_count = await self.count(query)

        sort_spec = {sort_by: sort_direction}
        if sort_by != "_id":
            # Stable order across pages when the sort key repeats
            sort_spec["_id"] = sort_direction

        pipeline = [
            {"$match": query},
            {"$sort": sort_spec},
            {"$skip": skip},
            {"$limit": limit},
            *self._creator_lookup(summary=True),
        ]
        properties = await self.aggregate(pipeline)

        logger.debug(f"Property search returned {len(properties)} of {total_count} matches")
        return properties, total_count

    async def get_property_with_creator(self, property_id: IdLike) -> Optional[Dict[str, Any]]:
        """
        Get a property with every creator field expanded.

        Returns:
            Property document or None if not found
        """
        object_id = ValidationUtils.parse_object_id(property_id)
        if object_id is None:
            return None

        pipeline = [
            {"$match": {"_id": object_id}},
            {"$limit": 1},
            *self._creator_lookup(summary=False),
        ]
        results = await self.aggregate(pipeline)

        if not results:
            logger.debug(f"Property {property_id} not found")
            return None
        return results[0]

    async def update_property(self, property_id: IdLike, update_data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Merge fields into a property and return it with the creator expanded.

        Returns:
            Updated property or None if not found
        """
        updated = await self.update(property_id, update_data)
        if updated is None:
            return None

        logger.info(f"Updated property {property_id}: {sorted(update_data)}")
        return await self.get_property_with_creator(updated["_id"])

    async def delete_property(self, property_id: IdLike) -> bool:
        deleted = await self.delete(property_id)
        if deleted:
            logger.info(f"Deleted property {property_id}")
        return deleted

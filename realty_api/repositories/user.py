"""
User repository for user lookups and owned-property bookkeeping.
"""

from typing import Optional, List, Dict, Any
import logging

from bson import ObjectId
from pymongo.asynchronous.client_session import AsyncClientSession

from realty_api.database import Database
from realty_api.models.property import Property
from realty_api.models.user import User
from realty_api.repositories.base import BaseRepository, IdLike
from realty_api.utils.validators import ValidationUtils

logger = logging.getLogger(__name__)

_JOINED_PROPERTIES = "_ownedPropertyDocs"


class UserRepository(BaseRepository):
    """
    Repository for user documents.
    """

    collection_name = User.collection_name

    def __init__(self, database: Database):
        super().__init__(database)

    @staticmethod
    def _properties_lookup() -> List[Dict[str, Any]]:
        return [
            {
                "$lookup": {
                    "from": Property.collection_name,
                    "localField": "allProperties",
                    "foreignField": "_id",
                    "as": _JOINED_PROPERTIES,
                }
            }
        ]

    @staticmethod
    def _expand_owned_properties(user: Dict[str, Any]) -> Dict[str, Any]:
        """
        Replace the id list with the joined documents, keeping the order in
        which the user created them. Ids whose property was deleted drop out.
        """
        joined = {doc["_id"]: doc for doc in user.pop(_JOINED_PROPERTIES, [])}
        user["allProperties"] = [
            joined[property_id]
            for property_id in user.get("allProperties") or []
            if property_id in joined
        ]
        return user

    async def create_user(self, user_obj: User) -> Dict[str, Any]:
        """
        Insert a new user.

        Returns:
            The stored document including its _id
        """
        document = user_obj.to_document()
        user_id = await self.create(document)
        logger.info(f"Created user: {user_obj.email} (ID: {user_id})")
        return {"_id": user_id, **document}

    async def get_by_email(self, email: str, session: Optional[AsyncClientSession] = None) -> Optional[Dict[str, Any]]:
        """Get user by email address."""
        return await self.get_by_field("email", email, session=session)

    async def add_owned_property(
        self,
        user_id: ObjectId,
        property_id: ObjectId,
        session: Optional[AsyncClientSession] = None
    ) -> bool:
        """
        Append a property id to the user's owned list.

        Returns:
            True if the user document was found
        """
        try:
            result = await self.collection.update_one(
                {"_id": user_id},
                {"$push": {"allProperties": property_id}},
                session=session
            )
            logger.debug(f"Linked property {property_id} to user {user_id}")
            return result.matched_count > 0
        except Exception as e:
            logger.error(f"Failed to link property {property_id} to user {user_id}: {e}")
            raise

    async def list_users_with_properties(self) -> List[Dict[str, Any]]:
        """Get every user with owned properties expanded."""
        users = await self.aggregate([{"$sort": {"_id": 1}}, *self._properties_lookup()])
        logger.debug(f"Retrieved {len(users)} users")
        return [self._expand_owned_properties(user) for user in users]

    async def get_user_with_properties(self, user_id: IdLike) -> Optional[Dict[str, Any]]:
        """
        Get one user with owned properties expanded.

        Returns:
            User document or None if not found
        """
        object_id = ValidationUtils.parse_object_id(user_id)
        if object_id is None:
            return None

        results = await self.aggregate([
            {"$match": {"_id": object_id}},
            {"$limit": 1},
            *self._properties_lookup(),
        ])

        if not results:
            logger.debug(f"User {user_id} not found")
            return None
        return self._expand_owned_properties(results[0])

"""
Property service for managing property listings.
Handles presence validation, the transactional create, photo upload policy
and translation of store failures into API errors.
"""

from typing import Optional, List, Dict, Any, Tuple
import logging

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import PyMongoError

from realty_api.database import Database
from realty_api.models.property import Property
from realty_api.repositories.property import PropertyRepository, PropertySearchFilters
from realty_api.repositories.user import UserRepository
from realty_api.schemas.property import PropertyCreate, PropertyUpdate, PropertyListParams
from realty_api.services.media import MediaService
from realty_api.utils.exceptions import (
    PropertyNotFoundError,
    StoreError,
    UserNotFoundError
)
from realty_api.utils.validators import ValidationUtils

logger = logging.getLogger(__name__)

CREATE_REQUIRED_FIELDS = ("title", "description", "propertyType", "location", "price", "photo", "email")
UPDATE_REQUIRED_FIELDS = ("title", "description", "propertyType", "location", "price")


class PropertyService:
    """
    Property service coordinating repositories and the media host.
    """

    def __init__(
        self,
        database: Database,
        media_service: MediaService,
        default_page_size: int = 10,
        property_repo: Optional[PropertyRepository] = None,
        user_repo: Optional[UserRepository] = None
    ):
        self.database = database
        self.media_service = media_service
        self.default_page_size = default_page_size
        self.property_repo = property_repo or PropertyRepository(database)
        self.user_repo = user_repo or UserRepository(database)

    def build_search(self, params: PropertyListParams) -> Dict[str, Any]:
        """
        Turn listing query parameters into repository arguments.

        `_end` is the page size; zero, negative or unparsable values fall
        back to the default. Sorting is by _id ascending unless asked
        otherwise, and only the exact value "desc" sorts descending.
        """
        limit = params.end if params.end and params.end > 0 else self.default_page_size
        skip = params.start if params.start and params.start > 0 else 0

        sort_by = params.sort or "_id"
        if sort_by == "id":
            sort_by = "_id"

        return {
            "filters": PropertySearchFilters(
                title_like=params.title_like,
                property_type=params.property_type,
                creator=params.creator
            ),
            "skip": skip,
            "limit": limit,
            "sort_by": sort_by,
            "sort_direction": DESCENDING if params.order == "desc" else ASCENDING,
        }

    async def search_properties(self, params: PropertyListParams) -> Tuple[List[Dict[str, Any]], int]:
        """
        List properties for the given query parameters.

        Returns:
            Tuple of (page of properties, total matches before pagination)

        Raises:
            StoreError: If the store fails; no partial page is returned
        """
        search = self.build_search(params)
        try:
            return await self.property_repo.search_properties(**search)
        except PyMongoError as e:
            logger.error(f"Error fetching properties: {e}", exc_info=True)
            raise StoreError("Error fetching properties", reason=str(e)) from e

    async def create_property(self, property_data: PropertyCreate) -> ObjectId:
        """
        Create a property for the user identified by email.

        The user lookup, photo upload, property insert and owned-list append
        all happen inside one transaction. A missing user, a failed upload
        or a store error aborts it, so either both documents change or
        neither does.

        Returns:
            Id of the new property

        Raises:
            ValidationError: If required fields are missing
            UserNotFoundError: If no user has the given email
            UpstreamError: If the photo upload fails
            StoreError: If the store fails or the transaction times out
        """
        ValidationUtils.require_fields(property_data.to_payload(), CREATE_REQUIRED_FIELDS)

        try:
            async with self.database.transaction() as session:
                user = await self.user_repo.get_by_email(property_data.email, session=session)
                if user is None:
                    logger.warning(f"Property creation for unknown user {property_data.email}")
                    raise UserNotFoundError(property_data.email)

                photo_url = await self.media_service.upload(property_data.photo)

                property_obj = Property(
                    title=property_data.title,
                    description=property_data.description,
                    property_type=property_data.property_type,
                    location=property_data.location,
                    price=property_data.price,
                    photo=photo_url,
                    creator=user["_id"]
                )
                property_id = await self.property_repo.create_property(property_obj, session=session)
                await self.user_repo.add_owned_property(user["_id"], property_id, session=session)
        except PyMongoError as e:
            logger.error(f"Error creating property: {e}", exc_info=True)
            raise StoreError("Error creating property", reason=str(e)) from e

        logger.info(f"Property created by user {property_data.email}: {property_data.title} (ID: {property_id})")
        return property_id

    async def get_property(self, property_id: str) -> Dict[str, Any]:
        """
        Get a property with its creator fully expanded.

        Raises:
            PropertyNotFoundError: If the property doesn't exist
            StoreError: If the store fails
        """
        try:
            property_doc = await self.property_repo.get_property_with_creator(property_id)
        except PyMongoError as e:
            logger.error(f"Error fetching property {property_id}: {e}", exc_info=True)
            raise StoreError("Error fetching property", reason=str(e)) from e

        if property_doc is None:
            raise PropertyNotFoundError(property_id)
        return property_doc

    async def update_property(self, property_id: str, property_data: PropertyUpdate) -> Dict[str, Any]:
        """
        Merge new field values into a property.

        The photo is re-uploaded when it is an embedded image, stored as is
        when it is already a URL, and left untouched otherwise.

        Returns:
            Updated property with its creator expanded

        Raises:
            ValidationError: If required fields are missing
            UpstreamError: If the photo upload fails
            PropertyNotFoundError: If the property doesn't exist
            StoreError: If the store fails
        """
        ValidationUtils.require_fields(property_data.to_payload(), UPDATE_REQUIRED_FIELDS)

        update_data: Dict[str, Any] = {
            "title": property_data.title,
            "description": property_data.description,
            "propertyType": property_data.property_type,
            "location": property_data.location,
            "price": property_data.price,
        }

        photo_url = await self.media_service.resolve_photo_update(property_data.photo)
        if photo_url is not None:
            update_data["photo"] = photo_url

        try:
            updated = await self.property_repo.update_property(property_id, update_data)
        except PyMongoError as e:
            logger.error(f"Error updating property {property_id}: {e}", exc_info=True)
            raise StoreError("Error updating property", reason=str(e)) from e

        if updated is None:
            raise PropertyNotFoundError(property_id)
        return updated

    async def delete_property(self, property_id: Optional[str]) -> None:
        """
        Delete a property by id.

        Raises:
            BadRequestError: If the id is empty or "undefined"; nothing is looked up
            PropertyNotFoundError: If the property doesn't exist
            StoreError: If the store fails
        """
        property_id = ValidationUtils.validate_resource_id(property_id, "property")

        try:
            deleted = await self.property_repo.delete_property(property_id)
        except PyMongoError as e:
            logger.error(f"Error deleting property {property_id}: {e}", exc_info=True)
            raise StoreError("Error deleting property", reason=str(e)) from e

        if not deleted:
            raise PropertyNotFoundError(property_id)

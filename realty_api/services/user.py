"""
User service: listing, lookup and create-or-fetch by email.
"""

from typing import Optional, List, Dict, Any, Tuple
import logging

from pymongo.errors import PyMongoError

from realty_api.database import Database
from realty_api.models.user import User
from realty_api.repositories.user import UserRepository
from realty_api.schemas.user import UserCreate
from realty_api.utils.exceptions import StoreError, UserNotFoundError
from realty_api.utils.validators import ValidationUtils

logger = logging.getLogger(__name__)

CREATE_REQUIRED_FIELDS = ("name", "email")


class UserService:
    """User service over the users collection."""

    def __init__(self, database: Database, user_repo: Optional[UserRepository] = None):
        self.database = database
        self.user_repo = user_repo or UserRepository(database)

    async def list_users(self) -> List[Dict[str, Any]]:
        try:
            return await self.user_repo.list_users_with_properties()
        except PyMongoError as e:
            logger.error(f"Error fetching users: {e}", exc_info=True)
            raise StoreError("Error fetching users", reason=str(e)) from e

    async def get_user(self, user_id: str) -> Dict[str, Any]:
        """
        Get a user with owned properties expanded.

        Raises:
            UserNotFoundError: If the user doesn't exist
            StoreError: If the store fails
        """
        try:
            user = await self.user_repo.get_user_with_properties(user_id)
        except PyMongoError as e:
            logger.error(f"Error fetching user {user_id}: {e}", exc_info=True)
            raise StoreError("Error fetching user", reason=str(e)) from e

        if user is None:
            raise UserNotFoundError(user_id)
        return user

    async def create_user(self, user_data: UserCreate) -> Tuple[Dict[str, Any], bool]:
        """
        Return the user with this email, creating it if there is none.

        An existing user is returned unchanged, whatever name or avatar the
        request carries, so only the email is needed to fetch one. The name
        is required only when a new user has to be inserted.

        Returns:
            Tuple of (user document, whether it was created)
        """
        payload = user_data.model_dump()
        if ValidationUtils.is_missing(user_data.email):
            ValidationUtils.require_fields(payload, CREATE_REQUIRED_FIELDS)

        try:
            existing = await self.user_repo.get_by_email(user_data.email)
        except PyMongoError as e:
            logger.error(f"Error looking up user {user_data.email}: {e}", exc_info=True)
            raise StoreError("Error creating user", reason=str(e)) from e

        if existing is not None:
            logger.debug(f"User {user_data.email} already exists")
            return existing, False

        ValidationUtils.require_fields(payload, CREATE_REQUIRED_FIELDS)

        try:
            user = await self.user_repo.create_user(
                User(name=user_data.name, email=user_data.email, avatar=user_data.avatar)
            )
        except PyMongoError as e:
            logger.error(f"Error creating user {user_data.email}: {e}", exc_info=True)
            raise StoreError("Error creating user", reason=str(e)) from e

        return user, True

"""
Service layer for business logic implementation.
Contains services for property and user management, media upload and error handling.
"""

from .media import MediaService
from .property import PropertyService
from .user import UserService
from .error_handler import ErrorHandlerService

__all__ = [
    "MediaService",
    "PropertyService",
    "UserService",
    "ErrorHandlerService"
]

"""
Pydantic schemas for request/response validation.
"""

from .common import ObjectIdStr, MessageResponse

from .user import (
    UserCreate,
    CreatorSummary,
    UserResponse
)

from .property import (
    PropertyCreate,
    PropertyUpdate,
    PropertyResponse,
    PropertyListItem,
    PropertyDetail,
    PropertyListParams,
    UserWithProperties
)

__all__ = [
    "ObjectIdStr",
    "MessageResponse",
    "UserCreate",
    "CreatorSummary",
    "UserResponse",
    "UserWithProperties",
    "PropertyCreate",
    "PropertyUpdate",
    "PropertyResponse",
    "PropertyListItem",
    "PropertyDetail",
    "PropertyListParams",
]

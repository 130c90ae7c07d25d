"""
Utility modules for the Realty API.
"""

from .exceptions import (
    APIException,
    ValidationError,
    BadRequestError,
    NotFoundError,
    PropertyNotFoundError,
    UserNotFoundError,
    PayloadTooLargeError,
    UpstreamError,
    StoreError,
    ServiceUnavailableError
)
from .validators import ValidationUtils

# Dependencies are imported directly where needed to avoid circular imports

__all__ = [
    "APIException",
    "ValidationError",
    "BadRequestError",
    "NotFoundError",
    "PropertyNotFoundError",
    "UserNotFoundError",
    "PayloadTooLargeError",
    "UpstreamError",
    "StoreError",
    "ServiceUnavailableError",
    "ValidationUtils",
]

"""
Custom exception classes for the Realty API.
Provides structured error handling with appropriate HTTP status codes.
"""

from typing import Any, Dict, Optional, List
from fastapi import HTTPException, status


class APIException(HTTPException):
    """Base API exception class."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: Optional[str] = None,
        headers: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code


class ValidationError(APIException):
    """Required request fields are absent."""

    def __init__(
        self,
        detail: str = "Missing required fields",
        missing_fields: Optional[List[str]] = None,
        received: Optional[Dict[str, bool]] = None
    ):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            error_code="VALIDATION_ERROR"
        )
        self.missing_fields = missing_fields or []
        self.received = received or {}


class BadRequestError(APIException):
    """Bad request exception."""

    def __init__(self, detail: str):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            error_code="BAD_REQUEST"
        )


class NotFoundError(APIException):
    """Resource not found exception."""

    def __init__(self, resource: str, resource_id: Optional[str] = None):
        detail = f"{resource} not found"
        self.resource_id = resource_id

        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            error_code="NOT_FOUND"
        )


class PropertyNotFoundError(NotFoundError):
    """Property not found exception."""

    def __init__(self, property_id: Optional[str] = None):
        super().__init__("Property", property_id)


class UserNotFoundError(NotFoundError):
    """User not found exception."""

    def __init__(self, user_ref: Optional[str] = None):
        super().__init__("User", user_ref)


class PayloadTooLargeError(APIException):
    """Request body exceeds the configured ceiling."""

    def __init__(self, size: int, max_size: int):
        super().__init__(
            status_code=status.HTTP_413_CONTENT_TOO_LARGE,
            detail=f"Request size {size} bytes exceeds maximum allowed size {max_size} bytes",
            error_code="PAYLOAD_TOO_LARGE"
        )


class UpstreamError(APIException):
    """The media host rejected or failed an upload."""

    def __init__(self, detail: str = "Image upload failed", reason: Optional[str] = None):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
            error_code="UPSTREAM_ERROR"
        )
        self.reason = reason


class StoreError(APIException):
    """A database operation failed."""

    def __init__(self, detail: str, reason: Optional[str] = None):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
            error_code="STORE_ERROR"
        )
        self.reason = reason


class ServiceUnavailableError(APIException):
    """Service unavailable exception."""

    def __init__(self, detail: str = "Service temporarily unavailable"):
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=detail,
            error_code="SERVICE_UNAVAILABLE"
        )

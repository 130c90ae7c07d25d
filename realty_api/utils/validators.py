"""
Validation helpers shared by the services.
Presence checks for request payloads and ObjectId parsing.
"""

from typing import Any, Dict, Iterable, Optional
from bson import ObjectId
from bson.errors import InvalidId

from realty_api.utils.exceptions import ValidationError, BadRequestError


class ValidationUtils:
    """
    Utility class for common validation operations.
    """

    # Ids sent by clients that serialised a missing value
    PLACEHOLDER_IDS = {"", "undefined", "null"}

    @staticmethod
    def is_missing(value: Any) -> bool:
        """A value is missing when absent, null or a blank string."""
        if value is None:
            return True
        if isinstance(value, str) and not value.strip():
            return True
        return False

    @staticmethod
    def require_fields(payload: Dict[str, Any], required: Iterable[str]) -> None:
        """
        Check that every required field is present.

        Args:
            payload: Request data keyed by wire field name
            required: Field names that must be present

        Raises:
            ValidationError: Enumerating every missing field
        """
        received = {
            field: not ValidationUtils.is_missing(payload.get(field))
            for field in required
        }
        missing = [field for field, present in received.items() if not present]

        if missing:
            raise ValidationError(
                "Missing required fields",
                missing_fields=missing,
                received=received
            )

    @staticmethod
    def validate_resource_id(value: Optional[str], resource: str = "property") -> str:
        """
        Reject ids that are empty or the literal placeholder "undefined".

        Raises:
            BadRequestError: If the id is unusable
        """
        if value is None or value.strip() in {"", "undefined"}:
            raise BadRequestError(f"Invalid {resource} ID")
        return value.strip()

    @staticmethod
    def parse_object_id(value: Any) -> Optional[ObjectId]:
        """
        Convert a client supplied id into an ObjectId.

        Returns:
            ObjectId, or None when the value is not a valid id
        """
        if isinstance(value, ObjectId):
            return value
        if not isinstance(value, str) or value in ValidationUtils.PLACEHOLDER_IDS:
            return None
        try:
            return ObjectId(value)
        except (InvalidId, TypeError):
            return None

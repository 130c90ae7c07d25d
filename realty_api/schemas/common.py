"""
Shared schema types.
"""

from typing import Annotated, Any
from pydantic import BaseModel, BeforeValidator, Field


def _stringify_id(value: Any) -> Any:
    """ObjectIds leave the API as hex strings."""
    if value is None or isinstance(value, str):
        return value
    return str(value)


ObjectIdStr = Annotated[str, BeforeValidator(_stringify_id)]


class MessageResponse(BaseModel):
    """Plain confirmation body."""

    message: str = Field(
        ...,
        description="Human readable confirmation",
        examples=["Property created successfully"]
    )

"""
Pydantic schemas for user requests and responses.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List

from realty_api.schemas.common import ObjectIdStr


class UserCreate(BaseModel):
    """
    Body of POST /users.

    Fields are optional at parse time so that absent values reach the
    service, which reports every missing field at once.
    """

    name: Optional[str] = Field(None, description="Display name", examples=["Jane Doe"])
    email: Optional[str] = Field(None, description="Email address, used as lookup key", examples=["jane@example.com"])
    avatar: Optional[str] = Field(None, description="Avatar image URL")

    @field_validator("email")
    @classmethod
    def strip_email(cls, v):
        return v.strip() if isinstance(v, str) else v


class CreatorSummary(BaseModel):
    """Creator fields embedded in property listings."""

    id: ObjectIdStr = Field(..., alias="_id", description="User identifier")
    name: Optional[str] = None
    email: Optional[str] = None
    avatar: Optional[str] = None

    model_config = {"populate_by_name": True}


class UserResponse(CreatorSummary):
    """A user with owned properties as ids."""

    owned_properties: List[ObjectIdStr] = Field(
        default_factory=list,
        alias="allProperties",
        description="Ids of the properties this user created"
    )


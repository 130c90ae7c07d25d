"""
Pydantic schemas for property requests and responses.
Handles property CRUD payloads, listing query parameters and the
creator-expanded response shapes.
"""

from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Any, Dict, List, Optional

from realty_api.schemas.common import ObjectIdStr
from realty_api.schemas.user import CreatorSummary, UserResponse


class PropertyUpdate(BaseModel):
    """
    Body of PATCH /properties/{id}.

    Everything is optional at parse time; the service decides which fields
    are required and reports all missing ones together.
    """

    title: Optional[str] = Field(None, description="Property listing title", examples=["Lake House"])
    description: Optional[str] = Field(None, description="Detailed property description")
    property_type: Optional[str] = Field(
        None,
        alias="propertyType",
        description="Free-form property category",
        examples=["House"]
    )
    location: Optional[str] = Field(None, description="Property location/address", examples=["Lake Tahoe, CA"])
    price: Optional[float] = Field(None, description="Property price", examples=[250000])
    photo: Optional[str] = Field(
        None,
        description="data:image/... payload to upload, or an existing http(s) URL"
    )

    model_config = {"populate_by_name": True}

    def to_payload(self) -> Dict[str, Any]:
        """Field values keyed by their wire names."""
        return self.model_dump(by_alias=True)


class PropertyCreate(PropertyUpdate):
    """Body of POST /properties."""

    email: Optional[str] = Field(
        None,
        description="Email of the user creating the property",
        examples=["jane@example.com"]
    )

    @field_validator("email")
    @classmethod
    def strip_email(cls, v):
        return v.strip() if isinstance(v, str) else v

    model_config = {
        "populate_by_name": True,
        "json_schema_extra": {
            "example": {
                "title": "Lake House",
                "description": "Quiet cabin with a private dock.",
                "propertyType": "House",
                "location": "Lake Tahoe, CA",
                "price": 250000,
                "photo": "data:image/png;base64,iVBORw0KGgo...",
                "email": "jane@example.com"
            }
        }
    }


class PropertyResponse(BaseModel):
    """A property with its creator as a bare id."""

    id: ObjectIdStr = Field(..., alias="_id", description="Property identifier")
    title: str
    description: str
    property_type: str = Field(..., alias="propertyType")
    location: str
    price: float
    photo_url: Optional[str] = Field(None, alias="photo", description="Hosted image URL")
    creator: Optional[ObjectIdStr] = Field(None, description="Creator user id")

    model_config = {"populate_by_name": True}


class PropertyListItem(PropertyResponse):
    """A listing row; the creator carries only name, email and avatar."""

    creator: Optional[CreatorSummary] = None


class PropertyDetail(PropertyResponse):
    """A single property with every creator field."""

    creator: Optional[UserResponse] = None


class UserWithProperties(UserResponse):
    """A user with owned properties expanded to full documents."""

    owned_properties: List[PropertyResponse] = Field(
        default_factory=list,
        alias="allProperties",
        description="Properties this user created"
    )


class PropertyListParams(BaseModel):
    """
    Listing query parameters after normalisation.

    Numeric parameters are parsed leniently: anything that is not an
    integer falls back to the default. The two creator spellings are folded
    into `creator` here so filter construction only ever sees one.
    """

    start: Optional[int] = None
    end: Optional[int] = None
    sort: Optional[str] = None
    order: Optional[str] = None
    title_like: Optional[str] = None
    property_type: Optional[str] = None
    creator: Optional[str] = None
    creator_eq: Optional[str] = None

    @field_validator("start", "end", mode="before")
    @classmethod
    def parse_lenient_int(cls, v):
        if v is None or isinstance(v, int):
            return v
        try:
            return int(str(v).strip())
        except ValueError:
            return None

    @model_validator(mode="after")
    def fold_creator_spellings(self):
        """`creator` wins; `creator_eq` is the alternate client spelling."""
        if not self.creator and self.creator_eq:
            self.creator = self.creator_eq
        self.creator_eq = None
        return self

"""
Property document stored in the 'properties' collection.
"""

from typing import Any, Dict, Union
from decimal import Decimal
from bson import ObjectId


class Property:
    """A listing. `creator` points at the owning user and never changes."""

    collection_name = "properties"

    def __init__(
        self,
        title: str,
        description: str,
        property_type: str,
        location: str,
        price: Union[int, float, Decimal],
        photo: str,
        creator: ObjectId
    ):
        self.title = title
        self.description = description
        self.property_type = property_type
        self.location = location
        # BSON has no Decimal mapping without Decimal128; prices are stored as doubles
        self.price = float(price) if isinstance(price, Decimal) else price
        self.photo = photo
        self.creator = creator

    def to_document(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "propertyType": self.property_type,
            "location": self.location,
            "price": self.price,
            "photo": self.photo,
            "creator": self.creator,
        }

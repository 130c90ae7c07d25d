"""
User document stored in the 'users' collection.
"""

from typing import Any, Dict, List, Optional
from bson import ObjectId


class User:
    """
    A person who lists properties.

    `allProperties` holds the ids of the properties this user created, in
    creation order. It is appended to inside the property creation
    transaction and never rewritten elsewhere.
    """

    collection_name = "users"

    def __init__(
        self,
        name: str,
        email: str,
        avatar: Optional[str] = None,
        all_properties: Optional[List[ObjectId]] = None
    ):
        self.name = name
        self.email = email
        self.avatar = avatar
        self.all_properties = list(all_properties or [])

    def to_document(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "email": self.email,
            "avatar": self.avatar,
            "allProperties": self.all_properties,
        }

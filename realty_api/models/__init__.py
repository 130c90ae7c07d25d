"""
Document definitions for the users and properties collections.
"""

from .user import User
from .property import Property

__all__ = ["User", "Property"]

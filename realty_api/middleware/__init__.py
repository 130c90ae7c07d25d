"""
Middleware package for the Realty API.
"""

from .validation import ValidationMiddleware

__all__ = ["ValidationMiddleware"]

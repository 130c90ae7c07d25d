"""
Realty API: REST backend for property listings and the users who create them.
"""

__version__ = "1.0.0"

"""
FastAPI dependency injection utilities.
The application factory stores the shared components on app.state; these
dependencies hand them to route handlers and build per-request services.
"""

from fastapi import Depends, Request

from realty_api.config import Settings
from realty_api.database import Database
from realty_api.services.media import MediaService
from realty_api.services.property import PropertyService
from realty_api.services.user import UserService


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_media_service(request: Request) -> MediaService:
    return request.app.state.media_service


async def get_property_service(
    database: Database = Depends(get_database),
    media_service: MediaService = Depends(get_media_service),
    settings: Settings = Depends(get_app_settings)
) -> PropertyService:
    """
    Get property service instance.

    Args:
        database: Shared database gateway
        media_service: Shared media upload adapter
        settings: Application settings

    Returns:
        PropertyService instance
    """
    return PropertyService(database, media_service, default_page_size=settings.default_page_size)


async def get_user_service(database: Database = Depends(get_database)) -> UserService:
    """
    Get user service instance.

    Args:
        database: Shared database gateway

    Returns:
        UserService instance
    """
    return UserService(database)

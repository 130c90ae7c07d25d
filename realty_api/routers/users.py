"""
User API endpoints. Mounted under both /users and /agents.
"""

from fastapi import APIRouter, Depends, Path, Response, status
from typing import List

from realty_api.services.user import UserService
from realty_api.schemas.property import UserWithProperties
from realty_api.schemas.user import UserCreate, UserResponse
from realty_api.utils.dependencies import get_user_service

router = APIRouter(tags=["Users"])


@router.get(
    "",
    response_model=List[UserWithProperties],
    status_code=status.HTTP_200_OK,
    summary="List users",
    description="Every user with the properties they created."
)
async def list_users(user_service: UserService = Depends(get_user_service)):
    return await user_service.list_users()


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create or fetch user",
    description="Returns the existing user (200) when the email is already known, otherwise creates one (201)."
)
async def create_user(
    user_data: UserCreate,
    response: Response,
    user_service: UserService = Depends(get_user_service)
):
    user, created = await user_service.create_user(user_data)
    if not created:
        response.status_code = status.HTTP_200_OK
    return user


@router.get(
    "/show/{user_id}",
    response_model=UserWithProperties,
    status_code=status.HTTP_200_OK,
    summary="Get user details"
)
@router.get(
    "/{user_id}",
    response_model=UserWithProperties,
    status_code=status.HTTP_200_OK,
    summary="Get user details"
)
async def get_user(
    user_id: str = Path(..., description="User ID"),
    user_service: UserService = Depends(get_user_service)
):
    return await user_service.get_user(user_id)

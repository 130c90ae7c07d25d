"""
Property API endpoints: listing with filters, create, fetch, partial update and delete.
"""

from fastapi import APIRouter, Depends, Query, Path, Response, status
from typing import Optional, List

from realty_api.services.property import PropertyService
from realty_api.schemas.common import MessageResponse
from realty_api.schemas.property import (
    PropertyCreate,
    PropertyUpdate,
    PropertyListItem,
    PropertyDetail,
    PropertyListParams
)
from realty_api.utils.dependencies import get_property_service

TOTAL_COUNT_HEADER = "x-total-count"

router = APIRouter(prefix="/properties", tags=["Properties"])


@router.get(
    "",
    response_model=List[PropertyListItem],
    status_code=status.HTTP_200_OK,
    summary="List properties",
    description="Paginated, sorted and filtered property list. The total match count is returned in the x-total-count header."
)
async def list_properties(
    response: Response,
    start: Optional[str] = Query(None, alias="_start", description="Offset of the first row"),
    end: Optional[str] = Query(None, alias="_end", description="Page size"),
    sort: Optional[str] = Query(None, alias="_sort", description="Sort field (default _id)"),
    order: Optional[str] = Query(None, alias="_order", description="'desc' for descending, anything else ascending"),
    title_like: Optional[str] = Query(None, description="Case-insensitive title substring"),
    property_type: Optional[str] = Query(None, alias="propertyType", description="Exact type, or 'All'"),
    creator: Optional[str] = Query(None, description="Creator user id"),
    creator_eq: Optional[str] = Query(None, description="Alternate spelling of creator"),
    property_service: PropertyService = Depends(get_property_service)
):
    params = PropertyListParams(
        start=start,
        end=end,
        sort=sort,
        order=order,
        title_like=title_like,
        property_type=property_type,
        creator=creator,
        creator_eq=creator_eq
    )

    properties, total_count = await property_service.search_properties(params)

    response.headers[TOTAL_COUNT_HEADER] = str(total_count)
    return properties


@router.post(
    "",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Create property",
    description="Create a property for the user with the given email. The photo is uploaded to the image host."
)
async def create_property(
    property_data: PropertyCreate,
    property_service: PropertyService = Depends(get_property_service)
) -> MessageResponse:
    await property_service.create_property(property_data)
    return MessageResponse(message="Property created successfully")


@router.get(
    "/show/{property_id}",
    response_model=PropertyDetail,
    status_code=status.HTTP_200_OK,
    summary="Get property details"
)
@router.get(
    "/{property_id}",
    response_model=PropertyDetail,
    status_code=status.HTTP_200_OK,
    summary="Get property details",
    description="Get a property with every field of its creator."
)
async def get_property(
    property_id: str = Path(..., description="Property ID"),
    property_service: PropertyService = Depends(get_property_service)
):
    return await property_service.get_property(property_id)


@router.patch(
    "/{property_id}",
    response_model=PropertyDetail,
    status_code=status.HTTP_200_OK,
    summary="Update property",
    description="Replace the given fields of a property. The photo is only changed when a new one is supplied."
)
async def update_property(
    property_data: PropertyUpdate,
    property_id: str = Path(..., description="Property ID"),
    property_service: PropertyService = Depends(get_property_service)
):
    return await property_service.update_property(property_id, property_data)


@router.delete(
    "/{property_id}",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Delete property"
)
async def delete_property(
    property_id: str = Path(..., description="Property ID"),
    property_service: PropertyService = Depends(get_property_service)
) -> MessageResponse:
    await property_service.delete_property(property_id)
    return MessageResponse(message="Property deleted successfully")

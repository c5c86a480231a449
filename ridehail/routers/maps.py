"""
Maps router — GET /v1/maps/coordinates, /v1/maps/distance-time, /v1/maps/suggestions
"""
from fastapi import APIRouter, Depends, Query

from ridehail.dependencies import get_geocoder
from ridehail.middleware.auth import Principal, get_current_principal
from ridehail.schemas.schemas import CoordinateOut, DistanceTimeResponse
from ridehail.services.geocoding import GeocodingGateway

router = APIRouter(prefix="/v1/maps", tags=["Maps"])


@router.get("/coordinates", response_model=CoordinateOut)
async def get_coordinates(
    address: str = Query(..., min_length=3),
    principal: Principal = Depends(get_current_principal),
    geocoder: GeocodingGateway = Depends(get_geocoder),
):
    coordinate = await geocoder.resolve_address(address)
    return CoordinateOut(**coordinate.as_dict())


@router.get("/distance-time", response_model=DistanceTimeResponse)
async def get_distance_time(
    origin: str = Query(..., min_length=3),
    destination: str = Query(..., min_length=3),
    principal: Principal = Depends(get_current_principal),
    geocoder: GeocodingGateway = Depends(get_geocoder),
):
    origin_coords = await geocoder.resolve_address(origin)
    destination_coords = await geocoder.resolve_address(destination)
    metrics = await geocoder.route_metrics(origin_coords, destination_coords)
    return DistanceTimeResponse(
        origin=origin,
        destination=destination,
        origin_coords=CoordinateOut(**origin_coords.as_dict()),
        destination_coords=CoordinateOut(**destination_coords.as_dict()),
        distance_meters=metrics.distance_meters,
        duration_seconds=metrics.duration_seconds,
    )


@router.get("/suggestions", response_model=list[str])
async def get_suggestions(
    input: str = Query(..., min_length=3),
    principal: Principal = Depends(get_current_principal),
    geocoder: GeocodingGateway = Depends(get_geocoder),
):
    return await geocoder.suggest(input)

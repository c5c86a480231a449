"""
Drivers router — POST /v1/drivers/me/location, PATCH /v1/drivers/me/status

Keeps the driver geo index that ride matching searches in step with the
driver's position and availability.
"""
import logging

from fastapi import APIRouter, Depends, status

from ridehail.dependencies import get_locator
from ridehail.middleware.auth import Principal, get_current_driver
from ridehail.schemas.schemas import DriverStatusEnum, DriverStatusResponse, LocationUpdateRequest
from ridehail.services.geo import Coordinate
from ridehail.services.locator import DriverLocator

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/v1/drivers", tags=["Drivers"])


@router.post("/me/location", status_code=status.HTTP_204_NO_CONTENT)
async def update_location(
    payload: LocationUpdateRequest,
    driver: Principal = Depends(get_current_driver),
    locator: DriverLocator = Depends(get_locator),
):
    """High-frequency endpoint: writes straight to the Redis GEO index."""
    await locator.update_location(driver.id, Coordinate(lat=payload.lat, lng=payload.lng))


@router.patch("/me/status", response_model=DriverStatusResponse)
async def update_driver_status(
    new_status: DriverStatusEnum,
    driver: Principal = Depends(get_current_driver),
    locator: DriverLocator = Depends(get_locator),
):
    """Going offline drops the driver from matching until the next location update."""
    if new_status == DriverStatusEnum.offline:
        await locator.remove(driver.id)
    logger.info("Driver %s is now %s", driver.id, new_status.value)
    return DriverStatusResponse(id=driver.id, status=new_status)

"""
Rides router — POST /v1/rides, GET /v1/rides/fare, GET /v1/rides/{id},
               POST /v1/rides/{id}/accept, /start, /end
"""
from fastapi import APIRouter, Depends, Query, status

from ridehail.dependencies import get_ride_engine
from ridehail.middleware.auth import Principal, get_current_principal
from ridehail.schemas.schemas import (
    CoordinateOut, FareQuoteResponse, RideCreateRequest, RideCreateResponse, RideResponse, StartRideRequest,
)
from ridehail.services.lifecycle import RideLifecycleEngine

router = APIRouter(prefix="/v1/rides", tags=["Rides"])


@router.post("", status_code=status.HTTP_201_CREATED, response_model=RideCreateResponse)
async def create_ride(
    payload: RideCreateRequest,
    principal: Principal = Depends(get_current_principal),
    engine: RideLifecycleEngine = Depends(get_ride_engine),
):
    """Price the trip, persist it as pending and offer it to nearby drivers."""
    ride = await engine.request_ride(principal, payload.pickup, payload.destination, payload.vehicle_type)
    # The creating rider is the one party that gets the OTP back.
    return RideCreateResponse.model_validate(ride)


@router.get("/fare", response_model=FareQuoteResponse)
async def get_fare(
    pickup: str = Query(..., min_length=3),
    destination: str = Query(..., min_length=3),
    vehicle_type: str = Query(...),
    principal: Principal = Depends(get_current_principal),
    engine: RideLifecycleEngine = Depends(get_ride_engine),
):
    quote = await engine.quote_fare(pickup, destination, vehicle_type)
    return FareQuoteResponse(
        pickup=CoordinateOut(**quote.pickup.as_dict()),
        destination=CoordinateOut(**quote.destination.as_dict()),
        distance_meters=quote.distance_meters,
        duration_seconds=quote.duration_seconds,
        vehicle_type=quote.vehicle_type,
        fare=quote.fare,
    )


@router.get("/{ride_id}", response_model=RideResponse)
async def get_ride(
    ride_id: str,
    principal: Principal = Depends(get_current_principal),
    engine: RideLifecycleEngine = Depends(get_ride_engine),
):
    ride = await engine.get_ride(ride_id, principal)
    return RideResponse.model_validate(ride)


@router.post("/{ride_id}/accept", response_model=RideResponse)
async def accept_ride(
    ride_id: str,
    principal: Principal = Depends(get_current_principal),
    engine: RideLifecycleEngine = Depends(get_ride_engine),
):
    ride = await engine.accept_ride(ride_id, principal)
    return RideResponse.model_validate(ride)


@router.post("/{ride_id}/start", response_model=RideResponse)
async def start_ride(
    ride_id: str,
    payload: StartRideRequest,
    principal: Principal = Depends(get_current_principal),
    engine: RideLifecycleEngine = Depends(get_ride_engine),
):
    ride = await engine.start_ride(ride_id, payload.otp, principal)
    return RideResponse.model_validate(ride)


@router.post("/{ride_id}/end", response_model=RideResponse)
async def end_ride(
    ride_id: str,
    principal: Principal = Depends(get_current_principal),
    engine: RideLifecycleEngine = Depends(get_ride_engine),
):
    ride = await engine.end_ride(ride_id, principal)
    return RideResponse.model_validate(ride)

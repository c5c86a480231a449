from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, field_validator


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class VehicleTypeEnum(str, Enum):
    auto = "auto"
    car = "car"
    moto = "moto"


class RideStatusEnum(str, Enum):
    pending = "pending"
    accepted = "accepted"
    ongoing = "ongoing"
    completed = "completed"


class RoleEnum(str, Enum):
    rider = "rider"
    driver = "driver"


class DriverStatusEnum(str, Enum):
    offline = "offline"
    available = "available"


# ---------------------------------------------------------------------------
# Ride schemas
# ---------------------------------------------------------------------------

class RideCreateRequest(BaseModel):
    pickup: str = Field(..., min_length=3, max_length=512)
    destination: str = Field(..., min_length=3, max_length=512)
    # Plain string so unknown types reach the fare calculator and map to unknown_vehicle_type
    vehicle_type: str

    @field_validator("pickup", "destination")
    @classmethod
    def strip_address(cls, v: str) -> str:
        return v.strip()


class CoordinateOut(BaseModel):
    lat: float
    lng: float


class RideResponse(BaseModel):
    id: str
    rider_id: str
    driver_id: Optional[str] = None
    pickup_address: str
    pickup_lat: float
    pickup_lng: float
    destination_address: str
    dest_lat: float
    dest_lng: float
    distance_meters: float
    duration_seconds: float
    fare: Decimal
    vehicle_type: VehicleTypeEnum
    status: RideStatusEnum
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class RideCreateResponse(RideResponse):
    """Returned to the requesting rider only; carries the OTP they hand to the driver."""
    otp: str


class StartRideRequest(BaseModel):
    otp: str = Field(..., min_length=6, max_length=6, pattern=r"^\d{6}$")


class FareQuoteResponse(BaseModel):
    pickup: CoordinateOut
    destination: CoordinateOut
    distance_meters: float
    duration_seconds: float
    vehicle_type: VehicleTypeEnum
    fare: Decimal


# ---------------------------------------------------------------------------
# Maps schemas
# ---------------------------------------------------------------------------

class DistanceTimeResponse(BaseModel):
    origin: str
    destination: str
    origin_coords: CoordinateOut
    destination_coords: CoordinateOut
    distance_meters: float
    duration_seconds: float


# ---------------------------------------------------------------------------
# Driver schemas
# ---------------------------------------------------------------------------

class LocationUpdateRequest(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class DriverStatusResponse(BaseModel):
    id: str
    status: DriverStatusEnum

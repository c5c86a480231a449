"""
Fare calculation service.

fare = base[vehicle] + (distance_meters / 1000) * per_km[vehicle]
"""
import math
from decimal import Decimal, ROUND_HALF_UP

from ridehail.exceptions import InvalidInput, UnknownVehicleType
from ridehail.schemas.schemas import VehicleTypeEnum

# ---------------------------------------------------------------------------
# Vehicle rates (same currency unit throughout)
# ---------------------------------------------------------------------------
BASE_FARE: dict[str, float] = {"auto": 30, "car": 50, "moto": 20}
RATE_PER_KM: dict[str, float] = {"auto": 10, "car": 15, "moto": 7}

_CENT = Decimal("0.01")


class FareCalculator:
    """Prices trips from a fixed fare schedule. No I/O."""

    def __init__(
        self,
        base_fare: dict[str, float] | None = None,
        rate_per_km: dict[str, float] | None = None,
    ):
        self.base_fare = dict(base_fare or BASE_FARE)
        self.rate_per_km = dict(rate_per_km or RATE_PER_KM)

    def vehicle_type(self, value: str | VehicleTypeEnum) -> VehicleTypeEnum:
        """Validate a vehicle type against the enum and this calculator's schedule."""
        try:
            vehicle = VehicleTypeEnum(value)
        except ValueError:
            raise UnknownVehicleType(f"Unknown vehicle type: {value!r}")
        if vehicle.value not in self.base_fare or vehicle.value not in self.rate_per_km:
            raise UnknownVehicleType(f"No fare schedule for vehicle type: {vehicle.value}")
        return vehicle

    def compute_fare(self, vehicle_type: str | VehicleTypeEnum, distance_meters: float) -> Decimal:
        vehicle = self.vehicle_type(vehicle_type)
        if isinstance(distance_meters, bool) or not isinstance(distance_meters, (int, float)):
            raise InvalidInput("Distance must be a number")
        if not math.isfinite(distance_meters) or distance_meters < 0:
            raise InvalidInput("Distance must be a finite, non-negative number of meters")

        distance_km = Decimal(str(distance_meters)) / Decimal(1000)
        fare = Decimal(str(self.base_fare[vehicle.value])) + distance_km * Decimal(
            str(self.rate_per_km[vehicle.value])
        )
        return fare.quantize(_CENT, rounding=ROUND_HALF_UP)

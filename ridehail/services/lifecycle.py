"""
Ride lifecycle engine.

    pending --accept--> accepted --start(otp)--> ongoing --end--> completed

Every transition checks the acting principal, re-reads the ride, and then
applies a conditional update on the expected pre-state. Calling a transition a
second time fails with InvalidState; that is what keeps a ride to one driver and
its OTP to one successful check.

request_ride runs the whole pipeline before returning: geocode, route, price,
persist, locate drivers near pickup, push ``new-ride`` to each of them.
"""
import logging
import secrets
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from redis.exceptions import RedisError

from ridehail.config import get_settings
from ridehail.exceptions import InvalidInput, InvalidOtp, InvalidState, RideNotFound, Unauthorized
from ridehail.middleware.auth import Principal
from ridehail.models.ride import Ride
from ridehail.schemas.schemas import RideResponse, RideStatusEnum, RoleEnum, VehicleTypeEnum
from ridehail.services.geo import Coordinate
from ridehail.services.geocoding import GeocodingGateway
from ridehail.services.locator import DriverLocator
from ridehail.services.notifications import (
    NEW_RIDE,
    RIDE_CONFIRMED,
    RIDE_ENDED,
    RIDE_STARTED,
    NotificationDispatcher,
    PresenceDirectory,
)
from ridehail.services.pricing import FareCalculator
from ridehail.services.repository import RideRepository

logger = logging.getLogger(__name__)

OTP_LENGTH = 6

# Each status has exactly one successor; completed is terminal.
NEXT_STATUS: dict[RideStatusEnum, RideStatusEnum] = {
    RideStatusEnum.pending: RideStatusEnum.accepted,
    RideStatusEnum.accepted: RideStatusEnum.ongoing,
    RideStatusEnum.ongoing: RideStatusEnum.completed,
}


def can_transition(current: str, next_status: str | RideStatusEnum) -> bool:
    try:
        return NEXT_STATUS.get(RideStatusEnum(current)) == RideStatusEnum(next_status)
    except ValueError:
        return False


def generate_otp() -> str:
    """Uniformly random, zero-padded six-digit code."""
    return f"{secrets.randbelow(10 ** OTP_LENGTH):0{OTP_LENGTH}d}"


def ride_payload(ride: Ride) -> dict[str, Any]:
    """Public view of a ride for notifications. Never includes the OTP."""
    return RideResponse.model_validate(ride).model_dump(mode="json")


@dataclass(frozen=True)
class FareQuote:
    pickup: Coordinate
    destination: Coordinate
    distance_meters: float
    duration_seconds: float
    vehicle_type: VehicleTypeEnum
    fare: Decimal


class RideLifecycleEngine:
    def __init__(
        self,
        repository: RideRepository,
        geocoder: GeocodingGateway,
        fares: FareCalculator,
        locator: DriverLocator,
        notifier: NotificationDispatcher,
        presence: PresenceDirectory,
        search_radius_km: float | None = None,
    ):
        self.repository = repository
        self.geocoder = geocoder
        self.fares = fares
        self.locator = locator
        self.notifier = notifier
        self.presence = presence
        self.search_radius_km = (
            search_radius_km if search_radius_km is not None else get_settings().matching_radius_km
        )

    # ------------------------------------------------------------------
    # Pricing
    # ------------------------------------------------------------------

    async def quote_fare(self, pickup: str, destination: str, vehicle_type: str) -> FareQuote:
        """Geocode, route and price a trip without creating anything."""
        vehicle = self.fares.vehicle_type(vehicle_type)
        _require_address(pickup, "Pickup")
        _require_address(destination, "Destination")

        pickup_coord = await self.geocoder.resolve_address(pickup)
        dest_coord = await self.geocoder.resolve_address(destination)
        metrics = await self.geocoder.route_metrics(pickup_coord, dest_coord)
        fare = self.fares.compute_fare(vehicle, metrics.distance_meters)

        return FareQuote(
            pickup=pickup_coord,
            destination=dest_coord,
            distance_meters=metrics.distance_meters,
            duration_seconds=metrics.duration_seconds,
            vehicle_type=vehicle,
            fare=fare,
        )

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def request_ride(self, rider: Principal, pickup: str, destination: str, vehicle_type: str) -> Ride:
        if rider.role != RoleEnum.rider:
            raise Unauthorized("Only riders can request rides")

        quote = await self.quote_fare(pickup, destination, vehicle_type)

        ride = await self.repository.create(
            rider_id=rider.id,
            pickup_address=pickup.strip(),
            pickup_lat=quote.pickup.lat,
            pickup_lng=quote.pickup.lng,
            destination_address=destination.strip(),
            dest_lat=quote.destination.lat,
            dest_lng=quote.destination.lng,
            distance_meters=quote.distance_meters,
            duration_seconds=quote.duration_seconds,
            fare=quote.fare,
            vehicle_type=quote.vehicle_type.value,
            otp=generate_otp(),
            status=RideStatusEnum.pending.value,
        )
        logger.info(
            "Ride %s requested by rider=%s vehicle=%s fare=%s", ride.id, rider.id, ride.vehicle_type, ride.fare
        )

        try:
            drivers = await self.locator.find_nearby(quote.pickup, self.search_radius_km)
        except RedisError as exc:
            logger.error("Driver lookup failed for ride=%s, no drivers notified: %s", ride.id, exc)
            drivers = []

        await self.notifier.broadcast(
            [driver.connection_handle for driver in drivers], NEW_RIDE, ride_payload(ride)
        )
        logger.info("Ride %s offered to %d nearby drivers", ride.id, len(drivers))
        return ride

    async def accept_ride(self, ride_id: str, driver: Principal) -> Ride:
        _require_driver(driver)
        ride = await self._load(ride_id)
        _require_transition(ride, RideStatusEnum.accepted)

        updated = await self._advance(ride, RideStatusEnum.accepted, driver_id=driver.id)

        logger.info("Ride %s accepted by driver=%s", ride_id, driver.id)
        await self._notify_rider(updated, RIDE_CONFIRMED)
        return updated

    async def start_ride(self, ride_id: str, otp: str, driver: Principal) -> Ride:
        _require_driver(driver)
        ride = await self._load(ride_id, include_otp=True)
        _require_transition(ride, RideStatusEnum.ongoing)
        _require_assigned(ride, driver)
        if not isinstance(otp, str) or not secrets.compare_digest(ride.otp.encode(), otp.encode()):
            logger.info("Invalid OTP presented for ride=%s by driver=%s", ride_id, driver.id)
            raise InvalidOtp()

        updated = await self._advance(ride, RideStatusEnum.ongoing, expected_driver_id=driver.id)

        logger.info("Ride %s started by driver=%s", ride_id, driver.id)
        await self._notify_rider(updated, RIDE_STARTED)
        return updated

    async def end_ride(self, ride_id: str, driver: Principal) -> Ride:
        _require_driver(driver)
        ride = await self._load(ride_id)
        _require_transition(ride, RideStatusEnum.completed)
        _require_assigned(ride, driver)

        updated = await self._advance(ride, RideStatusEnum.completed, expected_driver_id=driver.id)

        logger.info("Ride %s completed by driver=%s", ride_id, driver.id)
        await self._notify_rider(updated, RIDE_ENDED)
        return updated

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_ride(self, ride_id: str, principal: Principal) -> Ride:
        """
        A ride is visible to its rider, to its assigned driver, and to any
        driver while it is still pending (they were offered it).
        """
        ride = await self._load(ride_id)
        if principal.role == RoleEnum.rider and ride.rider_id == principal.id:
            return ride
        if principal.role == RoleEnum.driver and (
            ride.driver_id == principal.id or ride.status == RideStatusEnum.pending.value
        ):
            return ride
        raise Unauthorized("Not your ride")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _load(self, ride_id: str, include_otp: bool = False) -> Ride:
        ride = await self.repository.get_by_id(ride_id, include_otp=include_otp)
        if ride is None:
            raise RideNotFound()
        return ride

    async def _advance(self, ride: Ride, target: RideStatusEnum, **conditions) -> Ride:
        """Move ``ride`` to ``target``, provided nobody changed it since it was read."""
        updated = await self.repository.update_status(
            ride.id, expected_status=ride.status, new_status=target.value, **conditions
        )
        if updated is not None:
            return updated

        # Another transition won between our read and the conditional update.
        current = await self.repository.get_by_id(ride.id)
        if current is None:
            raise RideNotFound()
        raise InvalidState(f"Ride is {current.status}")

    async def _notify_rider(self, ride: Ride, event_type: str) -> None:
        try:
            handle = await self.presence.handle_for(RoleEnum.rider, ride.rider_id)
        except RedisError as exc:
            logger.error("Presence lookup failed for rider=%s, %s not sent: %s", ride.rider_id, event_type, exc)
            return
        await self.notifier.notify(handle, event_type, ride_payload(ride))


def _require_address(value: str, field: str) -> None:
    if not isinstance(value, str) or not value.strip():
        raise InvalidInput(f"{field} address is required")


def _require_driver(principal: Principal) -> None:
    if principal.role != RoleEnum.driver:
        raise Unauthorized("Only drivers can perform this transition")


def _require_transition(ride: Ride, target: RideStatusEnum) -> None:
    if not can_transition(ride.status, target):
        raise InvalidState(f"Ride is {ride.status}, cannot move to {target.value}")


def _require_assigned(ride: Ride, driver: Principal) -> None:
    if ride.driver_id != driver.id:
        raise Unauthorized("Ride is assigned to another driver")

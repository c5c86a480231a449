"""
Error taxonomy for the ride engine.

Every failure surfaced to a client maps to one of these kinds, each carrying a
stable ``code`` and the HTTP status the API layer renders it with.
"""
from fastapi import status


class RideHailError(Exception):
    code = "ridehail_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Ride engine error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)


class InvalidInput(RideHailError):
    """Malformed or missing caller data. Raised before any I/O."""
    code = "invalid_input"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid input"


class UnknownVehicleType(InvalidInput):
    code = "unknown_vehicle_type"
    default_message = "Unknown vehicle type"


class AddressNotFound(RideHailError):
    code = "address_not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Coordinates not found for the provided address"


class ProviderUnavailable(RideHailError):
    code = "provider_unavailable"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Mapping provider unavailable"


class RideNotFound(RideHailError):
    code = "ride_not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Ride not found"


class InvalidState(RideHailError):
    """The ride is not in the state the transition requires."""
    code = "invalid_state"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Ride is not in a valid state for this operation"


class Unauthorized(RideHailError):
    code = "unauthorized"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Not allowed to perform this operation on the ride"


class InvalidOtp(RideHailError):
    code = "invalid_otp"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Invalid OTP"

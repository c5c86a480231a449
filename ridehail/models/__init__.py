from ridehail.models.ride import Ride

__all__ = ["Ride"]

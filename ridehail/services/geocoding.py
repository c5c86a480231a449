"""
Geocoding gateway over openrouteservice.

  resolve_address  free text          -> Coordinate
  route_metrics    Coordinate pair    -> distance (m) / duration (s)
  suggest          partial free text  -> address labels

Provider failures are retried with exponential backoff, then surface as
ProviderUnavailable. There is no fallback estimate: a route the provider cannot
price is an error, never a guessed distance.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Any

import httpx

from ridehail.config import get_settings
from ridehail.exceptions import AddressNotFound, InvalidInput, ProviderUnavailable
from ridehail.services.geo import Coordinate

logger = logging.getLogger(__name__)

GEOCODE_PATH = "/geocode/search"
DIRECTIONS_PATH = "/v2/directions/driving-car"

_RETRYABLE_STATUS = {429, 500, 502, 503, 504}


@dataclass(frozen=True)
class RouteMetrics:
    distance_meters: float
    duration_seconds: float


class _RetryableProviderError(Exception):
    pass


class GeocodingGateway:
    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: str,
        country: str = "IN",
        country_name: str = "India",
        max_retries: int = 2,
        backoff_seconds: float = 0.5,
    ):
        self.client = client
        self.api_key = api_key
        self.country = country
        self.country_name = country_name
        self.max_retries = max_retries
        self.backoff_seconds = backoff_seconds

    @classmethod
    def from_settings(cls, client: httpx.AsyncClient) -> "GeocodingGateway":
        settings = get_settings()
        return cls(
            client,
            api_key=settings.ors_api_key,
            country=settings.geocoding_country,
            country_name=settings.geocoding_country_name,
            max_retries=settings.geocoding_max_retries,
            backoff_seconds=settings.geocoding_backoff_seconds,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def resolve_address(self, address: str) -> Coordinate:
        text = _require_text(address, "Address")
        data = await self._get(GEOCODE_PATH, {"text": text, "boundary.country": self.country, "size": 1})
        features = _features(data)
        if not features:
            raise AddressNotFound(f"Coordinates not found for address: {text}")
        try:
            lng, lat = features[0]["geometry"]["coordinates"][:2]
            return Coordinate(lat=float(lat), lng=float(lng))
        except (KeyError, IndexError, TypeError, ValueError, InvalidInput) as exc:
            logger.error("Malformed geocode payload for %r: %s", text, exc)
            raise ProviderUnavailable("Malformed geocoding response")

    async def route_metrics(self, origin: Coordinate, destination: Coordinate) -> RouteMetrics:
        if not isinstance(origin, Coordinate) or not isinstance(destination, Coordinate):
            raise InvalidInput("Origin and destination coordinates are required")
        data = await self._get(
            DIRECTIONS_PATH,
            {
                "start": f"{origin.lng},{origin.lat}",
                "end": f"{destination.lng},{destination.lat}",
            },
        )
        try:
            segment = data["features"][0]["properties"]["segments"][0]
            metrics = RouteMetrics(
                distance_meters=float(segment["distance"]),
                duration_seconds=float(segment["duration"]),
            )
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            logger.error("No valid route data between %s and %s: %s", origin, destination, exc)
            raise ProviderUnavailable("No valid route data found in response")
        if metrics.distance_meters < 0 or metrics.duration_seconds < 0:
            raise ProviderUnavailable("Provider returned a negative route metric")
        return metrics

    async def suggest(self, partial: str) -> list[str]:
        text = _require_text(partial, "Input")
        data = await self._get(
            GEOCODE_PATH,
            {"text": f"{text}, {self.country_name}", "boundary.country": self.country},
        )
        labels = []
        for feature in _features(data):
            label = (feature.get("properties") or {}).get("label") if isinstance(feature, dict) else None
            if label:
                labels.append(label)
        return labels

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _get(self, path: str, params: dict[str, Any]) -> Any:
        params = {"api_key": self.api_key, **params}
        attempts = self.max_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                return await self._get_once(path, params)
            except _RetryableProviderError as exc:
                if attempt == attempts:
                    logger.error("Provider call %s failed after %d attempts: %s", path, attempts, exc)
                    raise ProviderUnavailable()
                wait = self.backoff_seconds * 2 ** (attempt - 1)
                logger.warning("Provider call %s failed (attempt %d): %s; retrying in %.2fs", path, attempt, exc, wait)
                await asyncio.sleep(wait)
        raise ProviderUnavailable()

    async def _get_once(self, path: str, params: dict[str, Any]) -> Any:
        try:
            resp = await self.client.get(path, params=params)
        except httpx.HTTPError as exc:
            raise _RetryableProviderError(f"{type(exc).__name__}: {exc}")

        if resp.status_code in _RETRYABLE_STATUS:
            raise _RetryableProviderError(f"HTTP {resp.status_code}")
        if resp.status_code >= 400:
            logger.error("Provider rejected %s: HTTP %s %s", path, resp.status_code, resp.text[:200])
            raise ProviderUnavailable(f"Mapping provider error {resp.status_code}")
        try:
            return resp.json()
        except ValueError:
            raise ProviderUnavailable("Mapping provider returned invalid JSON")


def _require_text(value: str, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidInput(f"{field} is required")
    return value.strip()


def _features(data: Any) -> list:
    if not isinstance(data, dict):
        raise ProviderUnavailable("Malformed geocoding response")
    features = data.get("features")
    if features is None:
        return []
    if not isinstance(features, list):
        raise ProviderUnavailable("Malformed geocoding response")
    return features

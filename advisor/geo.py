"""Location resolution: place names and device coordinates to a Location."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol, Tuple

import requests

from advisor.config import settings
from advisor.domain import Coordinates, Location
from advisor.errors import GeocodingError, LocationNotFound, LocationRequired
from utils.logging_utils import get_tagged_logger, mask_secret_params

logger = get_tagged_logger(__name__, tag="geo")

session = requests.Session()

GOOGLE_GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"
UNKNOWN_PLACE = "Unknown"

# Place names recognised inside free-text questions. Korean names map to the
# English spelling passed to the geocoder; the user's own wording is kept as
# the display name.
KNOWN_PLACES = {
    "서울": "Seoul",
    "부산": "Busan",
    "대구": "Daegu",
    "인천": "Incheon",
    "광주": "Gwangju",
    "대전": "Daejeon",
    "울산": "Ulsan",
    "세종": "Sejong",
    "수원": "Suwon",
    "제주": "Jeju",
    "강릉": "Gangneung",
    "전주": "Jeonju",
    "포항": "Pohang",
    "seoul": "Seoul",
    "busan": "Busan",
    "daegu": "Daegu",
    "incheon": "Incheon",
    "gwangju": "Gwangju",
    "daejeon": "Daejeon",
    "ulsan": "Ulsan",
    "jeju": "Jeju",
    "tokyo": "Tokyo",
    "new york": "New York",
    "london": "London",
    "paris": "Paris",
}


@dataclass
class ReverseGeocodeResult:
    """Address components that make up a canonical place name."""
    locality: Optional[str] = None
    country: Optional[str] = None

    def display_name(self) -> str:
        parts = [p for p in (self.locality, self.country) if p]
        return ", ".join(parts) if parts else UNKNOWN_PLACE


class Geocoder(Protocol):
    """Forward and reverse geocoding."""

    def forward(self, text: str) -> Optional[Tuple[float, float]]:
        """Return (lat, lon) for a place name, or None when nothing matches."""
        ...

    def reverse(self, latitude: float, longitude: float) -> Optional[ReverseGeocodeResult]:
        """Return address components for coordinates, or None when nothing matches."""
        ...


class GoogleGeocoder:
    """Geocoder backed by the Google Geocoding REST API."""

    def __init__(self, api_key: str | None = None, language: str = "ko") -> None:
        self.api_key = api_key if api_key is not None else settings.google_maps_api_key
        self.language = language

    def _get(self, params: dict) -> list:
        """Run one geocode request and return its result list (possibly empty)."""
        query = {**params, "key": self.api_key, "language": self.language}
        try:
            resp = session.get(GOOGLE_GEOCODE_URL, params=query, timeout=settings.http_timeout_seconds)
            resp.raise_for_status()
            data = resp.json()
        except (requests.exceptions.RequestException, ValueError) as exc:
            detail = mask_secret_params(str(exc))
            logger.error("Geocoding request failed: %s", detail)
            raise GeocodingError(detail) from exc

        status = data.get("status")
        if status == "ZERO_RESULTS":
            return []
        if status != "OK":
            logger.error("Geocoding returned status %s", status, extra={"error": data.get("error_message")})
            raise GeocodingError(f"Geocoding status {status}")
        return data.get("results") or []

    def forward(self, text: str) -> Optional[Tuple[float, float]]:
        results = self._get({"address": text})
        if not results:
            return None
        loc = results[0]["geometry"]["location"]
        return float(loc["lat"]), float(loc["lng"])

    def reverse(self, latitude: float, longitude: float) -> Optional[ReverseGeocodeResult]:
        results = self._get({"latlng": f"{latitude},{longitude}"})
        if not results:
            return None
        return _components_to_result(results[0].get("address_components") or [])


def _components_to_result(components: list) -> ReverseGeocodeResult:
    """Pick the locality (or top-level province, for city-provinces) and the country."""
    by_type: dict[str, str] = {}
    for comp in components:
        for t in comp.get("types", []):
            by_type.setdefault(t, comp.get("long_name"))
    locality = by_type.get("locality") or by_type.get("administrative_area_level_1")
    return ReverseGeocodeResult(locality=locality, country=by_type.get("country"))


def extract_place(utterance: str) -> Optional[str]:
    """Return the first known place mentioned in the utterance, in the user's own spelling."""
    if not utterance:
        return None
    lowered = utterance.lower()
    best: Optional[Tuple[int, str]] = None
    for name in KNOWN_PLACES:
        idx = lowered.find(name)
        if idx == -1:
            continue
        if best is None or idx < best[0]:
            best = (idx, utterance[idx:idx + len(name)])
    return best[1] if best else None


def resolve_location(
    place: str | None,
    coords: Coordinates | None,
    geocoder: Geocoder,
) -> Location:
    """Resolve a place name (preferred) or device coordinates into a Location.

    Raises LocationRequired when neither is given and LocationNotFound when the
    geocoder has no answer or is unreachable.
    """
    if place and place.strip():
        place = place.strip()
        query = KNOWN_PLACES.get(place.lower(), place)
        try:
            hit = geocoder.forward(query)
        except GeocodingError as exc:
            raise LocationNotFound(place) from exc
        if not hit:
            raise LocationNotFound(place)
        lat, lon = hit
        logger.info("Resolved place", extra={"place": place, "lat": lat, "lon": lon})
        return Location(lat=lat, lon=lon, name=place)

    if coords is not None:
        try:
            result = geocoder.reverse(coords.latitude, coords.longitude)
        except GeocodingError as exc:
            raise LocationNotFound() from exc
        if result is None:
            raise LocationNotFound()
        return Location(lat=coords.latitude, lon=coords.longitude, name=result.display_name())

    raise LocationRequired("A place name or device coordinates are required")

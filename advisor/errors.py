"""Exception taxonomy for the advisor pipeline.

Air-quality and pollen outages have no exception here: those fetchers
report unavailability as ``None`` (with a tagged ``FetchOutcome`` for logging)
and the orchestrator turns it into an apology.
"""

from __future__ import annotations


class AdvisorError(Exception):
    """Base class for advisor failures."""


class LocationRequired(AdvisorError):
    """Neither a place name nor device coordinates were supplied."""


class LocationNotFound(AdvisorError):
    """Geocoding returned no result for the given place or coordinates."""

    def __init__(self, place: str | None = None) -> None:
        self.place = place
        super().__init__(f"No geocoding result for {place!r}" if place else "No geocoding result")


class GeocodingError(AdvisorError):
    """The geocoding provider could not be reached or answered with an error."""


class WeatherUnavailable(AdvisorError):
    """The weather provider failed; the request cannot continue."""


class SummarizerError(AdvisorError):
    """The LLM summarizer failed. Carries the provider's HTTP-like status code."""

    def __init__(self, message: str, status_code: int = 500) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(message)


class UpstreamError(AdvisorError):
    """A summarizer failure on the general path, surfaced to the HTTP caller verbatim."""

    def __init__(self, message: str, status_code: int = 500) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(message)

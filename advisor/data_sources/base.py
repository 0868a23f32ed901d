"""Interfaces and helpers for environmental data sources."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Generic, Optional, Protocol, TypeVar

from advisor.domain import AirQuality, PollenReading, WeatherSnapshot

T = TypeVar("T")


class FetchFailure(str, Enum):
    """Why a soft-failing fetch produced no value."""
    HTTP_ERROR = "http_error"
    TIMEOUT = "timeout"
    MALFORMED = "malformed"
    EMPTY = "empty"


@dataclass
class FetchOutcome(Generic[T]):
    """Tagged result of a fetch: a value, or the cause of its absence."""
    value: Optional[T] = None
    failure: Optional[FetchFailure] = None
    detail: str = ""
    source: str = ""

    @property
    def ok(self) -> bool:
        return self.value is not None

    @classmethod
    def success(cls, value: T, *, source: str = "") -> "FetchOutcome[T]":
        return cls(value=value, source=source)

    @classmethod
    def failed(cls, failure: FetchFailure, detail: str = "", *, source: str = "") -> "FetchOutcome[T]":
        return cls(value=None, failure=failure, detail=detail, source=source)


class EnvironmentDataSource(Protocol):
    """Interface for anything that can provide weather, air-quality and pollen data."""

    def fetch_weather(self, latitude: float, longitude: float) -> WeatherSnapshot:
        """Return current conditions with the hourly and daily series; raise WeatherUnavailable on failure."""
        ...

    def fetch_air_quality(self, latitude: float, longitude: float) -> Optional[AirQuality]:
        """Return particulate readings, or None when unavailable."""
        ...

    def fetch_pollen(self, latitude: float, longitude: float) -> Optional[PollenReading]:
        """Return the highest-risk pollen reading, or None when unavailable."""
        ...


@dataclass
class CallableEnvironmentDataSource(EnvironmentDataSource):
    """Wrap three callables so providers can be swapped (tests, alternate APIs)."""

    weather: Callable[[float, float], WeatherSnapshot]
    air_quality: Callable[[float, float], Optional[AirQuality]]
    pollen: Callable[[float, float], Optional[PollenReading]]

    def fetch_weather(self, latitude: float, longitude: float) -> WeatherSnapshot:
        """Delegate to the configured weather callable."""
        return self.weather(latitude, longitude)

    def fetch_air_quality(self, latitude: float, longitude: float) -> Optional[AirQuality]:
        """Delegate to the configured air-quality callable."""
        return self.air_quality(latitude, longitude)

    def fetch_pollen(self, latitude: float, longitude: float) -> Optional[PollenReading]:
        """Delegate to the configured pollen callable."""
        return self.pollen(latitude, longitude)

"""Environmental data sources (weather, air quality, pollen)."""

from .base import CallableEnvironmentDataSource, EnvironmentDataSource, FetchFailure, FetchOutcome
from .ambee_client import fetch_pollen, fetch_pollen_outcome
from .openweather_client import fetch_air_quality, fetch_air_quality_outcome, fetch_weather


def build_data_source() -> EnvironmentDataSource:
    """Wire the live OpenWeather and Ambee fetchers into one data source."""
    return CallableEnvironmentDataSource(
        weather=fetch_weather,
        air_quality=fetch_air_quality,
        pollen=fetch_pollen,
    )


__all__ = [
    "build_data_source",
    "CallableEnvironmentDataSource",
    "EnvironmentDataSource",
    "FetchFailure",
    "FetchOutcome",
    "fetch_air_quality",
    "fetch_air_quality_outcome",
    "fetch_pollen",
    "fetch_pollen_outcome",
    "fetch_weather",
]

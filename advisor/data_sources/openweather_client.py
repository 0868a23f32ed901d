"""Helpers for fetching weather and air-quality data from the OpenWeather APIs."""
from __future__ import annotations

from typing import Any, List, Optional

import requests

from advisor.config import settings
from advisor.data_sources.base import FetchFailure, FetchOutcome
from advisor.domain import AirQuality, DailyForecast, HourlyPoint, WeatherSnapshot
from advisor.errors import WeatherUnavailable
from utils.logging_utils import get_tagged_logger, mask_secret_params

logger = get_tagged_logger(__name__, tag="data_sources/openweather")

session = requests.Session()

ONE_CALL_URL = "https://api.openweathermap.org/data/3.0/onecall"

# Tried in order; the older version answers when 3.0 is not enabled for the key.
AIR_POLLUTION_ENDPOINTS = (
    ("3.0", "https://api.openweathermap.org/data/3.0/air_pollution"),
    ("2.5", "https://api.openweathermap.org/data/2.5/air_pollution"),
)


def _opt_float(value: Any) -> Optional[float]:
    """Coerce numeric payload values, keeping missing ones as None."""
    if value is None:
        return None
    return float(value)


def parse_daily(raw_daily: list) -> List[DailyForecast]:
    """Convert One Call `daily` entries into DailyForecast records, oldest first."""
    days: List[DailyForecast] = []
    for d in sorted(raw_daily, key=lambda d: int(d["dt"])):
        temp = d.get("temp") or {}
        feels = d.get("feels_like") or {}
        conditions = d.get("weather") or [{}]
        days.append(DailyForecast(
            dt=int(d["dt"]),
            temp_day=_opt_float(temp.get("day")),
            temp_min=_opt_float(temp.get("min")),
            temp_max=_opt_float(temp.get("max")),
            feels_like_day=_opt_float(feels.get("day")),
            condition=str(conditions[0].get("description", "")),
            humidity=_opt_float(d.get("humidity")),
            uvi=_opt_float(d.get("uvi")),
            cloud=_opt_float(d.get("clouds")),
            dew_point=_opt_float(d.get("dew_point")),
            wind=_opt_float(d.get("wind_speed")),
            wind_deg=_opt_float(d.get("wind_deg")),
            pop=_opt_float(d.get("pop")),
            rain=float(d.get("rain") or 0.0),
            sunrise=d.get("sunrise"),
            sunset=d.get("sunset"),
        ))
    return days


def parse_one_call(data: dict) -> WeatherSnapshot:
    """Convert a One Call 3.0 payload into a WeatherSnapshot.

    Raises KeyError/TypeError/ValueError when the payload is not shaped like a
    One Call response.
    """
    current = data["current"]
    raw_hourly = sorted(data.get("hourly") or [], key=lambda h: int(h["dt"]))
    conditions = current.get("weather") or [{}]

    hourly: List[HourlyPoint] = [HourlyPoint(dt=int(h["dt"]), temp=float(h["temp"])) for h in raw_hourly]
    pop = raw_hourly[0].get("pop") if raw_hourly else None
    daily = parse_daily(data.get("daily") or [])
    today = daily[0] if daily else None

    return WeatherSnapshot(
        temp=float(current["temp"]),
        feels_like=_opt_float(current.get("feels_like")),
        temp_min=today.temp_min if today else None,
        temp_max=today.temp_max if today else None,
        condition=str(conditions[0].get("description", "")),
        humidity=_opt_float(current.get("humidity")),
        uvi=_opt_float(current.get("uvi")),
        cloud=_opt_float(current.get("clouds")),
        dew_point=_opt_float(current.get("dew_point")),
        visibility=_opt_float(current.get("visibility")),
        wind=_opt_float(current.get("wind_speed")),
        wind_deg=_opt_float(current.get("wind_deg")),
        pop=_opt_float(pop),
        rain=float((current.get("rain") or {}).get("1h", 0.0)),
        sunrise=current.get("sunrise"),
        sunset=current.get("sunset"),
        timezone_offset=int(data.get("timezone_offset") or 0),
        hourly=hourly,
        daily=daily,
    )


def fetch_weather(latitude: float, longitude: float) -> WeatherSnapshot:
    """Fetch current conditions plus the hourly and daily series for the given coordinates."""
    params = {
        "lat": latitude,
        "lon": longitude,
        "exclude": "minutely,alerts",
        "appid": settings.openweather_api_key,
        "units": settings.units,
        "lang": settings.weather_lang,
    }
    try:
        resp = session.get(ONE_CALL_URL, params=params, timeout=settings.http_timeout_seconds)
        resp.raise_for_status()
        data = resp.json()
    except requests.exceptions.Timeout as exc:
        logger.error("Weather request timed out: %s", mask_secret_params(str(exc)),
                     extra={"lat": latitude, "lon": longitude})
        raise WeatherUnavailable("Weather provider timed out") from exc
    except (requests.exceptions.RequestException, ValueError) as exc:
        detail = mask_secret_params(str(exc))
        logger.error("Weather request failed: %s", detail)
        raise WeatherUnavailable(f"Weather provider request failed: {detail}") from exc

    try:
        snapshot = parse_one_call(data)
    except (KeyError, IndexError, TypeError, ValueError) as exc:
        logger.error("Malformed One Call payload: %s", exc)
        raise WeatherUnavailable("Weather provider returned a malformed payload") from exc

    logger.debug(
        "Fetched weather",
        extra={"lat": latitude, "lon": longitude, "hourly_points": len(snapshot.hourly), "daily_points": len(snapshot.daily)},
    )
    return snapshot


def parse_air_pollution(data: dict) -> AirQuality:
    """Extract PM2.5/PM10 from an air_pollution payload (same shape in 2.5 and 3.0)."""
    components = data["list"][0]["components"]
    return AirQuality(pm25=float(components["pm2_5"]), pm10=float(components["pm10"]))


def _fetch_air_pollution(version: str, url: str, latitude: float, longitude: float) -> FetchOutcome[AirQuality]:
    """Call one air_pollution endpoint and tag the result."""
    source = f"openweather/air_pollution/{version}"
    params = {"lat": latitude, "lon": longitude, "appid": settings.openweather_api_key}
    try:
        resp = session.get(url, params=params, timeout=settings.http_timeout_seconds)
        resp.raise_for_status()
    except requests.exceptions.Timeout as exc:
        return FetchOutcome.failed(FetchFailure.TIMEOUT, mask_secret_params(str(exc)), source=source)
    except requests.exceptions.RequestException as exc:
        return FetchOutcome.failed(FetchFailure.HTTP_ERROR, mask_secret_params(str(exc)), source=source)

    try:
        data = resp.json()
        return FetchOutcome.success(parse_air_pollution(data), source=source)
    except (KeyError, IndexError, TypeError, ValueError) as exc:
        return FetchOutcome.failed(FetchFailure.MALFORMED, f"unexpected payload: {exc!r}", source=source)


def fetch_air_quality_outcome(latitude: float, longitude: float) -> FetchOutcome[AirQuality]:
    """Try the primary air_pollution version, then fall back once to the older one."""
    outcome: FetchOutcome[AirQuality] = FetchOutcome.failed(FetchFailure.EMPTY, "no endpoints configured")
    for version, url in AIR_POLLUTION_ENDPOINTS:
        outcome = _fetch_air_pollution(version, url, latitude, longitude)
        if outcome.ok:
            return outcome
        logger.warning(
            "Air quality %s request failed (%s); trying next version",
            version,
            outcome.failure.value if outcome.failure else "unknown",
            extra={"detail": outcome.detail},
        )
    logger.error(
        "All air quality endpoints failed",
        extra={"lat": latitude, "lon": longitude, "failure": outcome.failure},
    )
    return outcome


def fetch_air_quality(latitude: float, longitude: float) -> Optional[AirQuality]:
    """Return PM readings, or None when every endpoint failed."""
    return fetch_air_quality_outcome(latitude, longitude).value

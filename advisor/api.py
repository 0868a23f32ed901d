"""HTTP API for the weather advisor."""

import hmac
from typing import List, Optional

import redis
from fastapi import APIRouter, Depends, Header, HTTPException, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from . import conversation_manager
from .config import settings
from .data_sources import build_data_source
from .domain import Coordinates, HourlyTemp
from .errors import GeocodingError, UpstreamError, WeatherUnavailable
from .geo import UNKNOWN_PLACE, GoogleGeocoder
from .graph import sample_hourly_temps
from .orchestrator import AdviceRequest, WeatherAdvisor
from .profiles import build_profile_store
from .summarizers import build_summarizer
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="api")

_redis_client = None
if settings.api_key_redis_url:
    try:
        _redis_client = redis.Redis.from_url(settings.api_key_redis_url)
        logger.info("API key checks will use Redis backend")
    except (redis.exceptions.RedisError, ValueError) as exc:
        logger.warning("Failed to connect to Redis for API key checks; falling back to static key",
                       extra={"error": str(exc)})


def require_api_key(x_api_key: str | None = Header(default=None)):
    """
    Validate X-API-Key header against Redis (if configured) or the static api_key setting.
    """
    # No key configured anywhere: dev/default mode.
    if not settings.api_key and not _redis_client:
        return

    if not x_api_key:
        logger.debug("No API key provided")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing API key")

    if _redis_client:
        try:
            if _redis_client.sismember(settings.api_key_redis_set, x_api_key):
                return
        except redis.exceptions.RedisError as e:
            logger.warning("Redis API key lookup error; falling back to static key",
                           extra={"error": str(e)})

    if settings.api_key and hmac.compare_digest(str(x_api_key), str(settings.api_key)):
        return

    logger.debug("Invalid API key provided")
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")


router = APIRouter(dependencies=[Depends(require_api_key)])
DATA_SOURCE = build_data_source()
GEOCODER = GoogleGeocoder()
ADVISOR = WeatherAdvisor(
    DATA_SOURCE,
    GEOCODER,
    build_summarizer(settings),
    build_profile_store(settings.profiles_path),
)


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ChatRequest(_CamelModel):
    """Incoming chat message payload."""
    user_input: str = Field(alias="userInput")
    coords: Optional[Coordinates] = None
    uid: Optional[str] = None
    session_id: Optional[str] = Field(default=None, alias="sessionId")
    location: Optional[str] = None


class ResolvedCoords(BaseModel):
    """Coordinates the reply was computed for."""
    lat: float
    lon: float


class AirQualityBlock(BaseModel):
    """Particulate readings surfaced alongside a reply."""
    pm25: float
    pm10: float


class ChatResponse(_CamelModel):
    """Chat reply plus resolved location and any fetched facets."""
    reply: str
    resolved_coords: Optional[ResolvedCoords] = Field(default=None, alias="resolvedCoords")
    location_name: Optional[str] = Field(default=None, alias="locationName")
    air_quality: Optional[AirQualityBlock] = Field(default=None, alias="airQuality")
    hourly_temps: Optional[List[HourlyTemp]] = Field(default=None, alias="hourlyTemps")


class RegionResponse(BaseModel):
    """Reverse geocoding result."""
    region: str


class GraphResponse(_CamelModel):
    """Six-point hourly temperature series."""
    hourly_temps: List[HourlyTemp] = Field(alias="hourlyTemps")


def _to_chat_response(result) -> ChatResponse:
    """Convert an AdviceResult into the API shape."""
    loc = result.location
    air = result.air_quality
    return ChatResponse(
        reply=result.reply,
        resolved_coords=ResolvedCoords(lat=loc.lat, lon=loc.lon) if loc else None,
        location_name=loc.name if loc else None,
        air_quality=AirQualityBlock(pm25=air.pm25, pm10=air.pm10) if air else None,
        hourly_temps=result.hourly_temps,
    )


@router.post("/chat", response_model=ChatResponse, response_model_exclude_none=True, response_model_by_alias=True)
def chat(req: ChatRequest):
    """Answer one weather/air/pollen question."""
    if len(req.user_input) > settings.max_user_message_chars:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                            detail=f"Message too long; limit {settings.max_user_message_chars} characters.")
    logger.info("Chat request", extra={"uid": req.uid, "has_coords": req.coords is not None})

    try:
        result = ADVISOR.handle(AdviceRequest(
            user_input=req.user_input,
            coords=req.coords,
            uid=req.uid,
            session_id=req.session_id,
            location=req.location,
        ))
    except UpstreamError as exc:
        code = exc.status_code if 400 <= exc.status_code <= 599 else status.HTTP_502_BAD_GATEWAY
        return JSONResponse(status_code=code, content={"error": "Summarizer call failed", "message": exc.message})

    return _to_chat_response(result)


@router.post("/reverse-geocode", response_model=RegionResponse)
def reverse_geocode(coords: Coordinates):
    """Return a 'city, country' name for device coordinates."""
    try:
        found = GEOCODER.reverse(coords.latitude, coords.longitude)
    except GeocodingError:
        raise HTTPException(status_code=500, detail="Reverse geocoding failed")
    return RegionResponse(region=found.display_name() if found else UNKNOWN_PLACE)


@router.post("/weather")
def weather(coords: Coordinates):
    """Current conditions for device coordinates (no hourly or daily series)."""
    try:
        snapshot = DATA_SOURCE.fetch_weather(coords.latitude, coords.longitude)
    except WeatherUnavailable:
        raise HTTPException(status_code=500, detail="Failed to load weather data")
    return snapshot.model_dump(exclude={"hourly", "daily"})


@router.post("/weather-graph", response_model=GraphResponse, response_model_by_alias=True)
def weather_graph(coords: Coordinates):
    """Six temperatures, three local hours apart, starting at the current hour."""
    try:
        snapshot = DATA_SOURCE.fetch_weather(coords.latitude, coords.longitude)
    except WeatherUnavailable:
        raise HTTPException(status_code=500, detail="Failed to load graph data")
    return GraphResponse(hourly_temps=sample_hourly_temps(snapshot.hourly, snapshot.timezone_offset))


@router.delete("/conversations/{key}", status_code=status.HTTP_204_NO_CONTENT)
def delete_conversation(key: str):
    """Forget one conversation's history."""
    conversation_manager.delete_conversation(key)

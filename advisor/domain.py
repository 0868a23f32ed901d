"""Domain vocabulary and schemas for environmental advice.

This module defines the stable contract between the data fetchers, the
orchestrator and the HTTP layer: enums, facet vocabulary, and Pydantic models
for the payloads that flow through the system. The only logic kept here is the
pure PM2.5 grading table.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _StrictBaseModel(BaseModel):
    """Base model with strict extra handling."""

    model_config = ConfigDict(extra="forbid")


class Role(str, Enum):
    """Author of a conversation turn."""
    USER = "user"
    ASSISTANT = "assistant"


class IntentFacet(str, Enum):
    """One named category of environmental information a user can ask about."""
    TEMPERATURE = "temperature"
    UMBRELLA_RAIN = "umbrella_rain"
    AIR_QUALITY = "air_quality"
    UV = "uv"
    DEW_POINT = "dew_point"
    CLOUD = "cloud"
    WIND = "wind"
    CLOTHING = "clothing"
    SUNRISE_SUNSET = "sunrise_sunset"
    VISIBILITY = "visibility"
    POLLEN = "pollen"


class PollenType(str, Enum):
    """Pollen families reported by the pollen provider."""
    GRASS = "grass"
    TREE = "tree"
    WEED = "weed"


class PollenRisk(str, Enum):
    """Provider risk labels, in the provider's own spelling."""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


POLLEN_RISK_PRIORITY = {
    PollenRisk.HIGH: 3,
    PollenRisk.MEDIUM: 2,
    PollenRisk.LOW: 1,
}


class Coordinates(_StrictBaseModel):
    """Raw device coordinates as sent by clients."""
    latitude: float
    longitude: float


class Location(_StrictBaseModel):
    """A resolved place. Re-resolved on every request."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    lat: float
    lon: float
    name: str


class HourlyPoint(_StrictBaseModel):
    """One hourly forecast entry (UTC epoch seconds)."""
    dt: int
    temp: float


class DailyForecast(_StrictBaseModel):
    """One day of the One Call daily forecast (UTC epoch seconds, around local noon)."""
    dt: int
    temp_day: Optional[float] = None
    temp_min: Optional[float] = None
    temp_max: Optional[float] = None
    feels_like_day: Optional[float] = None
    condition: str = ""
    humidity: Optional[float] = None
    uvi: Optional[float] = None
    cloud: Optional[float] = None
    dew_point: Optional[float] = None
    wind: Optional[float] = None
    wind_deg: Optional[float] = None
    pop: Optional[float] = None
    rain: float = 0.0  # mm over the day
    sunrise: Optional[int] = None
    sunset: Optional[int] = None


class HourlyTemp(_StrictBaseModel):
    """One labelled point of the 6-point temperature graph."""
    hour: str
    temp: int


class WeatherSnapshot(_StrictBaseModel):
    """Current conditions plus the raw hourly and daily series for a location."""
    temp: float
    feels_like: Optional[float] = None
    temp_min: Optional[float] = None
    temp_max: Optional[float] = None
    condition: str = ""
    humidity: Optional[float] = None
    uvi: Optional[float] = None
    cloud: Optional[float] = None
    dew_point: Optional[float] = None
    visibility: Optional[float] = None
    wind: Optional[float] = None
    wind_deg: Optional[float] = None
    pop: Optional[float] = None  # probability of precipitation, 0..1
    rain: float = 0.0  # mm in the last hour
    sunrise: Optional[int] = None
    sunset: Optional[int] = None
    timezone_offset: int = 0  # seconds east of UTC
    hourly: List[HourlyPoint] = Field(default_factory=list)
    daily: List[DailyForecast] = Field(default_factory=list)


class AirQuality(_StrictBaseModel):
    """Particulate concentrations in µg/m³."""
    pm25: float
    pm10: float


class Pm25Grade(_StrictBaseModel):
    """Grade and advice derived from a PM2.5 reading."""
    grade: str
    advice: str


class PollenReading(_StrictBaseModel):
    """The single highest-risk pollen family for a location."""
    type: PollenType
    count: int
    risk: PollenRisk
    time: datetime


class ConversationTurn(_StrictBaseModel):
    """One message in the conversation history."""
    role: Role
    text: str


class UserProfile(_StrictBaseModel):
    """Read-only user context used to personalise advice."""
    name: str
    sensitive_factors: List[str] = Field(default_factory=list)
    hobbies: List[str] = Field(default_factory=list)


# Upper bound (inclusive) -> (grade, advice). Values above the last bound fall
# into the final tier.
PM25_GRADES: tuple[tuple[float, str, str], ...] = (
    (15.0, "좋음", "좋은 공기입니다! 야외 활동에 무리 없어요 😊"),
    (35.0, "보통", "보통 수준입니다. 민감한 분들은 주의해주세요."),
    (75.0, "나쁨", "나쁨 수준입니다. 마스크를 착용하고, 장시간 외출은 삼가세요."),
)
PM25_WORST_GRADE = ("매우 나쁨", "매우 나쁨입니다! 외출을 최대한 자제하고, 실내 공기 관리에 신경 쓰세요.")


def grade_pm25(pm25: float) -> Pm25Grade:
    """Grade a PM2.5 concentration: <=15 good, <=35 moderate, <=75 poor, else very poor."""
    for upper, grade, advice in PM25_GRADES:
        if pm25 <= upper:
            return Pm25Grade(grade=grade, advice=advice)
    grade, advice = PM25_WORST_GRADE
    return Pm25Grade(grade=grade, advice=advice)

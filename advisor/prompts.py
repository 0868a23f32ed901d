"""Prompt builders for the summarizer. All numbers are precomputed here."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional

from advisor.domain import (
    AirQuality,
    DailyForecast,
    HourlyTemp,
    IntentFacet,
    Location,
    Pm25Grade,
    PollenReading,
    PollenType,
    UserProfile,
    WeatherSnapshot,
)

POLLEN_TYPE_NAMES = {
    PollenType.GRASS: "잔디 꽃가루",
    PollenType.TREE: "수목 꽃가루",
    PollenType.WEED: "잡초 꽃가루",
}

REPLY_STYLE = (
    "첫 줄에 한 문장 요약을 쓰고, 이어지는 항목은 각각 '• '로 시작해주세요. "
    "가능하다면 조언을 3~4문장 이내로 요약해주세요."
)


def _local_clock(epoch: Optional[int], offset_seconds: int) -> str:
    if epoch is None:
        return "정보 없음"
    local = datetime.fromtimestamp(epoch, tz=timezone(timedelta(seconds=offset_seconds)))
    return local.strftime("%H:%M")


def _fmt(value, unit: str = "") -> str:
    return "정보 없음" if value is None else f"{value}{unit}"


def format_timestamp(ts: datetime) -> str:
    """Render a measurement time for prompts, in UTC."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")


def build_pollen_prompt(utterance: str, location: Location, reading: PollenReading) -> str:
    """Prompt for a pollen-only answer."""
    friendly = POLLEN_TYPE_NAMES.get(reading.type, reading.type.value)
    return "\n".join([
        f'현재 "{location.name}"의 꽃가루 정보입니다:',
        f"- 종류: {friendly} ({reading.type.value})",
        f"- 입자 수: {reading.count}개",
        f"- 위험도: {reading.risk.value}",
        f"- 측정 시각: {format_timestamp(reading.time)} 기준",
        "",
        f'사용자 질문 "{utterance}"에 대해 알레르기 대처 요령을 포함해 친근하게 답변해주세요.',
        REPLY_STYLE,
    ])


def build_air_quality_prompt(utterance: str, location: Location, air: AirQuality, grade: Pm25Grade) -> str:
    """Prompt for a fine-dust-only answer."""
    return "\n".join([
        f'현재 "{location.name}"의 미세먼지 정보입니다:',
        f"- PM2.5: {air.pm25}㎍/m³ ({grade.grade})",
        f"- PM10: {air.pm10}㎍/m³",
        f"- 권고: {grade.advice}",
        "",
        f'사용자 질문 "{utterance}"에 대해 친근하고 실용적으로 답변해주세요.',
        REPLY_STYLE,
    ])


def build_profile_section(profile: Optional[UserProfile]) -> List[str]:
    if profile is None:
        return []
    return [
        "사용자 정보:",
        f"- 이름: {profile.name}",
        f"- 민감 요소: {', '.join(profile.sensitive_factors) or '없음'}",
        f"- 취미: {', '.join(profile.hobbies) or '없음'}",
        "",
    ]


def build_weather_section(location: Location, weather: WeatherSnapshot) -> List[str]:
    offset = weather.timezone_offset
    pop = f"{round(weather.pop * 100)}%" if weather.pop is not None else "정보 없음"
    return [
        f"날씨 정보 ({location.name}):",
        f"- 기온: {weather.temp}℃",
        f"- 체감 온도: {_fmt(weather.feels_like, '℃')}",
        f"- 최저 기온: {_fmt(weather.temp_min, '℃')}",
        f"- 최고 기온: {_fmt(weather.temp_max, '℃')}",
        f"- 상태: {weather.condition or '정보 없음'}",
        f"- 습도: {_fmt(weather.humidity, '%')}",
        f"- 자외선 지수: {_fmt(weather.uvi)}",
        f"- 구름량: {_fmt(weather.cloud, '%')}",
        f"- 이슬점: {_fmt(weather.dew_point, '℃')}",
        f"- 가시거리: {_fmt(weather.visibility, 'm')}",
        f"- 풍속: {_fmt(weather.wind, 'm/s')}",
        f"- 풍향: {_fmt(weather.wind_deg, '°')}",
        f"- 강수 확률: {pop}",
        f"- 1시간 강수량: {weather.rain}mm",
        f"- 일출: {_local_clock(weather.sunrise, offset)}",
        f"- 일몰: {_local_clock(weather.sunset, offset)}",
    ]


def build_forecast_section(location: Location, forecast: DailyForecast, label: str, offset_seconds: int) -> List[str]:
    """Daily forecast block for a question about another day."""
    pop = f"{round(forecast.pop * 100)}%" if forecast.pop is not None else "정보 없음"
    return [
        f"{label} 날씨 예보 ({location.name}):",
        f"- 낮 기온: {_fmt(forecast.temp_day, '℃')}",
        f"- 체감 온도: {_fmt(forecast.feels_like_day, '℃')}",
        f"- 최저 기온: {_fmt(forecast.temp_min, '℃')}",
        f"- 최고 기온: {_fmt(forecast.temp_max, '℃')}",
        f"- 상태: {forecast.condition or '정보 없음'}",
        f"- 습도: {_fmt(forecast.humidity, '%')}",
        f"- 자외선 지수: {_fmt(forecast.uvi)}",
        f"- 구름량: {_fmt(forecast.cloud, '%')}",
        f"- 이슬점: {_fmt(forecast.dew_point, '℃')}",
        f"- 풍속: {_fmt(forecast.wind, 'm/s')}",
        f"- 풍향: {_fmt(forecast.wind_deg, '°')}",
        f"- 강수 확률: {pop}",
        f"- 하루 강수량: {forecast.rain}mm",
        f"- 일출: {_local_clock(forecast.sunrise, offset_seconds)}",
        f"- 일몰: {_local_clock(forecast.sunset, offset_seconds)}",
    ]


def build_general_prompt(
    utterance: str,
    location: Location,
    weather: WeatherSnapshot,
    *,
    facets: Iterable[IntentFacet] = (),
    air: Optional[AirQuality] = None,
    air_grade: Optional[Pm25Grade] = None,
    pollen: Optional[PollenReading] = None,
    hourly_temps: Optional[List[HourlyTemp]] = None,
    profile: Optional[UserProfile] = None,
    day_label: str = "오늘",
    forecast: Optional[DailyForecast] = None,
) -> str:
    """Composite prompt with every fetched facet and optional user context.

    With a forecast, the daily forecast for day_label replaces the current
    conditions; air quality, pollen and the hourly series stay as measured now.
    """
    lines = build_profile_section(profile)
    if forecast is not None:
        lines.extend(build_forecast_section(location, forecast, day_label, weather.timezone_offset))
    else:
        lines.extend(build_weather_section(location, weather))
    if air is not None:
        grade = f" ({air_grade.grade})" if air_grade else ""
        lines.append(f"- 미세먼지: PM2.5 {air.pm25}㎍/m³{grade}, PM10 {air.pm10}㎍/m³")
    if pollen is not None:
        friendly = POLLEN_TYPE_NAMES.get(pollen.type, pollen.type.value)
        lines.append(f"- 꽃가루: {friendly} ({pollen.count}개, {pollen.risk.value})")
    if hourly_temps:
        series = ", ".join(f"{p.hour} {p.temp}℃" for p in hourly_temps)
        lines.append(f"- 3시간 간격 기온: {series}")

    focus = sorted(f.value for f in facets)
    lines.append("")
    if focus:
        lines.append(f"사용자가 특히 궁금해하는 항목: {', '.join(focus)}")
    lines.append(
        f'위 사용자와 날씨 정보를 바탕으로, {day_label} 날씨에 대해 사용자가 궁금해한 "{utterance}"에 친근하고 실용적으로 답변해주세요.'
    )
    lines.append(REPLY_STYLE)
    return "\n".join(lines)

"""Target-day extraction for forecast questions ("내일 서울 날씨", "weather on friday")."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Optional, Sequence

from advisor.domain import DailyForecast

KOREAN_WEEKDAYS = ("월요일", "화요일", "수요일", "목요일", "금요일", "토요일", "일요일")
ENGLISH_WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

# Longer phrases first: "내일모레" contains "내일", "day after tomorrow" contains "tomorrow".
RELATIVE_DAYS = (
    ("내일모레", 2),
    ("모레", 2),
    ("day after tomorrow", 2),
    ("내일", 1),
    ("tomorrow", 1),
    ("오늘", 0),
    ("today", 0),
)


def _local_date(epoch: int, offset_seconds: int) -> date:
    return datetime.fromtimestamp(epoch, tz=timezone(timedelta(seconds=offset_seconds))).date()


def local_today(offset_seconds: int, now: Optional[datetime] = None) -> date:
    """Calendar date at the location, given its UTC offset."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone(timedelta(seconds=offset_seconds))).date()


def extract_target_date(utterance: str, today: date) -> date:
    """Day the question asks about; today when no day word is present.

    Relative words win over weekday names. A weekday name means its next
    occurrence, counting today ("금요일" asked on a Friday is today).
    """
    text = utterance.lower()
    for word, days in RELATIVE_DAYS:
        if word in text:
            return today + timedelta(days=days)
    for names in (KOREAN_WEEKDAYS, ENGLISH_WEEKDAYS):
        for weekday, name in enumerate(names):
            if name in text:
                return today + timedelta(days=(weekday - today.weekday()) % 7)
    return today


def select_daily(daily: Sequence[DailyForecast], target: date, offset_seconds: int) -> Optional[DailyForecast]:
    """Daily entry whose local date is target, or None when outside the forecast range."""
    for day in daily:
        if _local_date(day.dt, offset_seconds) == target:
            return day
    return None


def day_label(target: date, today: date) -> str:
    """'오늘' for today, otherwise a ko-KR long date such as '2025년 6월 5일 목요일'."""
    if target == today:
        return "오늘"
    return f"{target.year}년 {target.month}월 {target.day}일 {KOREAN_WEEKDAYS[target.weekday()]}"

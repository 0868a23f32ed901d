"""Request orchestration: location, facet routing, parallel fetches, summarization.

A request moves through fixed stages:

1. resolve the location (terminal apology when missing or unknown);
2. check the keyword guards in priority order (pollen, then fine dust),
   each of which owns a dedicated single-facet reply;
3. otherwise classify facets and fetch weather plus any requested facets
   concurrently on a pool owned by the request, and pick the daily forecast
   when the question names another day;
4. summarize with the conversation history;
5. record the reply, trim the history window and format the reply.
"""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Callable, List, Optional, Sequence, Set, Tuple

from advisor import conversation_manager, messages
from advisor.config import settings
from advisor.dates import day_label, extract_target_date, local_today, select_daily
from advisor.data_sources.base import EnvironmentDataSource
from advisor.domain import (
    AirQuality,
    ConversationTurn,
    Coordinates,
    HourlyTemp,
    IntentFacet,
    Location,
    PollenReading,
    Role,
    WeatherSnapshot,
    grade_pm25,
)
from advisor.errors import LocationNotFound, LocationRequired, SummarizerError, UpstreamError, WeatherUnavailable
from advisor.formatting import format_reply, strip_bold
from advisor.geo import Geocoder, extract_place, resolve_location
from advisor.graph import sample_hourly_temps
from advisor.intents import classify, mentions_air_quality, mentions_graph_terms, mentions_pollen
from advisor.profiles import InMemoryProfileStore, ProfileStore
from advisor.prompts import build_air_quality_prompt, build_general_prompt, build_pollen_prompt
from advisor.summarizers.base import Summarizer
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="orchestrator")

GRAPH_FACETS = {IntentFacet.TEMPERATURE, IntentFacet.CLOTHING}


class ReplyPath(str, Enum):
    """Which branch produced a reply."""
    LOCATION_REQUIRED = "location_required"
    LOCATION_NOT_FOUND = "location_not_found"
    POLLEN = "pollen"
    AIR_QUALITY = "air_quality"
    GENERAL = "general"


@dataclass
class AdviceRequest:
    """One chat request."""
    user_input: str
    coords: Optional[Coordinates] = None
    uid: Optional[str] = None
    session_id: Optional[str] = None
    location: Optional[str] = None


@dataclass
class AdviceResult:
    """Formatted reply plus whatever was resolved and fetched along the way."""
    reply: str
    path: ReplyPath
    location: Optional[Location] = None
    air_quality: Optional[AirQuality] = None
    hourly_temps: Optional[List[HourlyTemp]] = None
    facets: Set[IntentFacet] = field(default_factory=set)
    apology: bool = False
    target_date: Optional[date] = None


@dataclass
class _Turn:
    """Per-request state shared by the stages."""
    request: AdviceRequest
    key: str
    location: Optional[Location] = None
    pool: Optional[ThreadPoolExecutor] = None


class WeatherAdvisor:
    """Composes geocoding, facet routing, data fetches and the summarizer per request."""

    def __init__(
        self,
        data_source: EnvironmentDataSource,
        geocoder: Geocoder,
        summarizer: Summarizer,
        profiles: ProfileStore | None = None,
        *,
        max_workers: int | None = None,
        fetch_timeout: float | None = None,
    ) -> None:
        self.data_source = data_source
        self.geocoder = geocoder
        self.summarizer = summarizer
        self.profiles = profiles or InMemoryProfileStore()
        self.fetch_timeout = fetch_timeout if fetch_timeout is not None else settings.fetch_timeout_seconds
        self.max_workers = max_workers or settings.fetch_workers
        # Checked in order; the first match owns the reply.
        self._guards: Tuple[Tuple[Callable[[str], bool], Callable[[_Turn], AdviceResult]], ...] = (
            (mentions_pollen, self._pollen_reply),
            (mentions_air_quality, self._air_quality_reply),
        )

    def handle(self, request: AdviceRequest) -> AdviceResult:
        """Answer one question. Raises UpstreamError when the general-path summary fails."""
        key = conversation_manager.conversation_key(request.session_id, request.uid)
        conversation_manager.add_user_message(key, request.user_input)
        turn = _Turn(request=request, key=key)

        place = request.location or extract_place(request.user_input)
        try:
            turn.location = resolve_location(place, request.coords, self.geocoder)
        except LocationRequired:
            return self._terminal(turn, messages.ASK_FOR_LOCATION, ReplyPath.LOCATION_REQUIRED, apology=False)
        except LocationNotFound as exc:
            return self._terminal(turn, messages.location_not_found(exc.place), ReplyPath.LOCATION_NOT_FOUND)

        # One pool per request so fetch timeouts never include time queued behind other requests.
        turn.pool = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="env-fetch")
        try:
            for guard, branch in self._guards:
                if guard(request.user_input):
                    return branch(turn)
            return self._general_reply(turn)
        finally:
            turn.pool.shutdown(wait=False, cancel_futures=True)

    # -- branches ---------------------------------------------------------

    def _pollen_reply(self, turn: _Turn) -> AdviceResult:
        loc = turn.location
        reading = self._soft_result(self._submit(turn, self.data_source.fetch_pollen), "pollen")
        if reading is None:
            return self._terminal(turn, messages.POLLEN_UNAVAILABLE, ReplyPath.POLLEN, apology=True)

        prompt = build_pollen_prompt(turn.request.user_input, loc, reading)
        try:
            raw = self._summarize(turn.key, prompt)
        except SummarizerError as exc:
            logger.warning("Pollen summary failed", extra={"status_code": exc.status_code})
            return self._terminal(turn, messages.POLLEN_SUMMARY_FAILED, ReplyPath.POLLEN, apology=True)
        return self._finalize(turn, raw, ReplyPath.POLLEN, facets={IntentFacet.POLLEN})

    def _air_quality_reply(self, turn: _Turn) -> AdviceResult:
        loc = turn.location
        air = self._soft_result(self._submit(turn, self.data_source.fetch_air_quality), "air_quality")
        if air is None:
            return self._terminal(turn, messages.AIR_QUALITY_UNAVAILABLE, ReplyPath.AIR_QUALITY, apology=True)

        prompt = build_air_quality_prompt(turn.request.user_input, loc, air, grade_pm25(air.pm25))
        try:
            raw = self._summarize(turn.key, prompt)
        except SummarizerError as exc:
            logger.warning("Air quality summary failed", extra={"status_code": exc.status_code})
            return self._terminal(turn, messages.AIR_QUALITY_SUMMARY_FAILED, ReplyPath.AIR_QUALITY, apology=True)
        return self._finalize(turn, raw, ReplyPath.AIR_QUALITY, air_quality=air, facets={IntentFacet.AIR_QUALITY})

    def _general_reply(self, turn: _Turn) -> AdviceResult:
        request, loc = turn.request, turn.location
        # Weather is always needed, so it overlaps with classification.
        weather_future = self._submit(turn, self.data_source.fetch_weather)
        history = conversation_manager.get_history(turn.key)
        facets = classify(request.user_input, history, self.summarizer)

        air_future = self._submit(turn, self.data_source.fetch_air_quality) if IntentFacet.AIR_QUALITY in facets else None
        pollen_future = self._submit(turn, self.data_source.fetch_pollen) if IntentFacet.POLLEN in facets else None

        profile = self.profiles.get(request.uid) if request.uid else None

        try:
            weather = self._hard_result(weather_future)
        except WeatherUnavailable as exc:
            logger.error("Weather unavailable; aborting request", extra={"error": str(exc)})
            for fut in (air_future, pollen_future):
                if fut is not None:
                    fut.cancel()
            return self._terminal(turn, messages.WEATHER_UNAVAILABLE, ReplyPath.GENERAL, apology=True)

        today = local_today(weather.timezone_offset)
        target = extract_target_date(request.user_input, today)
        forecast = None
        if target != today:
            forecast = select_daily(weather.daily, target, weather.timezone_offset)
            if forecast is None:
                logger.info("No daily forecast for requested day; using current conditions",
                            extra={"target_date": target.isoformat(), "daily_points": len(weather.daily)})
                target = today

        air: Optional[AirQuality] = self._soft_result(air_future, "air_quality") if air_future else None
        pollen: Optional[PollenReading] = self._soft_result(pollen_future, "pollen") if pollen_future else None

        hourly_temps = None
        if mentions_graph_terms(request.user_input) or facets & GRAPH_FACETS:
            hourly_temps = sample_hourly_temps(weather.hourly, weather.timezone_offset)

        prompt = build_general_prompt(
            request.user_input,
            loc,
            weather,
            facets=facets,
            air=air,
            air_grade=grade_pm25(air.pm25) if air else None,
            pollen=pollen,
            hourly_temps=hourly_temps,
            profile=profile,
            day_label=day_label(target, today),
            forecast=forecast,
        )
        try:
            raw = self._summarize(turn.key, prompt)
        except SummarizerError as exc:
            logger.error("General summary failed", extra={"status_code": exc.status_code})
            raise UpstreamError(exc.message, status_code=exc.status_code) from exc

        return self._finalize(
            turn, raw, ReplyPath.GENERAL, air_quality=air, hourly_temps=hourly_temps or None, facets=facets,
            target_date=target,
        )

    # -- helpers ----------------------------------------------------------

    def _submit(self, turn: _Turn, fn: Callable[[float, float], object]) -> Future:
        return turn.pool.submit(fn, turn.location.lat, turn.location.lon)

    def _soft_result(self, future: Future, facet: str):
        """Result of an optional fetch; any failure or timeout counts as unavailable."""
        try:
            return future.result(timeout=self.fetch_timeout)
        except FutureTimeoutError:
            logger.warning("%s fetch timed out", facet)
        except Exception as exc:
            logger.warning("%s fetch raised; treating as unavailable", facet, extra={"error": repr(exc)})
        return None

    def _hard_result(self, future: Future) -> WeatherSnapshot:
        try:
            return future.result(timeout=self.fetch_timeout)
        except FutureTimeoutError as exc:
            raise WeatherUnavailable("Weather fetch timed out") from exc

    def _summarize(self, key: str, prompt: str) -> str:
        history: Sequence[ConversationTurn] = conversation_manager.get_history(key)
        turns = [*history, ConversationTurn(role=Role.USER, text=prompt)]
        return self.summarizer.generate(turns)

    def _record_reply(self, key: str, text: str) -> None:
        conversation_manager.add_assistant_message(key, text)
        conversation_manager.trim(key)

    def _terminal(self, turn: _Turn, reply: str, path: ReplyPath, *, apology: bool = True) -> AdviceResult:
        self._record_reply(turn.key, reply)
        logger.info("Terminal reply", extra={"path": path.value})
        return AdviceResult(reply=reply, path=path, location=turn.location, apology=apology)

    def _finalize(
        self,
        turn: _Turn,
        raw: str,
        path: ReplyPath,
        *,
        air_quality: Optional[AirQuality] = None,
        hourly_temps: Optional[List[HourlyTemp]] = None,
        facets: Set[IntentFacet] | None = None,
        target_date: Optional[date] = None,
    ) -> AdviceResult:
        text = strip_bold(raw).strip() or messages.NO_ANSWER
        self._record_reply(turn.key, text)
        return AdviceResult(
            reply=format_reply(text),
            path=path,
            location=turn.location,
            air_quality=air_quality,
            hourly_temps=hourly_temps,
            facets=set(facets or ()),
            target_date=target_date,
        )

"""Pollen readings from the Ambee API, ranked down to the single riskiest family."""
from __future__ import annotations

from datetime import datetime
from typing import Optional

import requests

from advisor.config import settings
from advisor.data_sources.base import FetchFailure, FetchOutcome
from advisor.domain import POLLEN_RISK_PRIORITY, PollenReading, PollenRisk, PollenType
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="data_sources/ambee")

session = requests.Session()

AMBEE_POLLEN_URL = "https://api.ambeedata.com/latest/pollen/by-lat-lng"
SOURCE = "ambee/pollen"

PROVIDER_POLLEN_KEYS = {
    "grass_pollen": PollenType.GRASS,
    "tree_pollen": PollenType.TREE,
    "weed_pollen": PollenType.WEED,
}


def _parse_timestamp(value: str) -> datetime:
    """Parse Ambee's ISO timestamps, which use a trailing 'Z'."""
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def select_top_pollen(risks: dict, counts: dict, updated_at: str) -> PollenReading:
    """Pick the pollen family with the highest risk.

    Ties keep the family that appears first in the provider's field order.
    Unknown families or risk labels are skipped; ValueError if nothing usable remains.
    """
    top_key: Optional[str] = None
    top_priority = 0
    for key, label in risks.items():
        if key not in PROVIDER_POLLEN_KEYS:
            continue
        try:
            priority = POLLEN_RISK_PRIORITY[PollenRisk(label)]
        except ValueError:
            logger.debug("Skipping unknown pollen risk label", extra={"key": key, "risk": label})
            continue
        if top_key is None or priority > top_priority:
            top_key, top_priority = key, priority

    if top_key is None:
        raise ValueError("no recognised pollen risk entries")

    return PollenReading(
        type=PROVIDER_POLLEN_KEYS[top_key],
        count=int(counts[top_key]),
        risk=PollenRisk(risks[top_key]),
        time=_parse_timestamp(updated_at),
    )


def parse_pollen_payload(payload: dict) -> FetchOutcome[PollenReading]:
    """Turn an Ambee response body into a tagged outcome."""
    records = payload.get("data") if isinstance(payload, dict) else None
    if not isinstance(records, list) or not records:
        return FetchOutcome.failed(FetchFailure.EMPTY, "pollen data list is missing or empty", source=SOURCE)

    info = records[0]
    risks = info.get("Risk") if isinstance(info, dict) else None
    counts = info.get("Count") if isinstance(info, dict) else None
    if not isinstance(risks, dict) or not isinstance(counts, dict):
        return FetchOutcome.failed(FetchFailure.MALFORMED, "Risk or Count object missing", source=SOURCE)

    try:
        reading = select_top_pollen(risks, counts, info.get("updatedAt"))
    except (KeyError, TypeError, ValueError) as exc:
        return FetchOutcome.failed(FetchFailure.MALFORMED, f"unexpected pollen record: {exc!r}", source=SOURCE)
    return FetchOutcome.success(reading, source=SOURCE)


def fetch_pollen_outcome(latitude: float, longitude: float) -> FetchOutcome[PollenReading]:
    """Fetch pollen for the coordinates and tag any failure."""
    headers = {"x-api-key": settings.ambee_api_key or "", "Accept": "application/json"}
    params = {"lat": latitude, "lng": longitude}
    try:
        resp = session.get(AMBEE_POLLEN_URL, params=params, headers=headers, timeout=settings.http_timeout_seconds)
        resp.raise_for_status()
    except requests.exceptions.Timeout as exc:
        outcome = FetchOutcome.failed(FetchFailure.TIMEOUT, str(exc), source=SOURCE)
    except requests.exceptions.RequestException as exc:
        outcome = FetchOutcome.failed(FetchFailure.HTTP_ERROR, str(exc), source=SOURCE)
    else:
        try:
            payload = resp.json()
        except ValueError as exc:
            outcome = FetchOutcome.failed(FetchFailure.MALFORMED, f"non-JSON body: {exc}", source=SOURCE)
        else:
            logger.debug("Ambee pollen response: %s", payload)
            outcome = parse_pollen_payload(payload)

    if not outcome.ok:
        logger.warning(
            "Pollen unavailable (%s)",
            outcome.failure.value if outcome.failure else "unknown",
            extra={"lat": latitude, "lon": longitude, "detail": outcome.detail},
        )
    return outcome


def fetch_pollen(latitude: float, longitude: float) -> Optional[PollenReading]:
    """Return the riskiest pollen reading, or None when unavailable."""
    return fetch_pollen_outcome(latitude, longitude).value

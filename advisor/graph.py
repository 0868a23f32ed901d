"""Six-point temperature series for the client's hourly graph."""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from advisor.domain import HourlyPoint, HourlyTemp

GRAPH_POINTS = 6
STEP_HOURS = 3


def hour_label(hour: int) -> str:
    """12-hour clock label: 0 -> '12am', 15 -> '3pm'."""
    twelve = hour % 12 or 12
    return f"{twelve}{'am' if hour < 12 else 'pm'}"


def _round_half_up(value: float) -> int:
    """Round halves towards +inf, like JavaScript's Math.round."""
    return int(math.floor(value + 0.5))


def _nearest(hourly: Sequence[HourlyPoint], target_utc: int) -> HourlyPoint:
    """Linear scan for the entry closest to target; earlier entries win ties."""
    best = hourly[0]
    best_gap = abs(best.dt - target_utc)
    for point in hourly[1:]:
        gap = abs(point.dt - target_utc)
        if gap < best_gap:
            best, best_gap = point, gap
    return best


def sample_hourly_temps(
    hourly: Sequence[HourlyPoint],
    timezone_offset_seconds: int,
    now: Optional[datetime] = None,
) -> List[HourlyTemp]:
    """Sample the hourly series every 3 local hours starting at the current local hour.

    Always returns 6 points for non-empty input; sparse input repeats the
    nearest entry. Labels follow the local clock of each sample slot.
    """
    if not hourly:
        return []

    now = now or datetime.now(timezone.utc)
    local_now = int(now.timestamp()) + timezone_offset_seconds
    local_now -= local_now % 3600

    samples: List[HourlyTemp] = []
    for i in range(GRAPH_POINTS):
        target_local = local_now + i * STEP_HOURS * 3600
        target_utc = target_local - timezone_offset_seconds
        closest = _nearest(hourly, target_utc)
        local_hour = datetime.fromtimestamp(target_local, tz=timezone.utc).hour
        samples.append(HourlyTemp(hour=hour_label(local_hour), temp=_round_half_up(closest.temp)))
    return samples

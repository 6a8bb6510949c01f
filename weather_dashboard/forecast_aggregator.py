"""Collapse 3-hour forecast samples into per-day summaries."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from weather_dashboard.models import DayDetails, DaySummary, DayTemperature, HourlySample
from weather_dashboard.providers.openweather_client import ForecastSample
from weather_dashboard.units import epoch_to_date, epoch_to_iso, ms_to_kmh, round_half_away
from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="forecast_aggregator")

MAX_FORECAST_DAYS = 5


@dataclass
class _DayBucket:
    """Readings accumulated for one UTC date."""
    date: str
    temperatures: List[float] = field(default_factory=list)
    conditions: List[HourlySample] = field(default_factory=list)
    humidity: List[float] = field(default_factory=list)
    pressure: List[float] = field(default_factory=list)
    wind_speed_kmh: List[float] = field(default_factory=list)


def _mean(values: List[float]) -> float:
    return sum(values) / len(values)


def dominant_condition(conditions: List[HourlySample]) -> HourlySample:
    """
    Return the first sample of the most frequent `main` condition.

    Counting happens in one left-to-right pass and the leader only changes
    when another condition strictly overtakes it, so on a tie the condition
    that reached the top count first wins.
    """
    counts: Dict[str, int] = {}
    leader = conditions[0].main
    for sample in conditions:
        counts[sample.main] = counts.get(sample.main, 0) + 1
        if counts[sample.main] > counts[leader]:
            leader = sample.main
    return next(sample for sample in conditions if sample.main == leader)


def _group_by_date(samples: Iterable[ForecastSample]) -> List[_DayBucket]:
    """Bucket samples by UTC date, keeping dates in first-seen order."""
    buckets: Dict[str, _DayBucket] = {}
    for sample in samples:
        date_key = epoch_to_date(sample.timestamp)
        bucket = buckets.get(date_key)
        if bucket is None:
            bucket = buckets[date_key] = _DayBucket(date=date_key)
        bucket.temperatures.append(sample.temperature)
        bucket.conditions.append(
            HourlySample(
                main=sample.weather_main,
                description=sample.weather_description,
                icon=sample.weather_icon,
                time=epoch_to_iso(sample.timestamp),
            )
        )
        bucket.humidity.append(sample.humidity)
        bucket.pressure.append(sample.pressure)
        bucket.wind_speed_kmh.append(ms_to_kmh(sample.wind_speed))
    return list(buckets.values())


def _summarize(bucket: _DayBucket) -> DaySummary:
    temps = bucket.temperatures
    return DaySummary(
        date=bucket.date,
        weather=dominant_condition(bucket.conditions),
        temperature=DayTemperature(
            min=round_half_away(min(temps)),
            max=round_half_away(max(temps)),
            avg=round_half_away(_mean(temps)),
        ),
        details=DayDetails(
            humidity=round_half_away(_mean(bucket.humidity)),
            pressure=round_half_away(_mean(bucket.pressure)),
            wind_speed=round_half_away(_mean(bucket.wind_speed_kmh)),
        ),
        hourly_data=list(bucket.conditions),
    )


def aggregate(samples: Iterable[ForecastSample], *, max_days: int = MAX_FORECAST_DAYS) -> List[DaySummary]:
    """
    Turn a raw 3-hour series into at most `max_days` daily summaries.

    Days are taken in the order their first sample appears upstream, not
    sorted: an out-of-order series keeps whichever five dates it mentions
    first.
    """
    buckets = _group_by_date(samples)
    summaries = [_summarize(bucket) for bucket in buckets[:max_days]]
    logger.debug(
        "Aggregated forecast samples",
        extra={"dates_seen": len(buckets), "days_returned": len(summaries)},
    )
    return summaries

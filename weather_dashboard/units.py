"""Rounding and unit conversions shared by the normalizers."""

from __future__ import annotations

import datetime as dt
from decimal import ROUND_HALF_UP, Decimal

MS_TO_KMH = 3.6


def round_half_away(value: float) -> int:
    """Round to the nearest integer, halves away from zero (2.5 -> 3, -2.5 -> -3).

    Goes through `repr` so 0.5 boundaries are judged on the printed value,
    not on binary noise.
    """
    return int(Decimal(repr(float(value))).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def ms_to_kmh(speed: float | None) -> float:
    """Convert m/s to km/h; a missing reading counts as calm."""
    if speed is None:
        return 0.0
    return speed * MS_TO_KMH


def meters_to_km(distance: float | None) -> int | None:
    """Convert meters to whole kilometres, keeping None for missing readings."""
    if distance is None:
        return None
    return round_half_away(distance / 1000)


def epoch_to_iso(seconds: int | float) -> str:
    """Render epoch seconds as an ISO-8601 UTC string with a Z suffix."""
    moment = dt.datetime.fromtimestamp(seconds, tz=dt.timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def epoch_to_date(seconds: int | float) -> str:
    """Return the UTC calendar date (YYYY-MM-DD) of epoch seconds."""
    return dt.datetime.fromtimestamp(seconds, tz=dt.timezone.utc).date().isoformat()

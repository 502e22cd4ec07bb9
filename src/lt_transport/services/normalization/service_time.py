"""Service-day time math.

Operators report times as seconds since local midnight of a service day.
Trips that start before midnight keep counting past 86400, so a value of
90000 means 01:00 on the day after the service day began.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, tzinfo

SECONDS_PER_DAY = 86400


def service_day_to_absolute(
    seconds_from_midnight: int,
    reference_date: date,
    tz: tzinfo,
) -> datetime:
    """Resolve a service-day offset to an absolute, tz-aware timestamp.

    Offsets of 86400 or more are anchored to the midnight BEFORE
    ``reference_date``; smaller offsets to ``reference_date``'s own midnight.
    The offset is added as-is, never wrapped.

    Examples (reference_date = 2024-03-10):
        3600  -> 2024-03-10 01:00
        90000 -> 2024-03-10 01:00 (anchored at 2024-03-09 00:00)
    """
    anchor_date = reference_date
    if seconds_from_midnight >= SECONDS_PER_DAY:
        anchor_date = reference_date - timedelta(days=1)
    midnight = datetime.combine(anchor_date, time.min, tzinfo=tz)
    return midnight + timedelta(seconds=seconds_from_midnight)


def seconds_from_midnight(dt: datetime) -> int:
    """Seconds elapsed since midnight of ``dt``'s own wall-clock day."""
    return dt.hour * 3600 + dt.minute * 60 + dt.second


def parse_time_seconds(text: str | None) -> int | None:
    """Parse a seconds-from-midnight field. Returns None when empty, invalid or negative."""
    if text is None:
        return None
    text = text.strip()
    if not text:
        return None
    try:
        value = int(text)
    except ValueError:
        return None
    if value < 0:
        return None
    return value


def is_data_stale(measured_at: datetime, now: datetime, threshold_sec: int) -> bool:
    """True when ``measured_at`` is more than ``threshold_sec`` older than ``now``.

    Timestamps in the future are never stale.
    """
    age = (now - measured_at).total_seconds()
    return age > threshold_sec

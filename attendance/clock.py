"""Worked-hours calculation from in/out clock times."""
import logging
import re
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Optional

from attendance.core import round_hours

logger = logging.getLogger(__name__)

CLOCK_PATTERN = re.compile(r"^\d{1,2}:\d{2}$")
MAX_SHIFT = timedelta(hours=24)


def parse_clock_time(value: Optional[str]) -> Optional[time]:
    """Parse an ``H:MM``/``HH:MM`` 24h string, returning None when it is not one."""
    if value is None:
        return None
    cleaned = str(value).strip()
    if not cleaned or not CLOCK_PATTERN.match(cleaned):
        return None
    hours, minutes = (int(part) for part in cleaned.split(":"))
    if not (0 <= hours <= 23 and 0 <= minutes <= 59):
        return None
    return time(hours, minutes)


def compute_worked_hours(in_time: Optional[str], out_time: Optional[str], day: date) -> Optional[float]:
    """Return hours worked between `in_time` and `out_time` on `day`.

    Both times are anchored on `day`. An out-time earlier than the in-time is
    treated as the next morning (night shift). Malformed or missing times give
    None rather than an error, and so does any span longer than 24 hours.

    The result is rounded to 2 decimals with ROUND_HALF_UP (10 minutes -> 0.17).
    """
    start_t = parse_clock_time(in_time)
    end_t = parse_clock_time(out_time)
    if start_t is None or end_t is None:
        return None

    start = datetime.combine(day, start_t)
    end = datetime.combine(day, end_t)
    if end < start:
        end += timedelta(days=1)

    span = end - start
    if span < timedelta(0) or span > MAX_SHIFT:
        logger.debug(f"Discarding implausible span {in_time}-{out_time} on {day}")
        return None

    minutes = Decimal(int(span.total_seconds()) // 60)
    return round_hours(minutes / Decimal(60))

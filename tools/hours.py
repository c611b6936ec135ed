import math
import re
from typing import Dict, Any, List, Optional

TIME_RANGE_PATTERN = re.compile(
    r"(\d{1,2}):(\d{2})\s*(AM|PM)\s*[–-]\s*(\d{1,2}):(\d{2})\s*(AM|PM)",
    re.IGNORECASE,
)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def _period_hours(open_time: int, close_time: int) -> float:
    # HHMM values are subtracted as-is; a close at or before the open belongs to the next day
    if close_time > open_time:
        return (close_time - open_time) / 100
    return ((2400 - open_time) + close_time) / 100


def calculate_daily_hours(periods: List[Dict[str, Any]]) -> int:
    """
    Average daily operating hours from Google Places opening periods.

    Args:
        periods: List of {"open": {"day", "time"}, "close": {"day", "time"}}
                 with times in HHMM format

    Returns:
        Whole hours per day; 24 for a single period without a close time
    """
    if not periods:
        return 0

    if len(periods) == 1 and not periods[0].get("close"):
        return 24

    hours_by_day: Dict[Any, float] = {}
    for period in periods:
        open_ = period.get("open") or {}
        close = period.get("close") or {}
        if not open_.get("time") or not close.get("time"):
            continue
        hours = _period_hours(int(open_["time"]), int(close["time"]))
        day = open_.get("day")
        hours_by_day[day] = hours_by_day.get(day, 0) + hours

    if not hours_by_day:
        return 0

    return round_half_up(sum(hours_by_day.values()) / len(hours_by_day))


def _to_24h(hour: int, period: str) -> int:
    period = period.upper()
    if period == "PM" and hour != 12:
        return hour + 12
    if period == "AM" and hour == 12:
        return 0
    return hour


def parse_hours_from_text(hours_text: str) -> Optional[int]:
    """Parse daily hours from a line like "Monday: 8:00 AM – 12:00 AM"."""
    if not hours_text:
        return None

    lowered = hours_text.lower()
    if "24 hours" in lowered or "open 24" in lowered:
        return 24

    match = TIME_RANGE_PATTERN.search(hours_text)
    if not match:
        return None

    open_hour = _to_24h(int(match.group(1)), match.group(3))
    close_hour = _to_24h(int(match.group(4)), match.group(6))
    minutes = (int(match.group(5)) - int(match.group(2))) / 60

    # Only the hours decide whether the range crosses midnight
    if close_hour > open_hour:
        return round_half_up(close_hour - open_hour + minutes)
    return round_half_up((24 - open_hour) + close_hour + minutes)


def format_opening_hours(opening_hours: Dict[str, Any]) -> str:
    if not opening_hours or not opening_hours.get("weekday_text"):
        return ""
    return "; ".join(opening_hours["weekday_text"])

from __future__ import annotations
import re
from typing import List, Optional, Tuple


def format_clock(hour: int, minute: int = 0) -> str:
    period = "PM" if hour >= 12 else "AM"
    display = hour - 12 if hour > 12 else hour
    return f"{display}:{minute:02d} {period}"


def generate_slots(start_hour: int, end_hour: int, width_minutes: int = 10) -> List[str]:
    """Fixed-width slots in [start_hour, end_hour), e.g. 2:00 PM, 2:10 PM, ..."""
    if width_minutes <= 0:
        raise ValueError("slot width must be positive")
    slots: List[str] = []
    minute_of_day = start_hour * 60
    while minute_of_day < end_hour * 60:
        slots.append(format_clock(*divmod(minute_of_day, 60)))
        minute_of_day += width_minutes
    return slots


CLOCK_RE = re.compile(r"(?<!\d)(\d{1,2})[:.](\d{2})(?!\d)\s*(am|pm)?")


def parse_clock(text: str) -> Optional[Tuple[int, int, Optional[str]]]:
    """'4:30', '4.30 pm' -> (hour, minute, 'am'|'pm'|None); None if no clock time."""
    m = CLOCK_RE.search((text or "").lower())
    if not m:
        return None
    hour, minute = int(m.group(1)), int(m.group(2))
    if hour > 23 or minute > 59:
        return None
    return hour, minute, m.group(3)


def to_24h(hour: int, period: Optional[str]) -> List[int]:
    """Candidate 24h hours for a typed hour; without am/pm both halves of the day qualify."""
    if period == "am":
        return [hour % 12]
    if period == "pm":
        return [hour % 12 + 12]
    if hour >= 12 or hour == 0:
        return [hour]
    return [hour, hour + 12]

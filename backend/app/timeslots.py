from __future__ import annotations

import re

DEFAULT_SLOTS = ["6:00 PM", "6:30 PM", "7:00 PM", "7:30 PM", "8:00 PM", "8:30 PM"]
DINNER_FIRST_HOUR = 17
DINNER_LAST_HOUR = 22
MAX_SLOTS = 6

_CLOCK_PATTERN = re.compile(r"(\d{1,2}):?(\d{2})?\s*(AM|PM)", re.IGNORECASE)


def parse_clock(value: str | None) -> tuple[int, int] | None:
    """Parse "7:30 PM" / "7pm" into a 24h ``(hour, minute)`` tuple."""
    if not value:
        return None
    match = _CLOCK_PATTERN.search(value)
    if not match:
        return None
    hour = int(match.group(1))
    minute = int(match.group(2) or 0)
    period = match.group(3).upper()
    if hour > 12 or minute > 59:
        return None
    if period == "PM" and hour != 12:
        hour += 12
    if period == "AM" and hour == 12:
        hour = 0
    return hour, minute


def format_clock(hour: int, minute: int) -> str:
    hour %= 24
    period = "PM" if hour >= 12 else "AM"
    display = hour - 12 if hour > 12 else (12 if hour == 0 else hour)
    return f"{display}:{minute:02d} {period}"


def generate_time_slots(base_time: str | None) -> list[str]:
    """Half-hour slots from one hour before to two hours after ``base_time``.

    Slots outside the 5pm-10:30pm dinner window are dropped and at most six are
    returned. Unparseable times, or times whose window misses dinner entirely,
    fall back to the 6pm-8:30pm slate.
    """
    parsed = parse_clock(base_time)
    if parsed is None:
        return list(DEFAULT_SLOTS)
    hour, _ = parsed
    slots: list[str] = []
    for h in range(hour - 1, hour + 3):
        if h < DINNER_FIRST_HOUR or h > DINNER_LAST_HOUR:
            continue
        for minute in (0, 30):
            slots.append(format_clock(h, minute))
    return slots[:MAX_SLOTS] if slots else list(DEFAULT_SLOTS)


def add_hours(value: str, hours: float) -> str:
    """Shift a clock string by ``hours`` (fractions allowed), wrapping at midnight."""
    parsed = parse_clock(value)
    if parsed is None:
        return value
    hour, minute = parsed
    total = (hour * 60 + minute + round(hours * 60)) % (24 * 60)
    return format_clock(total // 60, total % 60)


__all__ = ["DEFAULT_SLOTS", "add_hours", "format_clock", "generate_time_slots", "parse_clock"]

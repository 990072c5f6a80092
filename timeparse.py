import re
import logging
from typing import Optional
from datetime import datetime, timedelta, timezone
from dateutil.relativedelta import relativedelta, MO, TU, WE, TH, FR, SA, SU

logger = logging.getLogger(__name__)

NO_TIME = "end of times"

WEEKDAYS = [MO, TU, WE, TH, FR, SA, SU]

# Seconds per unit for the long-form duration grammar ("2h30m", "1 day 3 hours").
_DURATION_UNITS = {
    "nanos": 1e-9, "nsec": 1e-9, "ns": 1e-9,
    "micros": 1e-6, "usec": 1e-6, "us": 1e-6, "µs": 1e-6,
    "millis": 1e-3, "msec": 1e-3, "ms": 1e-3,
    "seconds": 1, "second": 1, "secs": 1, "sec": 1, "s": 1,
    "minutes": 60, "minute": 60, "mins": 60, "min": 60, "m": 60,
    "hours": 3600, "hour": 3600, "hrs": 3600, "hr": 3600, "h": 3600,
    "days": 86400, "day": 86400, "d": 86400,
    "weeks": 604800, "week": 604800, "w": 604800,
    "months": 2630016, "month": 2630016, "M": 2630016,
    "years": 31557600, "year": 31557600, "y": 31557600,
}

_DURATION_PART = re.compile(r"\s*(\d+)\s*([^\d\s]+)")

# Approximate units of the compact fallback scanner.
_RELATIVE_UNITS = {
    "y": timedelta(days=365),
    "M": timedelta(days=30),
    "d": timedelta(days=1),
    "h": timedelta(hours=1),
    "m": timedelta(minutes=1),
    "s": timedelta(seconds=1),
}

# One unit letter followed by its (possibly empty) digit run: "y2025", "w5", "h9".
_ABSOLUTE_FIELD = re.compile(r"(\D)(\d*)")

_ABSOLUTE_RANGES = {
    "y": (1, 9999, "Year must be between 1 and 9999"),
    "M": (1, 12, "Month must be between 1 and 12"),
    "d": (1, 31, "Day must be between 1 and 31"),
    "w": (1, 7, "Weekday must be 1-7 (1=Monday, 7=Sunday)"),
    "h": (0, 23, "Hour must be between 0 and 23"),
    "m": (0, 59, "Minute must be between 0 and 59"),
    "s": (0, 59, "Second must be between 0 and 59"),
}


class TimeParseError(ValueError):
    pass


class UnknownPrefixError(ValueError):
    def __init__(self, prefix: str):
        super().__init__(
            f"Unknown time prefix '{prefix}'. Use 'in' for relative time or 'at' for absolute time."
        )
        self.prefix = prefix


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_duration(text: str) -> timedelta:
    """
    Parse a human readable duration such as "90s", "2h30m" or "1 day 4 hours".
    Raises ValueError when the whole string is not made of <number><unit> groups.
    """
    pos = 0
    total = 0.0
    text = text.rstrip()
    if not text.strip():
        raise ValueError("empty duration")
    while pos < len(text):
        match = _DURATION_PART.match(text, pos)
        if not match:
            raise ValueError(f"expected <number><unit> at position {pos} in {text!r}")
        number, unit = match.groups()
        if unit not in _DURATION_UNITS:
            raise ValueError(f"unknown time unit {unit!r}")
        total += int(number) * _DURATION_UNITS[unit]
        pos = match.end()
    return timedelta(seconds=total)


def _scan(text: str):
    """
    Yield (number, unit) pairs for relative offsets like "1d3h":
    a run of digits (0 when empty) followed by one character.
    Trailing digits without a unit are dropped.
    """
    i = 0
    while i < len(text):
        num = 0
        while i < len(text) and "0" <= text[i] <= "9":
            num = num * 10 + int(text[i])
            i += 1
        if i >= len(text):
            break
        yield num, text[i]
        i += 1


def parse_relative_time(text: str, now: Optional[datetime] = None) -> datetime:
    if now is None:
        now = _utcnow()
    try:
        result = now + parse_duration(text)
        logger.debug("Relative time %r parsed as duration -> %s", text, result)
        return result
    except (ValueError, OverflowError):
        pass

    offset = timedelta()
    try:
        for num, unit in _scan(text):
            step = _RELATIVE_UNITS.get(unit)
            if step is not None:
                offset += step * num
        result = now + offset
    except OverflowError as e:
        raise TimeParseError(f"Time offset out of range: {text}") from e
    logger.debug("Relative time %r scanned -> %s", text, result)
    return result


def parse_absolute_time(text: str, offset_hours: int, now: Optional[datetime] = None) -> datetime:
    """
    Resolve compound fields like "y2025M3d14h9" or "w5h18" in local time
    (UTC shifted by offset_hours) and return the matching UTC instant.

    Unset date fields come from the current local date; unset clock fields are 0.
    A weekday without an explicit day means the next such weekday after today.
    """
    if now is None:
        now = _utcnow()
    offset = timedelta(hours=offset_hours)
    now_local = (now + offset).replace(tzinfo=None)

    fields = {}
    for unit, digits in _ABSOLUTE_FIELD.findall(text):
        if unit not in _ABSOLUTE_RANGES:
            continue
        num = int(digits) if digits else 0
        low, high, message = _ABSOLUTE_RANGES[unit]
        if not low <= num <= high:
            raise TimeParseError(message)
        fields[unit] = num

    if "w" in fields and "d" not in fields:
        # +1 day first so the target weekday is never today
        try:
            target = now_local.date() + relativedelta(days=+1, weekday=WEEKDAYS[fields["w"] - 1](+1))
        except (ValueError, OverflowError) as e:
            raise TimeParseError(f"No weekday {fields['w']} left in the calendar") from e
        fields["y"], fields["M"], fields["d"] = target.year, target.month, target.day

    year = fields.get("y", now_local.year)
    month = fields.get("M", now_local.month)
    day = fields.get("d", now_local.day)
    hour = fields.get("h", 0)
    minute = fields.get("m", 0)
    second = fields.get("s", 0)

    try:
        local = datetime(year, month, day, hour, minute, second)
        result = (local - offset).replace(tzinfo=timezone.utc)
    except (ValueError, OverflowError) as e:
        raise TimeParseError(
            f"Invalid date/time: {year:04}-{month:02}-{day:02} {hour:02}:{minute:02}:{second:02}"
        ) from e
    logger.debug("Absolute time %r (offset %+dh) -> %s", text, offset_hours, result)
    return result


def parse_time_args(prefix: str, token: str, offset_hours: int, now: Optional[datetime] = None) -> datetime:
    if prefix == "in":
        return parse_relative_time(token, now)
    if prefix == "at":
        return parse_absolute_time(token, offset_hours, now)
    raise UnknownPrefixError(prefix)


def format_time(dt: Optional[datetime], offset_hours: int) -> str:
    if dt is None:
        return NO_TIME
    local = dt + timedelta(hours=offset_hours)
    return local.strftime("%Y-%m-%d %H:%M")


def is_overdue(dt: Optional[datetime], now: Optional[datetime] = None) -> bool:
    if dt is None:
        return False
    return dt < (now or _utcnow())

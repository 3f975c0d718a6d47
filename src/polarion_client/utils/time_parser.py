from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta

# Tokens like "2d", "4h", "30 m", "15s"; anything between tokens is ignored.
DURATION_RE = re.compile(r"(\d+)\s*([dhms])")

_UNITS = {
    "d": timedelta(days=1),
    "h": timedelta(hours=1),
    "m": timedelta(minutes=1),
    "s": timedelta(seconds=1),
}


class FieldParseError(ValueError):
    """Raised when a temporal custom-field string cannot be parsed."""


class DurationParseError(FieldParseError):
    """Raised when a duration string has no valid tokens."""


def parse_duration(duration_str: str) -> timedelta:
    """
    Parse Polarion durations like "1d 2h 30m", "4h", "45s" into a timedelta.

    Rules:
    - Accept day/hour/minute/second tokens, compact or spaced.
    - Whole numbers only; unmatched text between tokens is ignored.
    - Reject inputs with no valid tokens.
    """
    if not duration_str:
        raise DurationParseError("empty duration string")

    matches = DURATION_RE.findall(duration_str)
    if not matches:
        raise DurationParseError(f"invalid duration format: {duration_str}")

    total = timedelta()
    try:
        for value, unit in matches:
            total += int(value) * _UNITS[unit]
    except (OverflowError, ValueError) as exc:
        raise DurationParseError(f"duration out of range: {duration_str}") from exc
    return total


def format_duration(value: timedelta) -> str:
    """Inverse of parse_duration: timedelta(hours=26) -> "1d 2h"."""
    seconds = int(value.total_seconds())
    if seconds <= 0:
        return "0s"

    parts = []
    for unit, size in (("d", 86400), ("h", 3600), ("m", 60), ("s", 1)):
        count, seconds = divmod(seconds, size)
        if count:
            parts.append(f"{count}{unit}")
    return " ".join(parts)


def parse_time_only(value: str) -> time:
    """Parse "HH:MM:SS" (exactly three numeric parts)."""
    if not value:
        raise FieldParseError("empty time string")

    parts = value.split(":")
    if len(parts) != 3:
        raise FieldParseError(f"invalid time format: {value} (expected HH:MM:SS)")
    try:
        hour, minute, second = (int(p) for p in parts)
    except ValueError as exc:
        raise FieldParseError(f"invalid time: {value}") from exc
    try:
        return time(hour, minute, second)
    except ValueError as exc:
        raise FieldParseError(f"invalid time: {value}: {exc}") from exc


def format_time_only(value: time) -> str:
    return f"{value.hour:02d}:{value.minute:02d}:{value.second:02d}"


def parse_date_only(value: str) -> date:
    """Parse "YYYY-MM-DD"."""
    if not value:
        raise FieldParseError("empty date string")
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError as exc:
        raise FieldParseError(f"invalid date format: {value}") from exc


def format_date_only(value: date) -> str:
    return value.strftime("%Y-%m-%d")


def parse_date_time(value: str) -> datetime:
    """Parse an RFC 3339 timestamp; a UTC offset (or "Z") is required."""
    if not value:
        raise FieldParseError("empty datetime string")

    candidate = value
    if candidate.endswith(("Z", "z")):
        candidate = candidate[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError as exc:
        raise FieldParseError(f"invalid datetime format: {value}") from exc
    if parsed.tzinfo is None:
        raise FieldParseError(f"datetime without offset: {value}")
    return parsed


def format_date_time(value: datetime) -> str:
    text = value.isoformat(timespec="seconds")
    if text.endswith("+00:00"):
        text = text[:-6] + "Z"
    return text


__all__ = [
    "FieldParseError",
    "DurationParseError",
    "parse_duration",
    "format_duration",
    "parse_time_only",
    "format_time_only",
    "parse_date_only",
    "format_date_only",
    "parse_date_time",
    "format_date_time",
]

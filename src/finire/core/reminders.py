"""Pure reminder preference logic - no I/O dependencies."""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import NamedTuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .days import parse_timestamp

logger = logging.getLogger(__name__)

MERIDIEMS = ("AM", "PM")
MINUTE_STEP = 5

_STORED_RE = re.compile(r"^(\d{2}):(\d{2})$")
_HUMAN_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*([AaPp][Mm])\s*$")


class ReminderTime(NamedTuple):
    """A reminder time as picked in 12-hour form."""

    hour: int
    minute: str
    meridiem: str

    def __str__(self) -> str:
        return f"{self.hour}:{self.minute} {self.meridiem}"


@dataclass
class ReminderPreference:
    """A user's daily reminder setting."""

    user_id: str
    time_local: str
    timezone: str = "UTC"
    enabled: bool = True
    updated_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict) -> "ReminderPreference":
        """Create ReminderPreference from a record store row."""
        updated = row.get("updated_at")
        if isinstance(updated, str):
            updated = parse_timestamp(updated)
        return cls(
            user_id=row["user_id"],
            time_local=row["time_local"],
            timezone=row.get("timezone") or "",
            enabled=bool(row.get("enabled", False)),
            updated_at=updated,
        )

    def to_row(self) -> dict:
        row = {
            "user_id": self.user_id,
            "time_local": self.time_local,
            "timezone": self.timezone,
            "enabled": self.enabled,
        }
        if self.updated_at is not None:
            row["updated_at"] = self.updated_at.isoformat()
        return row

    @property
    def display_time(self) -> str:
        return format_time_12h(self.time_local)


def _normalize_minute(minute: str | int) -> int:
    try:
        value = int(minute)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid minute: {minute!r}")
    if not 0 <= value <= 55 or value % MINUTE_STEP:
        raise ValueError(f"Minute must be a multiple of {MINUTE_STEP} between 00 and 55: {minute!r}")
    return value


def to_storage(hour12: int, minute: str | int, meridiem: str) -> str:
    """
    Convert a 12-hour pick to the stored 24-hour "HH:MM".

    12 AM is midnight (00), 12 PM is noon (12), other PM hours add 12.
    """
    if not 1 <= hour12 <= 12:
        raise ValueError(f"Hour must be between 1 and 12: {hour12!r}")
    meridiem = meridiem.upper()
    if meridiem not in MERIDIEMS:
        raise ValueError(f"Meridiem must be AM or PM: {meridiem!r}")
    minute_value = _normalize_minute(minute)

    hour24 = hour12 % 12
    if meridiem == "PM":
        hour24 += 12
    return f"{hour24:02d}:{minute_value:02d}"


def from_storage(time_local: str) -> ReminderTime:
    """Convert a stored "HH:MM" back to its 12-hour pick."""
    match = _STORED_RE.match(time_local)
    if not match:
        raise ValueError(f"Invalid stored time: {time_local!r}")
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise ValueError(f"Invalid stored time: {time_local!r}")

    if hour == 0:
        return ReminderTime(12, f"{minute:02d}", "AM")
    if hour == 12:
        return ReminderTime(12, f"{minute:02d}", "PM")
    if hour > 12:
        return ReminderTime(hour - 12, f"{minute:02d}", "PM")
    return ReminderTime(hour, f"{minute:02d}", "AM")


def parse_time_12h(text: str) -> ReminderTime:
    """Parse a human time such as "8:05 PM"."""
    match = _HUMAN_RE.match(text)
    if not match:
        raise ValueError(f"Expected a time like '8:05 PM', got {text!r}")
    hour = int(match.group(1))
    minute = match.group(2)
    meridiem = match.group(3).upper()
    # Validate through the codec
    to_storage(hour, minute, meridiem)
    return ReminderTime(hour, minute, meridiem)


def format_time_12h(time_local: str) -> str:
    return str(from_storage(time_local))


def local_time_in(zone: str, now: datetime) -> str:
    """
    Wall-clock "HH:MM" for an instant in the given IANA zone.

    Naive datetimes are taken as UTC. An empty zone means UTC.
    Raises ZoneInfoNotFoundError for unknown zones.
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(ZoneInfo(zone or "UTC")).strftime("%H:%M")


def select_due(preferences: list[ReminderPreference], now: datetime) -> list[str]:
    """
    User IDs whose enabled reminder matches the current minute in their zone.

    Exact string match at minute granularity, no grace window. Deduplicated,
    first-seen order preserved.
    """
    due: list[str] = []
    for pref in preferences:
        if not pref.enabled or pref.user_id in due:
            continue
        try:
            current = local_time_in(pref.timezone, now)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning(f"Skipping reminder for {pref.user_id}: unknown timezone '{pref.timezone}'")
            continue
        if current == pref.time_local:
            due.append(pref.user_id)
    return due


def minute_key(now: datetime) -> str:
    """UTC minute identifier used to dedupe reminder sends."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M")

"""Pure day-progression logic - no I/O dependencies."""

import re
from dataclasses import dataclass, replace
from datetime import datetime

from .words import SEAL_THRESHOLD

TOTAL_DAYS = 30

_FRACTION = re.compile(r"\.(\d+)")


def parse_timestamp(value: str) -> datetime:
    """
    Parse an ISO 8601 timestamp as stored by Postgres.

    Postgres trims trailing zeros from fractional seconds, which older
    fromisoformat() rejects, so the fraction is normalised to microseconds.
    """
    value = value.replace("Z", "+00:00")
    value = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), value, count=1)
    return datetime.fromisoformat(value)


@dataclass
class DayRecord:
    """A persisted journal entry for one day of the journey."""

    user_id: str
    day_number: int
    content: str = ""
    word_count: int = 0
    sealed: bool = False
    updated_at: datetime | None = None
    id: str | None = None

    @classmethod
    def from_row(cls, row: dict) -> "DayRecord":
        """Create DayRecord from a record store row."""
        updated = row.get("updated_at")
        if isinstance(updated, str):
            updated = parse_timestamp(updated)
        return cls(
            user_id=row["user_id"],
            day_number=int(row["day_number"]),
            content=row.get("content") or "",
            word_count=row.get("word_count") or 0,
            sealed=bool(row.get("sealed", False)),
            updated_at=updated,
            id=row.get("id"),
        )


@dataclass(frozen=True)
class DaySlot:
    """One of the journey's days as shown to the writer."""

    day_number: int
    content: str = ""
    word_count: int = 0
    sealed: bool = False
    is_today: bool = False
    locked: bool = False
    record_id: str | None = None

    @property
    def editable(self) -> bool:
        return self.is_today and not self.sealed


@dataclass
class JourneyStats:
    total_words: int
    days_completed: int


def _sort_key(record: DayRecord) -> tuple[bool, int, float]:
    # Sealed records outrank newer drafts
    if record.updated_at is None:
        return (record.sealed, 0, 0.0)
    return (record.sealed, 1, record.updated_at.timestamp())


def latest_records(records: list[DayRecord], total_days: int = TOTAL_DAYS) -> dict[int, DayRecord]:
    """
    Pick one record per day number.

    A sealed record beats an unsealed one, then the most recently updated
    record wins; ties go to the later record in input order. Day numbers
    outside 1..total_days are dropped.
    """
    by_day: dict[int, DayRecord] = {}
    for record in records:
        if not 1 <= record.day_number <= total_days:
            continue
        existing = by_day.get(record.day_number)
        if existing is None or _sort_key(record) >= _sort_key(existing):
            by_day[record.day_number] = record
    return by_day


def current_day_number(records: list[DayRecord], total_days: int = TOTAL_DAYS) -> int:
    """Day after the highest sealed day, capped at the last day."""
    sealed = [r.day_number for r in latest_records(records, total_days).values() if r.sealed]
    last_sealed = max(sealed, default=0)
    return min(last_sealed + 1, total_days)


def derive_day_slots(records: list[DayRecord], total_days: int = TOTAL_DAYS) -> list[DaySlot]:
    """
    Build the full, gapless 1..total_days slot ledger from sparse records.

    Pure function - no I/O. Days without a record are empty and unsealed.
    """
    by_day = latest_records(records, total_days)
    current = current_day_number(list(by_day.values()), total_days)

    slots = []
    for number in range(1, total_days + 1):
        record = by_day.get(number)
        if record is not None:
            slot = DaySlot(
                day_number=number,
                content=record.content,
                word_count=record.word_count,
                sealed=record.sealed,
                record_id=record.id,
            )
        else:
            slot = DaySlot(day_number=number)
        slots.append(
            replace(
                slot,
                is_today=number == current,
                # Sealed days stay readable wherever they sit
                locked=number > current and not slot.sealed,
            )
        )
    return slots


def can_seal(slot: DaySlot) -> bool:
    """A day can be sealed once it reaches the threshold, and only once."""
    return slot.word_count >= SEAL_THRESHOLD and not slot.sealed


def seal_slots(slots: list[DaySlot], day_number: int) -> list[DaySlot]:
    """
    Apply the seal transition to an in-memory ledger.

    Returns the input unchanged when the day cannot be sealed. Otherwise
    returns a new ledger with the day sealed and today/locked re-derived.
    """
    target = next((s for s in slots if s.day_number == day_number), None)
    if target is None or not can_seal(target):
        return slots

    records = [
        DayRecord(
            user_id="",
            day_number=s.day_number,
            content=s.content,
            word_count=s.word_count,
            sealed=s.sealed or s.day_number == day_number,
            id=s.record_id,
        )
        for s in slots
    ]
    return derive_day_slots(records, total_days=len(slots))


def find_today(slots: list[DaySlot]) -> DaySlot | None:
    return next((s for s in slots if s.is_today), None)


def journey_stats(slots: list[DaySlot]) -> JourneyStats:
    """
    Total words written and days completed.

    Sealed days count in full; the current day counts while it is still open.
    """
    total = sum(s.word_count for s in slots if s.sealed)
    today = find_today(slots)
    if today is not None and not today.sealed:
        total += today.word_count
    return JourneyStats(
        total_words=total,
        days_completed=sum(1 for s in slots if s.sealed),
    )


def progress_percent(slot: DaySlot) -> float:
    """Progress toward the seal threshold, capped at 100."""
    return min(slot.word_count / SEAL_THRESHOLD * 100, 100.0)


def day_label(slot: DaySlot) -> str:
    """Timeline label for a slot."""
    if slot.locked:
        return f"Day {slot.day_number} · Locked"
    if slot.is_today:
        return f"Today · {slot.word_count} words"
    if slot.sealed:
        return f"Day {slot.day_number} · {slot.word_count} words"
    return f"Day {slot.day_number}"

"""Shared workflow layer between the CLI, writing sessions and the scheduler.

Each function takes the record store and the acting user explicitly and
raises StoreError when persistence fails.
"""

import logging
from datetime import datetime, timezone

from .config import Config
from .core.days import TOTAL_DAYS, DayRecord, DaySlot, can_seal, derive_day_slots, seal_slots
from .core.reminders import ReminderPreference, to_storage
from .core.words import count_words
from .ports.record_store import RecordStore

logger = logging.getLogger(__name__)

DAYS_TABLE = "days"
REMINDERS_TABLE = "reminders"


def get_store(config: Config) -> RecordStore:
    """Resolve the record store backend from config."""
    match config.store_backend:
        case "supabase":
            from .adapters.supabase_rest import SupabaseRestStore

            return SupabaseRestStore(config)
        case "file" | "":
            from .adapters.file_store import FileRecordStore

            return FileRecordStore(config.data_path)
        case other:
            raise ValueError(f"Unknown STORE_BACKEND: {other}")


def _now(now: datetime | None) -> datetime:
    return now or datetime.now(timezone.utc)


# ============== Days ==============


def fetch_day_records(store: RecordStore, user_id: str) -> list[DayRecord]:
    rows = store.select(DAYS_TABLE, {"user_id": user_id}, order="day_number")
    return [DayRecord.from_row(row) for row in rows]


def load_days(store: RecordStore, user_id: str, total_days: int = TOTAL_DAYS) -> list[DaySlot]:
    """Fetch a user's records and derive the day ledger."""
    records = fetch_day_records(store, user_id)
    out_of_range = [r.day_number for r in records if not 1 <= r.day_number <= total_days]
    if out_of_range:
        logger.debug(f"Ignoring out-of-range day records for {user_id}: {out_of_range}")
    return derive_day_slots(records, total_days)


def _find_day_row(store: RecordStore, user_id: str, day_number: int) -> dict | None:
    rows = store.select(DAYS_TABLE, {"user_id": user_id, "day_number": day_number}, order="updated_at")
    if not rows:
        return None
    sealed = [row for row in rows if row.get("sealed")]
    return (sealed or rows)[-1]


def save_day(
    store: RecordStore,
    user_id: str,
    day_number: int,
    content: str,
    now: datetime | None = None,
    word_count: int | None = None,
) -> DayRecord:
    """
    Persist a day's content.

    Updates the existing record or creates an unsealed one. Sealed records are
    immutable and are returned untouched. word_count is computed from content
    when not given.
    """
    if word_count is None:
        word_count = count_words(content)
    stamp = _now(now).isoformat()
    existing = _find_day_row(store, user_id, day_number)

    if existing is not None:
        if existing.get("sealed"):
            logger.warning(f"Refusing to overwrite sealed day {day_number} for {user_id}")
            return DayRecord.from_row(existing)
        row = store.update(
            DAYS_TABLE,
            existing["id"],
            {"content": content, "word_count": word_count, "updated_at": stamp},
        )
    else:
        row = store.insert(
            DAYS_TABLE,
            {
                "user_id": user_id,
                "day_number": day_number,
                "content": content,
                "word_count": word_count,
                "sealed": False,
                "updated_at": stamp,
            },
        )
    logger.debug(f"Saved day {day_number} for {user_id} ({word_count} words)")
    return DayRecord.from_row(row)


def seal_day(
    store: RecordStore,
    user_id: str,
    slots: list[DaySlot],
    day_number: int,
    *,
    reload: bool = False,
    now: datetime | None = None,
) -> list[DaySlot]:
    """
    Seal a day and return the advanced ledger.

    A day under the threshold, or already sealed, is left alone and the ledger
    is returned unchanged. With reload=True the ledger is re-derived from the
    store instead of applying the transition locally.
    """
    slot = next((s for s in slots if s.day_number == day_number), None)
    if slot is None or not can_seal(slot):
        return slots

    stamp = _now(now).isoformat()
    existing = _find_day_row(store, user_id, day_number)
    if existing is not None:
        store.update(DAYS_TABLE, existing["id"], {"sealed": True, "updated_at": stamp})
    else:
        store.insert(
            DAYS_TABLE,
            {
                "user_id": user_id,
                "day_number": day_number,
                "content": slot.content,
                "word_count": slot.word_count,
                "sealed": True,
                "updated_at": stamp,
            },
        )
    logger.info(f"Sealed day {day_number} for {user_id} ({slot.word_count} words)")

    if reload:
        return load_days(store, user_id, total_days=len(slots))
    return seal_slots(slots, day_number)


# ============== Reminders ==============


def get_reminder(store: RecordStore, user_id: str) -> ReminderPreference | None:
    rows = store.select(REMINDERS_TABLE, {"user_id": user_id})
    return ReminderPreference.from_row(rows[0]) if rows else None


def set_reminder(
    store: RecordStore,
    user_id: str,
    hour12: int,
    minute: str | int,
    meridiem: str,
    timezone_name: str,
    now: datetime | None = None,
) -> ReminderPreference:
    """Create or overwrite a user's reminder, enabling it."""
    pref = ReminderPreference(
        user_id=user_id,
        time_local=to_storage(hour12, minute, meridiem),
        timezone=timezone_name,
        enabled=True,
        updated_at=_now(now),
    )
    row = store.upsert(REMINDERS_TABLE, pref.to_row(), conflict_key=("user_id",))
    logger.info(f"Reminder for {user_id} set to {pref.time_local} {timezone_name}")
    return ReminderPreference.from_row(row)


def set_reminder_enabled(
    store: RecordStore,
    user_id: str,
    enabled: bool,
    now: datetime | None = None,
) -> ReminderPreference:
    """Toggle an existing reminder without deleting it."""
    if get_reminder(store, user_id) is None:
        raise ValueError("No reminder set. Use 'finire reminder set' first.")
    # reminders are keyed on user_id, so merge through the conflict key
    row = store.upsert(
        REMINDERS_TABLE,
        {"user_id": user_id, "enabled": enabled, "updated_at": _now(now).isoformat()},
        conflict_key=("user_id",),
    )
    return ReminderPreference.from_row(row)


def fetch_enabled_reminders(store: RecordStore) -> list[ReminderPreference]:
    rows = store.select(REMINDERS_TABLE, {"enabled": True})
    return [ReminderPreference.from_row(row) for row in rows]

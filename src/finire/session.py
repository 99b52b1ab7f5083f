"""A writing session over one user's 30-day journey."""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Callable

from . import workflows
from .autosave import AUTOSAVE_DELAY, AutosaveController
from .core.days import TOTAL_DAYS, DaySlot, JourneyStats, find_today, journey_stats
from .core.words import count_words
from .ports.record_store import RecordStore
from .ports.timer import TimerScheduler

logger = logging.getLogger(__name__)


class JournalSession:
    """
    In-memory day ledger for one writer, with debounced autosave.

    Edits update the ledger immediately and reach the store through the
    autosave controller. Only the current, unsealed day accepts edits.
    """

    def __init__(
        self,
        store: RecordStore,
        user_id: str,
        timers: TimerScheduler,
        delay: float = AUTOSAVE_DELAY,
        total_days: int = TOTAL_DAYS,
        clock: Callable[[], datetime] | None = None,
    ):
        self.store = store
        self.user_id = user_id
        self.total_days = total_days
        self._clock = clock
        self._slots: list[DaySlot] = []
        self._viewing = 0
        self.autosave = AutosaveController(
            save=self._persist,
            timers=timers,
            delay=delay,
            can_save=self._is_editable,
        )

    @property
    def slots(self) -> list[DaySlot]:
        return list(self._slots)

    @property
    def viewing(self) -> DaySlot:
        return self._slots[self._viewing]

    @property
    def today(self) -> DaySlot | None:
        return find_today(self._slots)

    @property
    def stats(self) -> JourneyStats:
        return journey_stats(self._slots)

    def _now(self) -> datetime | None:
        return self._clock() if self._clock else None

    def _index_of(self, day_number: int) -> int:
        return day_number - 1

    def _view_today(self) -> None:
        today = self.today
        self._viewing = self._index_of(today.day_number) if today else 0

    def _is_editable(self, day_number: int) -> bool:
        if not 1 <= day_number <= len(self._slots):
            return False
        return self._slots[self._index_of(day_number)].editable

    def _persist(self, day_number: int, content: str, word_count: int) -> None:
        record = workflows.save_day(
            self.store, self.user_id, day_number, content, now=self._now(), word_count=word_count
        )
        # Runs on the timer thread with the autosave lock held
        index = self._index_of(day_number)
        if self._slots[index].record_id is None:
            self._slots[index] = replace(self._slots[index], record_id=record.id)

    def load(self) -> list[DaySlot]:
        """Load the ledger from the store and view the current day."""
        slots = workflows.load_days(self.store, self.user_id, self.total_days)
        self._slots = slots
        self._view_today()
        return self.slots

    def select(self, day_number: int) -> bool:
        """View a day. Locked days cannot be opened."""
        if not 1 <= day_number <= len(self._slots):
            return False
        slot = self._slots[self._index_of(day_number)]
        if slot.locked:
            return False
        self._viewing = self._index_of(day_number)
        return True

    def previous(self) -> bool:
        if self._viewing == 0:
            return False
        return self.select(self.viewing.day_number - 1)

    def next(self) -> bool:
        return self.select(self.viewing.day_number + 1)

    def edit(self, content: str) -> bool:
        """Replace the viewed day's text. Ignored unless it is today and unsealed."""
        with self.autosave.lock:
            slot = self.viewing
            if not slot.editable:
                return False
            self._slots[self._viewing] = replace(slot, content=content, word_count=count_words(content))
            self.autosave.schedule(slot.day_number, content)
        return True

    def seal(self, reload: bool = False) -> bool:
        """
        Seal today once it reaches the threshold.

        Pending edits are flushed first so the threshold is checked against
        what was just persisted. Returns False if nothing was sealed.
        """
        today = self.today
        if today is None or not self.viewing.is_today:
            return False
        if not self.autosave.flush():
            logger.warning("Not sealing: latest edits could not be saved")
            return False

        before = self._slots
        slots = workflows.seal_day(
            self.store,
            self.user_id,
            before,
            today.day_number,
            reload=reload,
            now=self._now(),
        )
        if slots is before:
            return False
        self._slots = slots
        self._view_today()
        return True

    def close(self) -> bool:
        """Flush pending edits. Returns False if they could not be saved."""
        return self.autosave.flush()

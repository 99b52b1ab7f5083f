"""Debounced autosave for the day being written."""

import logging
import threading
from dataclasses import dataclass
from typing import Callable

from .core.words import count_words
from .errors import StoreError
from .ports.timer import TimerHandle, TimerScheduler

logger = logging.getLogger(__name__)

AUTOSAVE_DELAY = 0.5

SaveFn = Callable[[int, str, int], object]


@dataclass
class PendingSave:
    day_number: int
    content: str


class AutosaveController:
    """
    Trailing-edge debounce in front of a save function.

    Every schedule() cancels the running timer and starts a new one, so a burst
    of edits produces one save carrying the final content. When the timer fires
    the controller re-checks can_save(day_number) and drops saves for days that
    are no longer editable. A failed save is logged and kept pending; the next
    edit or flush() retries it with the latest content.
    """

    def __init__(
        self,
        save: SaveFn,
        timers: TimerScheduler,
        delay: float = AUTOSAVE_DELAY,
        can_save: Callable[[int], bool] | None = None,
    ):
        self._save = save
        self._timers = timers
        self.delay = delay
        self._can_save = can_save or (lambda day_number: True)
        self._pending: PendingSave | None = None
        self._timer: TimerHandle | None = None
        self._lock = threading.RLock()

    @property
    def pending(self) -> PendingSave | None:
        return self._pending

    @property
    def lock(self):
        """Held while a save runs; callers sharing state with save() take it too."""
        return self._lock

    def schedule(self, day_number: int, content: str) -> None:
        """Record a change and restart the quiescence window."""
        with self._lock:
            if self._pending is not None and self._pending.day_number != day_number:
                # Only one day is editable at a time; push the old one out first
                self._fire()
            self._pending = PendingSave(day_number, content)
            self._restart_timer()

    def cancel(self) -> None:
        """Drop the pending change without saving."""
        with self._lock:
            self._stop_timer()
            self._pending = None

    def flush(self) -> bool:
        """Save any pending change now. Returns True when nothing is left pending."""
        with self._lock:
            self._stop_timer()
            self._fire()
            return self._pending is None

    def _restart_timer(self) -> None:
        self._stop_timer()
        self._timer = self._timers.call_later(self.delay, self._on_timer)

    def _stop_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timer(self) -> None:
        with self._lock:
            self._timer = None
            self._fire()

    def _fire(self) -> None:
        pending = self._pending
        if pending is None:
            return

        if not self._can_save(pending.day_number):
            logger.debug(f"Dropping stale autosave for day {pending.day_number}")
            self._pending = None
            return

        word_count = count_words(pending.content)
        try:
            self._save(pending.day_number, pending.content, word_count)
        except StoreError as e:
            logger.error(f"Autosave failed for day {pending.day_number}: {e}")
            return

        # A newer edit may have replaced the pending change during the save
        if self._pending is pending:
            self._pending = None

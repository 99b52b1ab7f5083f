"""Shared test fixtures."""

from datetime import datetime, timezone

import pytest

from finire.adapters.file_store import FileRecordStore


class VirtualTimer:
    def __init__(self, due: float, callback):
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class VirtualTimers:
    """TimerScheduler driven by an explicit clock."""

    def __init__(self):
        self.now = 0.0
        self.timers: list[VirtualTimer] = []

    def call_later(self, delay: float, callback) -> VirtualTimer:
        timer = VirtualTimer(self.now + delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def live(self) -> list[VirtualTimer]:
        return [t for t in self.timers if not t.cancelled]

    def advance(self, seconds: float) -> None:
        self.now += seconds
        for timer in list(self.timers):
            if not timer.cancelled and timer.due <= self.now:
                timer.cancelled = True
                timer.callback()


@pytest.fixture
def timers():
    return VirtualTimers()


@pytest.fixture
def store(tmp_path):
    return FileRecordStore(tmp_path / "data")


@pytest.fixture
def fixed_now():
    return datetime(2025, 1, 15, 8, 0, 30, tzinfo=timezone.utc)


@pytest.fixture
def text_of():
    """Build text with exactly n words."""

    def build(n: int) -> str:
        return " ".join(f"word{i}" for i in range(n))

    return build

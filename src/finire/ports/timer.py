"""Timer scheduling interface."""

from typing import Callable, Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None:
        """Cancel the timer. A no-op if it already fired."""
        ...


class TimerScheduler(Protocol):
    """Interface for one-shot delayed callbacks."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Run callback once after delay seconds."""
        ...

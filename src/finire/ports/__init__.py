"""Ports - interfaces/protocols for external dependencies."""

from .record_store import RecordStore
from .identity import IdentityProvider
from .mail_transport import MailTransport, SendResult
from .timer import TimerHandle, TimerScheduler

__all__ = [
    "RecordStore",
    "IdentityProvider",
    "MailTransport",
    "SendResult",
    "TimerHandle",
    "TimerScheduler",
]

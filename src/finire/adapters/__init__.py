"""Adapters - I/O implementations of ports."""

from .file_store import FileRecordStore
from .supabase_rest import SupabaseRestStore
from .resend_mail import ResendTransport
from .apscheduler_timer import APSchedulerTimers

__all__ = [
    "FileRecordStore",
    "SupabaseRestStore",
    "ResendTransport",
    "APSchedulerTimers",
]

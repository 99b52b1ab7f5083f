"""Reminder dispatch - one run of the per-minute reminder check."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from .config import DEFAULT_APP_URL, Config, load_config
from .core.reminders import minute_key, select_due
from .errors import ConfigError, StoreError
from .ports.identity import IdentityProvider
from .ports.mail_transport import MailTransport
from .ports.record_store import RecordStore
from .workflows import fetch_enabled_reminders, get_store

logger = logging.getLogger(__name__)

DELIVERIES_TABLE = "reminder_deliveries"

SUBJECT = "Time to write"

SENT = "sent"
FAILED = "failed"
ERROR = "error"


@dataclass
class ReminderMessage:
    subject: str
    html: str


@dataclass
class RecipientResult:
    """Delivery outcome for one due user."""

    user_id: str
    email: str
    status: str
    error: str = ""


@dataclass
class DispatchSummary:
    """Result of one dispatch run."""

    results: list[RecipientResult] = field(default_factory=list)
    ok: bool = True
    error: str = ""

    @property
    def notified_count(self) -> int:
        """Recipients a send was attempted for."""
        return len(self.results)

    @property
    def sent_count(self) -> int:
        return sum(1 for r in self.results if r.status == SENT)

    def to_dict(self) -> dict:
        return {
            "ok": self.ok,
            "error": self.error or None,
            "notified_count": self.notified_count,
            "sent_count": self.sent_count,
            "results": [
                {
                    "user_id": r.user_id,
                    "email": r.email,
                    "status": r.status,
                    "error": r.error or None,
                }
                for r in self.results
            ],
        }


def build_message(app_url: str) -> ReminderMessage:
    """The daily reminder email."""
    html = f"""
<div style="font-family: Georgia, serif; max-width: 480px; margin: 0 auto; padding: 40px 20px;">
  <h1 style="font-size: 24px; font-weight: normal; font-style: italic; margin-bottom: 24px;">Finire</h1>
  <p style="font-size: 16px; line-height: 1.6; color: #333;">
    This is your daily reminder to write.
  </p>
  <p style="font-size: 16px; line-height: 1.6; color: #333;">
    300 words. That's all it takes to keep moving forward.
  </p>
  <a href="{app_url}" style="display: inline-block; margin-top: 24px; padding: 12px 24px; background: #1a1a1a; color: #fff; text-decoration: none; font-size: 14px;">
    Start writing
  </a>
  <p style="margin-top: 40px; font-size: 12px; color: #999;">
    You're receiving this because you set a daily reminder on Finire.
  </p>
</div>
"""
    return ReminderMessage(subject=SUBJECT, html=html)


def _resolve_recipients(identity: IdentityProvider, user_ids: list[str]) -> list[tuple[str, str]]:
    """Map due user IDs to (user_id, email), dropping users without an address."""
    wanted = set(user_ids)
    recipients = []
    seen_emails = set()
    for user in identity.list_users():
        email = user.get("email")
        if user.get("id") not in wanted or not email or email in seen_emails:
            continue
        seen_emails.add(email)
        recipients.append((user["id"], email))
    return recipients


def _claim_minute(store: RecordStore, user_id: str, key: str) -> bool:
    """
    Record a send for this user and minute. False if one already exists.

    Raises StoreError when the delivery table cannot be read or written.
    """
    if store.select(DELIVERIES_TABLE, {"user_id": user_id, "minute_key": key}):
        return False
    store.insert(DELIVERIES_TABLE, {"user_id": user_id, "minute_key": key})
    return True


def dispatch_reminders(
    store: RecordStore,
    identity: IdentityProvider,
    transport: MailTransport,
    *,
    now: datetime | None = None,
    message: ReminderMessage | None = None,
    dedupe: bool = False,
) -> DispatchSummary:
    """
    Send reminders to every user whose local time matches now.

    Per-recipient failures are isolated and recorded; StoreError from reading
    preferences or users propagates.
    """
    now = now or datetime.now(timezone.utc)
    message = message or build_message(DEFAULT_APP_URL)

    preferences = fetch_enabled_reminders(store)
    if not preferences:
        logger.info("No enabled reminders")
        return DispatchSummary()

    due = select_due(preferences, now)
    if not due:
        logger.debug("No reminders due now")
        return DispatchSummary()

    recipients = _resolve_recipients(identity, due)
    if not recipients:
        logger.info(f"{len(due)} reminders due but no deliverable addresses")
        return DispatchSummary()

    key = minute_key(now)
    summary = DispatchSummary()
    for user_id, email in recipients:
        if dedupe:
            try:
                claimed = _claim_minute(store, user_id, key)
            except StoreError as e:
                logger.error(f"Could not claim reminder slot for {user_id} at {key}: {e}")
                summary.results.append(RecipientResult(user_id, email, ERROR, str(e)))
                continue
            if not claimed:
                logger.info(f"Reminder for {user_id} already sent at {key}, skipping")
                continue
        try:
            result = transport.send(email, message.subject, message.html)
        except Exception as e:
            logger.error(f"Error sending reminder to {email}: {e}")
            summary.results.append(RecipientResult(user_id, email, ERROR, str(e)))
            continue

        if result.ok:
            summary.results.append(RecipientResult(user_id, email, SENT))
        else:
            logger.error(f"Failed to send reminder to {email}: {result.error}")
            summary.results.append(RecipientResult(user_id, email, FAILED, result.error))

    logger.info(f"Reminder dispatch: {summary.sent_count}/{summary.notified_count} sent")
    return summary


def run_dispatch(config: Config | None = None, now: datetime | None = None) -> DispatchSummary:
    """
    Dispatch entry point for the periodic trigger.

    Builds collaborators from config. Missing credentials or a failing store
    abort the run with a reported failure.
    """
    config = config or load_config()
    try:
        from .adapters.resend_mail import ResendTransport

        transport = ResendTransport(config)
        store = get_store(config)
        # both store backends also list users
        return dispatch_reminders(
            store,
            store,
            transport,
            now=now,
            message=build_message(config.app_url),
            dedupe=config.reminder_dedupe,
        )
    except ConfigError as e:
        logger.error(f"Reminder dispatch not configured: {e}")
        return DispatchSummary(ok=False, error=str(e))
    except StoreError as e:
        logger.error(f"Reminder dispatch aborted: {e}")
        return DispatchSummary(ok=False, error=str(e))

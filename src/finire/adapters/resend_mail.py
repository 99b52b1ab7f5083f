"""Resend API adapter - HTTP client for reminder emails."""

import logging

import requests

from finire.config import Config, load_config
from finire.errors import ConfigError, TransportError
from finire.ports.mail_transport import SendResult

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"


class ResendTransport:
    """
    Resend email adapter.

    Implements MailTransport protocol. An API rejection is a failed SendResult;
    an unreachable API raises TransportError.
    """

    def __init__(self, config: Config | None = None, timeout: int = 30):
        self.config = config or load_config()
        if not self.config.resend_api_key:
            raise ConfigError("RESEND_API_KEY not configured. Add it to finire.conf")
        self.timeout = timeout
        self._session = requests.Session()

    def send(self, to_address: str, subject: str, html_body: str) -> SendResult:
        """Send one email. Raises TransportError if the API cannot be reached."""
        try:
            resp = self._session.post(
                RESEND_API_URL,
                headers={
                    "Authorization": f"Bearer {self.config.resend_api_key}",
                    "Content-Type": "application/json",
                },
                json={
                    "from": self.config.email_from,
                    "to": to_address,
                    "subject": subject,
                    "html": html_body,
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise TransportError(f"Resend request failed: {e}")

        if resp.ok:
            return SendResult(ok=True)

        logger.error(f"Resend rejected message to {to_address}: {resp.text}")
        return SendResult(ok=False, error=resp.text)

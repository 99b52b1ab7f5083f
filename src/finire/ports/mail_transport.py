"""Mail transport interface."""

from dataclasses import dataclass
from typing import Protocol


@dataclass
class SendResult:
    """Outcome reported by a transport for one message."""

    ok: bool
    error: str = ""


class MailTransport(Protocol):
    """Interface for sending a single email."""

    def send(self, to_address: str, subject: str, html_body: str) -> SendResult:
        """Send one message. Raises on transport failure."""
        ...

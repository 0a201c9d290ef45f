"""
Email delivery through the Resend HTTP API.

The dispatcher is a sink: it hands one message to the API and reports whether
the API accepted it. It never raises; callers record the outcome.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import requests

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"


@dataclass(frozen=True)
class DispatchResult:
    ok: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


class ResendDispatcher:
    """POSTs ``{from, to, subject, html}`` to the Resend emails endpoint."""

    def __init__(
        self,
        api_key: Optional[str],
        sender: str,
        api_url: str = RESEND_API_URL,
        timeout: int = 15,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.sender = sender
        self.api_url = api_url
        self.timeout = timeout
        self.session = session or requests.Session()

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def send(self, to: str, subject: str, html: str) -> DispatchResult:
        if not self.configured:
            logger.warning(f"Email API key not configured; not sending '{subject}' to {to}")
            return DispatchResult(ok=False, error="Email API key not configured")

        try:
            response = self.session.post(
                self.api_url,
                json={"from": self.sender, "to": to, "subject": subject, "html": html},
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning(f"Email to {to} failed in transport: {e}")
            return DispatchResult(ok=False, error=str(e))

        if not response.ok:
            logger.warning(f"Email API rejected message to {to}: {response.status_code} {response.text}")
            return DispatchResult(ok=False, error=f"HTTP {response.status_code}: {response.text}")

        try:
            message_id = response.json().get("id")
        except ValueError:
            message_id = None
        logger.info(f"Sent '{subject}' to {to} (id {message_id})")
        return DispatchResult(ok=True, message_id=message_id)

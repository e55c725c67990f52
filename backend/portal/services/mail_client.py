"""Outbound email through the Mailgun HTTP API."""

import logging
import time
from typing import Optional

import httpx

from ..core.config import settings
from ..exceptions import ServiceUnavailableError

logger = logging.getLogger(__name__)

# Retry configuration for transient failures (connection errors, 5xx).
MAX_RETRIES = 3
RETRY_BASE_DELAY = 1.0  # seconds; exponential: 1s, 2s, 4s


class MailDeliveryError(Exception):
    """Mailgun rejected the message or could not be reached."""


class MailClient:
    """Thin synchronous wrapper around ``POST /v3/{domain}/messages``.

    Configured from settings by default; every argument can be overridden,
    and tests pass their own ``httpx.Client`` (e.g. with a MockTransport).
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        domain: Optional[str] = None,
        host: Optional[str] = None,
        sender: Optional[str] = None,
        client: Optional[httpx.Client] = None,
        retry_delay: float = RETRY_BASE_DELAY,
    ):
        self.api_key = api_key if api_key is not None else settings.mailgun_api_key
        self.domain = domain if domain is not None else settings.mailgun_domain
        self.host = (host or settings.mailgun_host).rstrip("/")
        self.sender = sender or settings.email_from
        self.retry_delay = retry_delay
        self._client = client

    def is_configured(self) -> bool:
        return bool(self.api_key and self.domain)

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(base_url=self.host, auth=("api", self.api_key), timeout=30.0)
        return self._client

    def send(self, to: str, subject: str, text: str, html: Optional[str] = None) -> str:
        """Send one message and return Mailgun's message id.

        Raises:
            ServiceUnavailableError: If Mailgun is not configured.
            MailDeliveryError: On a 4xx, or once retries are exhausted.
        """
        if not self.is_configured():
            raise ServiceUnavailableError("mailgun", "MAILGUN_API_KEY and MAILGUN_DOMAIN must be set")

        data = {
            "from": self.sender,
            "to": to,
            "subject": subject,
            "text": text,
            "html": html or text,
        }
        path = f"/v3/{self.domain}/messages"
        last_error: Optional[Exception] = None

        for attempt in range(MAX_RETRIES):
            try:
                resp = self._get_client().post(path, data=data)
                if resp.status_code < 500:
                    resp.raise_for_status()
                    message_id = resp.json().get("id", "")
                    logger.info("Sent email", extra={"to": to, "message_id": message_id})
                    return message_id
                last_error = httpx.HTTPStatusError(
                    f"Server error {resp.status_code}", request=resp.request, response=resp
                )
            except httpx.HTTPStatusError as exc:
                if exc.response.status_code < 500:
                    raise MailDeliveryError(
                        f"Mailgun rejected message to {to}: {exc.response.status_code}"
                    ) from exc
                last_error = exc
            except (httpx.ConnectError, httpx.TimeoutException) as exc:
                last_error = exc

            if attempt < MAX_RETRIES - 1:
                delay = self.retry_delay * (2 ** attempt)
                logger.warning(
                    "Mailgun request failed (attempt %d/%d), retrying in %.1fs: %s",
                    attempt + 1, MAX_RETRIES, delay, last_error,
                )
                time.sleep(delay)

        raise MailDeliveryError(f"Mailgun unreachable after {MAX_RETRIES} attempts: {last_error}")

    def close(self) -> None:
        if self._client is not None:
            self._client.close()

"""
Notifier: deliver the run summary to an external channel.

send() never raises. Transport errors and non-2xx responses are turned into
NotificationFailed internally, logged, and returned as delivered=False; a
failed notification never changes the assessment.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import httpx

from persona_audit.audit_logging import get_logger
from persona_audit.core.exceptions import NotificationFailed

logger = get_logger(__name__)

TELEGRAM_API_BASE = "https://api.telegram.org"
DEFAULT_TIMEOUT_SEC = 10.0
DEFAULT_PARSE_MODE = "Markdown"
# Keep response bodies short in logs and errors
MAX_ERROR_BODY = 200


@dataclass(frozen=True)
class DeliveryResult:
    delivered: bool
    error: str | None = None


@runtime_checkable
class Notifier(Protocol):
    def send(self, text: str) -> DeliveryResult:
        ...


class NullNotifier:
    """Used when no channel is configured; sends nothing and reports delivered=False."""

    def send(self, text: str) -> DeliveryResult:
        logger.info("notifier_disabled", chars=len(text))
        return DeliveryResult(delivered=False, error="notifier not configured")


class TelegramNotifier:
    """
    Posts {chat_id, text, parse_mode} to the Bot API sendMessage endpoint.

    client may be injected (tests use httpx.MockTransport); otherwise a
    short-lived httpx.Client with the configured timeout is used per call.
    """

    def __init__(
        self,
        bot_token: str,
        chat_id: str,
        *,
        timeout: float = DEFAULT_TIMEOUT_SEC,
        parse_mode: str | None = DEFAULT_PARSE_MODE,
        api_base: str = TELEGRAM_API_BASE,
        client: httpx.Client | None = None,
    ) -> None:
        if not bot_token or not chat_id:
            raise ValueError("TelegramNotifier requires bot_token and chat_id")
        self._url = f"{api_base.rstrip('/')}/bot{bot_token}/sendMessage"
        self.chat_id = chat_id
        self.timeout = timeout
        self.parse_mode = parse_mode
        self._client = client

    def _post(self, payload: dict[str, str]) -> httpx.Response:
        if self._client is not None:
            return self._client.post(self._url, json=payload, timeout=self.timeout)
        with httpx.Client(timeout=self.timeout) as client:
            return client.post(self._url, json=payload)

    def _deliver(self, text: str) -> None:
        payload = {"chat_id": self.chat_id, "text": text}
        if self.parse_mode:
            payload["parse_mode"] = self.parse_mode
        try:
            resp = self._post(payload)
        except httpx.HTTPError as e:
            raise NotificationFailed(f"telegram transport error: {type(e).__name__}: {e}") from e
        if not resp.is_success:
            raise NotificationFailed(
                f"telegram returned HTTP {resp.status_code}: {resp.text[:MAX_ERROR_BODY]}"
            )

    def send(self, text: str) -> DeliveryResult:
        try:
            self._deliver(text)
        except NotificationFailed as e:
            # Never log the URL; it embeds the bot token
            logger.warning("notifier_delivery_failed", channel="telegram", error=e.message)
            return DeliveryResult(delivered=False, error=e.message)
        logger.info("notifier_delivered", channel="telegram", chars=len(text))
        return DeliveryResult(delivered=True)

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from .config import ReminderSettings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotificationResult:
    ok: bool
    error: Optional[str] = None
    message_id: Optional[str] = None


class Notifier(ABC):
    """Delivers a text message to a channel target."""

    @abstractmethod
    def send(self, target: str, text: str) -> NotificationResult:
        ...


class TelegramNotifier(Notifier):
    def __init__(self, settings: ReminderSettings, session: Optional[requests.Session] = None):
        self.bot_token = settings.TELEGRAM_BOT_TOKEN
        self.api_base = settings.TELEGRAM_API_BASE.rstrip("/")
        self.parse_mode = settings.TELEGRAM_PARSE_MODE
        self.timeout = settings.NOTIFIER_TIMEOUT_SECONDS
        self.session = session or requests.Session()

    def _api_url(self) -> str:
        return f"{self.api_base}/bot{self.bot_token}/sendMessage"

    def _build_payload(self, target: str, text: str) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"chat_id": target, "text": text}
        if self.parse_mode:
            payload["parse_mode"] = self.parse_mode
        return payload

    def send(self, target: str, text: str) -> NotificationResult:
        if not self.bot_token:
            logger.error("Missing Telegram bot token, cannot deliver message")
            return NotificationResult(ok=False, error="Telegram bot token not configured")
        if not target:
            return NotificationResult(ok=False, error="Missing channel target")

        try:
            resp = self.session.post(
                self._api_url(),
                json=self._build_payload(target, text),
                timeout=self.timeout,
            )
        except requests.Timeout:
            logger.error(f"Telegram request timed out after {self.timeout}s (chat_id={target})")
            return NotificationResult(ok=False, error=f"Timed out after {self.timeout}s")
        except requests.RequestException as e:
            logger.error(f"Telegram request failed (chat_id={target}): {e}")
            return NotificationResult(ok=False, error=f"Request failed: {e}")

        try:
            body = resp.json()
        except ValueError:
            body = {}

        if resp.status_code != 200 or not body.get("ok", False):
            description = body.get("description") or resp.text or f"HTTP {resp.status_code}"
            logger.error(f"Telegram rejected message (chat_id={target}, status={resp.status_code}): {description}")
            return NotificationResult(ok=False, error=f"Telegram error {resp.status_code}: {description}")

        message_id = (body.get("result") or {}).get("message_id")
        return NotificationResult(ok=True, message_id=str(message_id) if message_id is not None else None)

"""Notification sink: Telegram bot message, skipped silently without credentials."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path

import requests

log = logging.getLogger(__name__)

API_URL = "https://api.telegram.org/bot{token}/sendMessage"
SEND_TIMEOUT = 15
# Telegram rejects messages above 4096 characters
MAX_MESSAGE_CHARS = 4000


@dataclass(frozen=True)
class Credentials:
    bot_token: str
    chat_id: str


def load_credentials(path: Path) -> Credentials | None:
    """Credential pair from JSON, or None when the file or either field is missing."""
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as e:
        log.warning("Unreadable credentials file %s: %s", path, e)
        return None
    if not isinstance(data, dict):
        return None
    token, chat = data.get("bot_token"), data.get("chat_id")
    if not token or not chat:
        return None
    return Credentials(bot_token=str(token), chat_id=str(chat))


def _truncate(text: str) -> str:
    if len(text) <= MAX_MESSAGE_CHARS:
        return text
    return text[: MAX_MESSAGE_CHARS - 20].rstrip() + "\n... (truncated)"


def send_notification(credentials_path: Path, text: str, timeout: float = SEND_TIMEOUT) -> bool:
    """POST the message. Returns True if delivered; missing credentials is a quiet no-op."""
    creds = load_credentials(credentials_path)
    if creds is None:
        log.info("No notification credentials found; skipping alert.")
        return False
    url = API_URL.format(token=creds.bot_token)
    payload = {"chat_id": creds.chat_id, "text": _truncate(text)}
    try:
        resp = requests.post(url, json=payload, timeout=timeout)
    except requests.RequestException as e:
        log.error("Failed to send notification: %s", e)
        return False
    if resp.status_code != 200:
        log.error("Notification rejected: HTTP %s", resp.status_code)
        return False
    log.info("Notification sent.")
    return True

"""
tools/telegram_alerts.py
Telegram notifier for the funding agent.

Delivers two kinds of messages:
  ✔ orders  - each submitted funding order
  ✔ fatal   - the agent stopped (precondition failure, broker error)

Everything else (kind="system", ...) is dropped.

Environment:
    TELEGRAM_BOT_TOKEN
    TELEGRAM_CHAT_ID
    TELEGRAM_ENABLED=true/false
"""

from __future__ import annotations
import os
import json
import logging
import urllib.error
import urllib.request
import urllib.parse

logger = logging.getLogger(__name__)

ALERT_TYPES = {"orders", "fatal"}


def _settings() -> tuple[bool, str, str]:
    # read at call time so .env loaded after import is honoured
    enabled = os.getenv("TELEGRAM_ENABLED", "true").lower() == "true"
    token = os.getenv("TELEGRAM_BOT_TOKEN", "").strip()
    chat_id = os.getenv("TELEGRAM_CHAT_ID", "").strip()
    return enabled, token, chat_id


def notify(msg: str, *, kind: str = "system", meta: dict | None = None) -> bool:
    """
    Returns True if a message was handed to Telegram.
    Never raises: an alert problem must not take the agent down.
    """
    enabled, token, chat_id = _settings()

    if not enabled or kind not in ALERT_TYPES or not msg:
        return False

    if not token or not chat_id:
        logger.debug("Telegram not configured; dropping %s alert.", kind)
        return False

    text = msg
    if meta:
        text += "\n" + json.dumps(meta, indent=2, default=str)

    return _send_telegram_message(token, chat_id, text)


def _send_telegram_message(token: str, chat_id: str, text: str) -> bool:
    try:
        url = f"https://api.telegram.org/bot{token}/sendMessage"
        payload = urllib.parse.urlencode({"chat_id": chat_id, "text": text}).encode()

        req = urllib.request.Request(url, data=payload)
        urllib.request.urlopen(req, timeout=5)
        return True
    except (urllib.error.URLError, OSError) as e:
        logger.error("Failed to send Telegram message: %s", e)
        return False


def send_order_alert(msg: str, meta: dict | None = None) -> bool:
    return notify(msg, kind="orders", meta=meta)


def send_fatal_alert(msg: str, meta: dict | None = None) -> bool:
    return notify(msg, kind="fatal", meta=meta)

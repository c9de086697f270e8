"""Push and notification-click handlers for the installed web app.

The handlers run against a small host interface so they can be driven by any
runtime that delivers push events (a browser bridge, a desktop notifier, or a
fake in tests). A host provides:

- ``show_notification(title, options)``: awaitable that displays a notification.
- ``match_all(type="window", include_uncontrolled=True)``: awaitable returning
  the open window clients; each client has a ``url`` and, when it can be
  focused, an awaitable ``focus()``.
- ``open_window(url)`` (optional): awaitable that opens a new window.

Each handler registers its pending work with ``event.wait_until`` and also
returns the same awaitable.
"""
from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "LifeHabits"
DEFAULT_BODY = "Nuova notifica"
DEFAULT_URL = "/"
ICON_PATH = "/pwa-192x192.png"
VIBRATE_PATTERN = [100, 50, 100]
PAYLOAD_KEYS = ("title", "body", "url", "image")


@dataclass
class PushEvent:
    data: bytes | str | None = None
    pending: list = field(default_factory=list)

    def wait_until(self, awaitable: Awaitable) -> None:
        self.pending.append(awaitable)


@dataclass
class Notification:
    title: str
    options: dict = field(default_factory=dict)
    closed: bool = False

    @property
    def data(self) -> dict:
        return self.options.get("data") or {}

    def close(self) -> None:
        self.closed = True


@dataclass
class NotificationClickEvent:
    notification: Notification
    pending: list = field(default_factory=list)

    def wait_until(self, awaitable: Awaitable) -> None:
        self.pending.append(awaitable)


def _payload_text(raw: bytes | str | None) -> str:
    if raw is None:
        return ""
    if isinstance(raw, bytes):
        return raw.decode("utf-8", errors="replace")
    return str(raw)


def parse_push_payload(raw: bytes | str | None) -> dict:
    """Merge the pushed fields over the defaults.

    Only known keys with non-null values override a default. A payload that
    is not JSON becomes the body text; an empty one keeps the defaults.
    """
    data: dict[str, Any] = {"title": DEFAULT_TITLE, "body": DEFAULT_BODY, "url": DEFAULT_URL, "image": None}
    text = _payload_text(raw)
    if not text:
        return data
    try:
        parsed = json.loads(text)
    except ValueError as exc:
        logger.warning("Push payload is not JSON, using it as body: %s", exc)
        data["body"] = text or data["body"]
        return data
    if isinstance(parsed, dict):
        for key in PAYLOAD_KEYS:
            if parsed.get(key) is not None:
                data[key] = parsed[key]
    return data


def build_notification_options(data: dict, now_ms: int | None = None) -> dict:
    return {
        "body": data.get("body"),
        "icon": ICON_PATH,
        "badge": ICON_PATH,
        "image": data.get("image"),
        "vibrate": list(VIBRATE_PATTERN),
        "data": {
            "url": data.get("url"),
            "date_of_arrival": now_ms if now_ms is not None else int(time.time() * 1000),
        },
    }


async def _display(host, title: str, options: dict) -> None:
    try:
        await host.show_notification(title, options)
        logger.info("Notification shown: %s", title)
    except Exception as exc:
        logger.error("Error showing notification: %s", exc)


def handle_push(event: PushEvent, host) -> Awaitable[None]:
    data = parse_push_payload(event.data)
    pending = _display(host, data["title"], build_notification_options(data))
    event.wait_until(pending)
    return pending


async def _focus_or_open(host, url: str):
    window_clients = await host.match_all(type="window", include_uncontrolled=True)
    for client in window_clients:
        focus = getattr(client, "focus", None)
        if client.url == url and focus is not None:
            return await focus()
    open_window = getattr(host, "open_window", None)
    if open_window is not None:
        return await open_window(url)
    return None


def handle_notification_click(event: NotificationClickEvent, host) -> Awaitable:
    event.notification.close()
    url = event.notification.data.get("url") or DEFAULT_URL
    pending = _focus_or_open(host, url)
    event.wait_until(pending)
    return pending

"""Tests for the push and notification-click handlers."""

import json

import pytest

from backend.notifications.worker import (
    DEFAULT_BODY,
    DEFAULT_TITLE,
    ICON_PATH,
    Notification,
    NotificationClickEvent,
    PushEvent,
    build_notification_options,
    handle_notification_click,
    handle_push,
    parse_push_payload,
)


class FakeWindow:
    def __init__(self, url, focusable=True):
        self.url = url
        self.focused = False
        if focusable:
            self.focus = self._focus

    async def _focus(self):
        self.focused = True
        return self


class FakeHost:
    def __init__(self, windows=None, can_open=True, fail_show=False):
        self.windows = windows or []
        self.shown = []
        self.opened = []
        self.fail_show = fail_show
        if can_open:
            self.open_window = self._open_window

    async def show_notification(self, title, options):
        if self.fail_show:
            raise RuntimeError("permission denied")
        self.shown.append((title, options))

    async def match_all(self, type="window", include_uncontrolled=False):
        assert type == "window"
        assert include_uncontrolled is True
        return list(self.windows)

    async def _open_window(self, url):
        self.opened.append(url)
        return url


class TestParsePushPayload:
    def test_empty_payload_keeps_defaults(self):
        data = parse_push_payload(None)
        assert data == {"title": DEFAULT_TITLE, "body": DEFAULT_BODY, "url": "/", "image": None}
        assert parse_push_payload(b"") == data

    def test_json_fields_override_defaults(self):
        raw = json.dumps({"title": "Ciao", "body": "Allenamento", "url": "/habits", "image": "https://x/i.png"})
        assert parse_push_payload(raw.encode()) == {
            "title": "Ciao",
            "body": "Allenamento",
            "url": "/habits",
            "image": "https://x/i.png",
        }

    def test_partial_json_and_nulls(self):
        data = parse_push_payload(json.dumps({"body": "Solo testo", "title": None, "extra": 1}))
        assert data["title"] == DEFAULT_TITLE
        assert data["body"] == "Solo testo"
        assert "extra" not in data

    def test_plain_text_becomes_body(self):
        data = parse_push_payload("Ricordati di bere acqua")
        assert data["body"] == "Ricordati di bere acqua"
        assert data["title"] == DEFAULT_TITLE

    def test_non_object_json_keeps_defaults(self):
        assert parse_push_payload("[1, 2]")["body"] == DEFAULT_BODY


def test_notification_options_shape():
    options = build_notification_options({"body": "b", "url": "/x", "image": None}, now_ms=1234)
    assert options == {
        "body": "b",
        "icon": ICON_PATH,
        "badge": ICON_PATH,
        "image": None,
        "vibrate": [100, 50, 100],
        "data": {"url": "/x", "date_of_arrival": 1234},
    }


@pytest.mark.asyncio
async def test_handle_push_shows_notification_and_registers_work():
    host = FakeHost()
    event = PushEvent(data=json.dumps({"title": "T", "body": "B", "url": "/videos"}))
    pending = handle_push(event, host)
    assert event.pending == [pending]
    await pending
    title, options = host.shown[0]
    assert title == "T"
    assert options["body"] == "B"
    assert options["data"]["url"] == "/videos"


@pytest.mark.asyncio
async def test_handle_push_swallows_display_errors():
    host = FakeHost(fail_show=True)
    await handle_push(PushEvent(data="hello"), host)
    assert host.shown == []


@pytest.mark.asyncio
async def test_click_focuses_matching_window():
    other = FakeWindow("/profile")
    target = FakeWindow("/habits")
    host = FakeHost(windows=[other, target])
    notification = Notification("T", {"data": {"url": "/habits"}})
    event = NotificationClickEvent(notification)

    pending = handle_notification_click(event, host)
    await pending

    assert notification.closed
    assert event.pending == [pending]
    assert target.focused and not other.focused
    assert host.opened == []


@pytest.mark.asyncio
async def test_click_opens_window_when_none_matches():
    host = FakeHost(windows=[FakeWindow("/profile"), FakeWindow("/habits", focusable=False)])
    await handle_notification_click(NotificationClickEvent(Notification("T", {"data": {"url": "/habits"}})), host)
    assert host.opened == ["/habits"]


@pytest.mark.asyncio
async def test_click_without_url_uses_root():
    host = FakeHost()
    await handle_notification_click(NotificationClickEvent(Notification("T", {})), host)
    assert host.opened == ["/"]


@pytest.mark.asyncio
async def test_click_without_open_window_support_does_nothing():
    host = FakeHost(can_open=False)
    result = await handle_notification_click(NotificationClickEvent(Notification("T", {"data": {"url": "/x"}})), host)
    assert result is None

from __future__ import annotations

import re

from backend.services.functions_client import PUSH_DISPATCHER, invoke_quietly

DEFAULT_ANNOUNCEMENT_TITLE = "Nuovo annuncio in bacheca"
DEFAULT_ANNOUNCEMENT_BODY = "Controlla le novità!"
ANNOUNCEMENT_URL = "/client/board"
PREVIEW_LENGTH = 100

_TAGS = re.compile(r"<[^>]*>?")


def strip_html(content: str) -> str:
    return _TAGS.sub("", content or "")


def announcement_body(content: str | None) -> str:
    if not content:
        return DEFAULT_ANNOUNCEMENT_BODY
    preview = strip_html(content)[:PREVIEW_LENGTH]
    # length of the stored content decides the ellipsis, markup included
    return preview + ("..." if len(content) > PREVIEW_LENGTH else "")


def announcement_request(coach_id: str, post: dict) -> dict:
    return {
        "type": "announcement",
        "coach_id": coach_id,
        "target_client_ids": post.get("target_client_ids"),
        "title": post.get("title") or DEFAULT_ANNOUNCEMENT_TITLE,
        "body": announcement_body(post.get("content")),
        "url": ANNOUNCEMENT_URL,
    }


async def notify_announcement(coach_id: str, post: dict) -> None:
    await invoke_quietly(PUSH_DISPATCHER, announcement_request(coach_id, post))

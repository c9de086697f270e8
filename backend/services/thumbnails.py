from __future__ import annotations

import logging
import re
from urllib.parse import urlparse, parse_qs

import httpx

logger = logging.getLogger(__name__)

VIMEO_OEMBED = "https://vimeo.com/api/oembed.json"
_ID_SPLIT = re.compile(r"[?#&/]")


def _segment_after(path: str, marker: str) -> str:
    if marker not in path:
        return ""
    return _ID_SPLIT.split(path.split(marker, 1)[1])[0]


def extract_youtube_id(link: str | None) -> str | None:
    if not link:
        return None
    parsed = urlparse(link.strip())
    host = (parsed.hostname or "").lower()
    if not host:
        for marker in ("v=", "youtu.be/", "/shorts/"):
            if marker in link:
                return _ID_SPLIT.split(link.split(marker, 1)[1])[0] or None
        return None
    video_id = ""
    if "youtu.be" in host:
        video_id = parsed.path.lstrip("/").split("/")[0]
    elif "/shorts/" in parsed.path:
        video_id = _segment_after(parsed.path, "/shorts/")
    elif "/live/" in parsed.path:
        video_id = _segment_after(parsed.path, "/live/")
    else:
        video_id = (parse_qs(parsed.query).get("v") or [""])[0]
    if not video_id and "/embed/" in parsed.path:
        video_id = _segment_after(parsed.path, "/embed/")
    return video_id or None


def youtube_thumbnail(link: str | None) -> str | None:
    video_id = extract_youtube_id(link)
    if not video_id:
        return None
    return f"https://img.youtube.com/vi/{video_id}/mqdefault.jpg"


def is_vimeo_link(link: str | None) -> bool:
    return bool(link) and "vimeo.com/" in link


async def vimeo_thumbnail(link: str | None) -> str | None:
    if not is_vimeo_link(link):
        return None
    video_id = link.split("vimeo.com/", 1)[1].split("?")[0]
    if not video_id:
        return None
    try:
        async with httpx.AsyncClient(timeout=10) as client:
            response = await client.get(VIMEO_OEMBED, params={"url": link, "width": 480})
        response.raise_for_status()
        return response.json().get("thumbnail_url") or None
    except (httpx.HTTPError, ValueError) as exc:
        logger.error("Error fetching Vimeo thumbnail: %s", exc)
        return None


async def resolve_thumbnail(link: str | None) -> str | None:
    if is_vimeo_link(link):
        return await vimeo_thumbnail(link)
    return youtube_thumbnail(link)

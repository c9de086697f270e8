from __future__ import annotations

import logging
import secrets
import string
import time

from backend.services import platform_client
from backend.settings import get_settings

logger = logging.getLogger(__name__)

_NAME_ALPHABET = string.ascii_lowercase + string.digits


def _unique_name(filename: str) -> str:
    ext = filename.rsplit(".", 1)[-1] if "." in filename else "bin"
    token = "".join(secrets.choice(_NAME_ALPHABET) for _ in range(13))
    return f"{token}_{int(time.time() * 1000)}.{ext.lower()}"


def _bucket(bucket: str | None) -> str:
    return bucket or get_settings().storage_bucket


async def upload_file(
    data: bytes,
    filename: str,
    bucket: str | None = None,
    folder: str = "uploads",
    content_type: str | None = None,
) -> str | None:
    """Upload bytes under a unique name and return the public URL, or None."""
    bucket = _bucket(bucket)
    name = _unique_name(filename)
    path = f"{folder}/{name}" if folder else name
    try:
        public_url = await platform_client.upload_object(bucket, path, data, content_type)
    except Exception as exc:
        logger.error("Upload to %s/%s failed: %s", bucket, path, exc)
        return None
    if not public_url:
        logger.error("No public URL returned for %s/%s", bucket, path)
        return None
    return public_url


def extract_storage_path(public_url: str | None, bucket: str | None = None) -> str | None:
    if not public_url:
        return None
    marker = f"/public/{_bucket(bucket)}/"
    index = public_url.find(marker)
    if index == -1:
        return None
    path = public_url[index + len(marker):].split("?")[0]
    return path or None


def is_storage_url(url: str | None) -> bool:
    if not url:
        return False
    return "supabase.co" in url or "/storage/v1/object/public/" in url


async def delete_file_from_url(public_url: str | None, bucket: str | None = None) -> bool:
    path = extract_storage_path(public_url, bucket)
    if not path:
        if public_url:
            logger.warning("Could not extract file path from URL: %s", public_url)
        return False
    try:
        await platform_client.remove_objects(_bucket(bucket), [path])
    except Exception as exc:
        logger.error("Storage delete failed for %s: %s", path, exc)
        return False
    return True

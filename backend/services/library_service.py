from __future__ import annotations

import logging

from backend import repositories
from backend.services import storage_service

logger = logging.getLogger(__name__)

STORAGE_FIELDS = ("link", "thumbnail_url")


class ContentInUse(ValueError):
    def __init__(self, count: int):
        super().__init__(f"Impossibile eliminare: questo contenuto è utilizzato in {count} assegnazioni.")
        self.count = count


async def _cleanup(url: str | None) -> None:
    if url and storage_service.is_storage_url(url):
        if not await storage_service.delete_file_from_url(url):
            logger.warning("Could not clean up storage file %s", url)


async def update_content(content_id: str, patch: dict) -> dict:
    """Update a library item and drop storage files its new values replace."""
    existing = await repositories.get_content(content_id)
    if not existing:
        raise LookupError("Content not found")
    updated = await repositories.update_content(content_id, patch)
    for field in STORAGE_FIELDS:
        if field in patch and existing.get(field) and patch[field] != existing[field]:
            await _cleanup(existing[field])
    return updated


async def delete_content(content_id: str) -> None:
    count = await repositories.count_assignments_for_content(content_id)
    if count > 0:
        raise ContentInUse(count)
    existing = await repositories.get_content(content_id)
    await repositories.delete_content(content_id)
    for field in STORAGE_FIELDS:
        await _cleanup((existing or {}).get(field))

"""Tests for storage URL handling and uploads."""

import re
from unittest.mock import AsyncMock, patch

import pytest

from backend.services import storage_service

PUBLIC = "https://project.supabase.co/storage/v1/object/public/media/uploads/abc_1700000000000.png"


def test_extract_storage_path():
    assert storage_service.extract_storage_path(PUBLIC, "media") == "uploads/abc_1700000000000.png"
    assert storage_service.extract_storage_path(PUBLIC + "?t=1", "media") == "uploads/abc_1700000000000.png"
    assert storage_service.extract_storage_path(PUBLIC, "other") is None
    assert storage_service.extract_storage_path(None) is None


def test_default_bucket_comes_from_settings():
    assert storage_service.extract_storage_path(PUBLIC) == "uploads/abc_1700000000000.png"


def test_is_storage_url():
    assert storage_service.is_storage_url(PUBLIC)
    assert storage_service.is_storage_url("https://cdn.example.com/storage/v1/object/public/media/x.png")
    assert not storage_service.is_storage_url("https://www.youtube.com/watch?v=abc")
    assert not storage_service.is_storage_url(None)


def test_unique_name_format():
    name = storage_service._unique_name("Photo.JPG")
    assert re.fullmatch(r"[a-z0-9]{13}_\d+\.jpg", name)
    assert storage_service._unique_name("noext").endswith(".bin")


@pytest.mark.asyncio
async def test_upload_returns_public_url():
    upload = AsyncMock(return_value=PUBLIC)
    with patch("backend.services.storage_service.platform_client.upload_object", upload):
        url = await storage_service.upload_file(b"data", "a.png", folder="avatars", content_type="image/png")
    assert url == PUBLIC
    bucket, path, data, content_type = upload.await_args.args
    assert bucket == "media"
    assert path.startswith("avatars/")
    assert content_type == "image/png"


@pytest.mark.asyncio
async def test_upload_failure_returns_none():
    with patch("backend.services.storage_service.platform_client.upload_object", AsyncMock(side_effect=RuntimeError("boom"))):
        assert await storage_service.upload_file(b"data", "a.png") is None


@pytest.mark.asyncio
async def test_delete_never_raises():
    with patch("backend.services.storage_service.platform_client.remove_objects", AsyncMock(side_effect=RuntimeError("x"))):
        assert await storage_service.delete_file_from_url(PUBLIC) is False
    assert await storage_service.delete_file_from_url("https://example.com/file.png") is False


@pytest.mark.asyncio
async def test_delete_removes_object():
    remove = AsyncMock(return_value=None)
    with patch("backend.services.storage_service.platform_client.remove_objects", remove):
        assert await storage_service.delete_file_from_url(PUBLIC) is True
    remove.assert_awaited_once_with("media", ["uploads/abc_1700000000000.png"])

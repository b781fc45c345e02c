"""
Modern Blog API — File Service Unit Tests
===========================================

What:  Tests for FileService validation (extension, size, MIME type) and storage.
Why:   Uploads are the one place client bytes reach the file system.
How:   Temporary directories for storage; python-magic tests are skipped
       when libmagic is not installed.

Test Strategy:
    ✅ Allowed extensions (.png, .jpg, .jpeg, .gif, .webp), case-insensitive
    ✅ Rejected extensions (.pdf, .exe, .svg, none)
    ✅ Size limits and empty files
    ✅ Date-organized storage with UUID file names
    ✅ save_upload builds the public URL
    ❌ MIME validation requires python-magic (skipped if unavailable)
"""

from pathlib import Path
from unittest.mock import patch

import pytest

from blog_api.config import settings
from blog_api.exceptions import ValidationError
from blog_api.services.file_service import FileService


class TestFileValidation:
    """Tests for file validation logic in FileService."""

    def setup_method(self):
        self.service = FileService()

    # ── Extension Validation ──────────────────────────────────────────────

    @pytest.mark.parametrize("filename", ["a.png", "a.jpg", "a.jpeg", "a.gif", "a.webp"])
    def test_allowed_extensions(self, filename):
        assert self.service.validate_extension(filename) == Path(filename).suffix

    def test_extension_case_insensitive(self):
        assert self.service.validate_extension("photo.JPG") == ".jpg"
        assert self.service.validate_extension("photo.Png") == ".png"

    @pytest.mark.parametrize("filename", ["document.pdf", "malware.exe", "icon.svg", "noextension"])
    def test_rejected_extensions(self, filename):
        with pytest.raises(ValidationError, match="not supported"):
            self.service.validate_extension(filename)

    # ── Size Validation ───────────────────────────────────────────────────

    def test_size_within_limit(self):
        self.service.validate_size(1000, 1000)

    def test_size_at_limit(self):
        self.service.validate_size(None, settings.max_upload_size)

    def test_size_over_limit(self):
        with pytest.raises(ValidationError, match="too large"):
            self.service.validate_size(None, settings.max_upload_size + 1)

    def test_reported_size_over_limit(self):
        """A client announcing an oversized body is rejected even if less arrived."""
        with pytest.raises(ValidationError, match="too large"):
            self.service.validate_size(settings.max_upload_size + 1, 10)

    def test_empty_file(self):
        with pytest.raises(ValidationError, match="empty") as exc_info:
            self.service.validate_size(0, 0)
        assert exc_info.value.errors == [{"field": "file", "message": "Uploaded file is empty"}]

    # ── MIME Validation ───────────────────────────────────────────────────

    def test_mime_png_accepted(self, sample_png_bytes):
        pytest.importorskip("magic")
        assert self.service.validate_mime_type(sample_png_bytes) == "image/png"

    def test_mime_text_rejected(self):
        pytest.importorskip("magic")
        with pytest.raises(ValidationError, match="not an allowed image type"):
            self.service.validate_mime_type(b"#!/bin/sh\necho pwned\n" * 10)


class TestFileStorage:

    @pytest.mark.asyncio
    async def test_store_file_creates_date_directory(self, temp_storage, sample_png_bytes):
        service = FileService(storage_root=temp_storage)

        abs_path, rel_path = await service.store_file(sample_png_bytes, ".png")

        parts = rel_path.split("/")
        assert len(parts) == 4  # YYYY/MM/DD/<uuid>.png
        assert parts[-1].endswith(".png")
        assert Path(abs_path).read_bytes() == sample_png_bytes
        assert Path(abs_path).is_relative_to(Path(temp_storage).resolve())

    @pytest.mark.asyncio
    async def test_client_filename_not_used(self, temp_storage, sample_png_bytes):
        service = FileService(storage_root=temp_storage)

        with patch.object(service, "validate_mime_type", return_value="image/png"):
            result = await service.save_upload("../../etc/passwd.png", sample_png_bytes)

        assert "passwd" not in result.url
        assert ".." not in result.url

    @pytest.mark.asyncio
    async def test_save_upload_returns_public_url(self, temp_storage, sample_png_bytes):
        service = FileService(storage_root=temp_storage)

        with patch.object(service, "validate_mime_type", return_value="image/png"):
            result = await service.save_upload(
                "cover.PNG", sample_png_bytes, content_length=len(sample_png_bytes)
            )

        assert result.url.startswith(settings.upload_url_prefix.rstrip("/") + "/")
        assert result.url.endswith(result.filename)
        assert result.size == len(sample_png_bytes)

    @pytest.mark.asyncio
    async def test_save_upload_validates_before_writing(self, temp_storage):
        service = FileService(storage_root=temp_storage)

        with pytest.raises(ValidationError):
            await service.save_upload("notes.txt", b"plain text")

        assert list(Path(temp_storage).iterdir()) == []

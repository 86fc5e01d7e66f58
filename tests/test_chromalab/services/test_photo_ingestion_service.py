"""
Tests for photo ingestion and display handle accounting.
"""

import pytest

from chromalab.core.config import IngestionConfig
from chromalab.core.exceptions import (
    EmptyInputError,
    HandleReleaseError,
    PhotoTooLargeError,
    UnreadableFileError,
    UnsupportedMediaTypeError,
)
from chromalab.services.photo_ingestion_service import (
    DisplayHandleRegistry,
    LocalPhotoFile,
    PhotoIngestor,
    read_upload_bytes,
)


class TestIngest:
    """Tests for PhotoIngestor.ingest."""

    @pytest.mark.asyncio
    async def test_ingest_success(self, ingestor, registry, make_upload, sample_image_bytes):
        """Test a valid upload becomes a Photo with an active handle."""
        photo = await ingestor.ingest(make_upload(content_type="Image/JPEG"))

        assert photo.payload == sample_image_bytes
        assert photo.content_type == "image/jpeg"
        assert photo.filename == "client.jpg"
        assert photo.display_handle.url.startswith(DisplayHandleRegistry.URL_PREFIX)
        assert registry.is_active(photo.display_handle)
        assert registry.active_count == 1

    @pytest.mark.asyncio
    async def test_async_read(self, ingestor, make_upload):
        """Test uploads whose read() is a coroutine."""
        photo = await ingestor.ingest(make_upload(is_async=True))
        assert photo.size > 0

    @pytest.mark.asyncio
    async def test_no_upload(self, ingestor):
        """Test None is an empty input."""
        with pytest.raises(EmptyInputError):
            await ingestor.ingest(None)

    @pytest.mark.asyncio
    async def test_empty_payload(self, ingestor, registry, make_upload):
        """Test zero bytes is an empty input and allocates nothing."""
        with pytest.raises(EmptyInputError):
            await ingestor.ingest(make_upload(data=b""))
        assert registry.active_count == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content_type", ["application/pdf", "text/plain", "", None])
    async def test_unsupported_type(self, ingestor, make_upload, content_type):
        """Test non-image declared types are rejected."""
        with pytest.raises(UnsupportedMediaTypeError):
            await ingestor.ingest(make_upload(content_type=content_type))

    @pytest.mark.asyncio
    async def test_type_checked_before_read(self, ingestor, make_upload):
        """Test the declared type is checked without reading the file."""
        upload = make_upload(content_type="application/pdf", error=OSError("boom"))

        with pytest.raises(UnsupportedMediaTypeError):
            await ingestor.ingest(upload)

    @pytest.mark.asyncio
    async def test_read_failure(self, ingestor, make_upload):
        """Test OS errors during read are unreadable files."""
        with pytest.raises(UnreadableFileError):
            await ingestor.ingest(make_upload(error=OSError("disk gone")))

    @pytest.mark.asyncio
    async def test_read_returns_non_bytes(self, ingestor, make_upload):
        """Test read() returning something other than bytes."""
        with pytest.raises(UnreadableFileError):
            await ingestor.ingest(make_upload(data=None))

    @pytest.mark.asyncio
    async def test_too_large(self, registry, make_upload):
        """Test payloads over the limit are rejected."""
        ingestor = PhotoIngestor(registry, IngestionConfig(max_photo_bytes=8))

        with pytest.raises(PhotoTooLargeError) as exc_info:
            await ingestor.ingest(make_upload(data=b"123456789"))
        assert exc_info.value.size == 9
        assert exc_info.value.limit == 8
        assert registry.active_count == 0

    @pytest.mark.asyncio
    async def test_local_file(self, ingestor, tmp_path):
        """Test LocalPhotoFile takes its type from the extension."""
        path = tmp_path / "client.png"
        path.write_bytes(b"\x89PNG data")

        photo = await ingestor.ingest(LocalPhotoFile(path))

        assert photo.content_type == "image/png"
        assert photo.filename == "client.png"

    @pytest.mark.asyncio
    async def test_local_file_unknown_extension(self, ingestor, tmp_path):
        """Test an unknown extension is not treated as an image."""
        path = tmp_path / "client.bin"
        path.write_bytes(b"data")

        with pytest.raises(UnsupportedMediaTypeError):
            await ingestor.ingest(LocalPhotoFile(path))


class TestHandles:
    """Tests for display handle release."""

    @pytest.mark.asyncio
    async def test_release_once(self, ingestor, registry, make_upload):
        """Test each handle is released exactly once."""
        photo = await ingestor.ingest(make_upload())

        ingestor.release(photo)

        assert registry.active_count == 0
        assert registry.released_total == 1
        with pytest.raises(HandleReleaseError):
            ingestor.release(photo)

    def test_release_all(self, registry):
        """Test release_all clears every handle."""
        registry.allocate()
        registry.allocate()

        assert registry.release_all() == 2
        assert registry.active_count == 0
        assert registry.released_total == 2

    def test_handles_are_unique(self, registry):
        """Test allocations never collide."""
        handles = {registry.allocate().handle_id for _ in range(50)}
        assert len(handles) == 50


class TestReadUploadBytes:
    """Tests for read_upload_bytes."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("data", [b"abc", bytearray(b"abc"), memoryview(b"abc")])
    async def test_buffers_become_bytes(self, make_upload, data):
        """Test bytes-like payloads are returned as bytes."""
        result = await read_upload_bytes(make_upload(data=data))
        assert result == b"abc"
        assert type(result) is bytes

    @pytest.mark.asyncio
    async def test_async_reader(self, make_upload):
        """Test coroutine readers are awaited."""
        assert await read_upload_bytes(make_upload(data=b"abc", is_async=True)) == b"abc"

    @pytest.mark.asyncio
    async def test_non_bytes(self, make_upload):
        """Test a non-bytes payload raises TypeError."""
        with pytest.raises(TypeError):
            await read_upload_bytes(make_upload(data="abc"))

    @pytest.mark.asyncio
    async def test_os_error_propagates(self, make_upload):
        """Test read failures are left to the caller."""
        with pytest.raises(OSError):
            await read_upload_bytes(make_upload(error=OSError("gone")))

"""
Photo Ingestion Service.

Reads a user-supplied upload into an in-memory Photo, checks the declared
content type and size, and allocates the display handle a presentation
layer uses to show the photo.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Union
import inspect
import mimetypes
import uuid

from chromalab.core.config import IngestionConfig, get_config
from chromalab.core.exceptions import (
    EmptyInputError,
    HandleReleaseError,
    PhotoTooLargeError,
    UnreadableFileError,
    UnsupportedMediaTypeError,
)
from chromalab.models.photo import DisplayHandle, Photo
from chromalab.utils.logger import get_logger

logger = get_logger(__name__)


class PhotoUpload(Protocol):
    """Anything with a declared type, a name and a read() method."""

    content_type: Optional[str]
    filename: Optional[str]

    def read(self) -> Any:
        """Return bytes, or an awaitable of bytes."""


@dataclass
class LocalPhotoFile:
    """
    Upload backed by a file on disk.

    The content type is the declared one, or the one implied by the file
    extension. File contents are never inspected to guess it.
    """
    path: Union[str, Path]
    content_type: Optional[str] = None

    def __post_init__(self) -> None:
        self.path = Path(self.path)
        if self.content_type is None:
            self.content_type = mimetypes.guess_type(self.path.name)[0]

    @property
    def filename(self) -> str:
        return self.path.name

    def read(self) -> bytes:
        return self.path.read_bytes()


# =============================================================================
# DISPLAY HANDLES
# =============================================================================


class DisplayHandleRegistry:
    """
    Tracks display handles for photos held in memory.

    Every allocated handle must be released exactly once. active_count
    exposes leaks.
    """

    URL_PREFIX = "chromalab://photo/"

    def __init__(self):
        self._active: Dict[str, DisplayHandle] = {}
        self._released_total = 0

    @property
    def active_count(self) -> int:
        """Number of handles allocated and not yet released."""
        return len(self._active)

    @property
    def released_total(self) -> int:
        """Number of handles released since creation."""
        return self._released_total

    def allocate(self) -> DisplayHandle:
        """Allocate a new handle."""
        handle_id = uuid.uuid4().hex
        handle = DisplayHandle(handle_id=handle_id, url=f"{self.URL_PREFIX}{handle_id}")
        self._active[handle_id] = handle
        return handle

    def is_active(self, handle: DisplayHandle) -> bool:
        """Check if a handle is still allocated."""
        return handle.handle_id in self._active

    def release(self, handle: DisplayHandle) -> None:
        """
        Release a handle.

        Raises:
            HandleReleaseError: If the handle was already released or is unknown
        """
        if self._active.pop(handle.handle_id, None) is None:
            raise HandleReleaseError(
                f"Display handle {handle.handle_id} is not active",
                details={"handle_id": handle.handle_id},
            )
        self._released_total += 1

    def release_all(self) -> int:
        """Release every active handle. Returns how many were released."""
        count = len(self._active)
        self._active.clear()
        self._released_total += count
        return count


# =============================================================================
# SERVICE
# =============================================================================


class PhotoIngestor:
    """
    Service that turns uploads into Photo records.

    Usage:
        ingestor = PhotoIngestor()
        photo = await ingestor.ingest(LocalPhotoFile("client.jpg"))
        ...
        ingestor.release(photo)
    """

    def __init__(
        self,
        registry: Optional[DisplayHandleRegistry] = None,
        config: Optional[IngestionConfig] = None,
    ):
        """
        Initialize PhotoIngestor.

        Args:
            registry: Display handle registry (a private one if None)
            config: Ingestion limits (from get_config() if None)
        """
        self.registry = registry or DisplayHandleRegistry()
        self.config = config or get_config().ingestion

    async def ingest(self, upload: Optional[PhotoUpload]) -> Photo:
        """
        Read an upload into a Photo.

        Args:
            upload: The user's upload (None when nothing was chosen)

        Returns:
            Photo with a freshly allocated display handle

        Raises:
            EmptyInputError: No upload, or zero bytes read
            UnreadableFileError: The read failed
            UnsupportedMediaTypeError: Declared type is not an image type
            PhotoTooLargeError: Payload exceeds max_photo_bytes
        """
        if upload is None:
            raise EmptyInputError("No photo provided")

        content_type = (getattr(upload, "content_type", None) or "").strip().lower()
        filename = getattr(upload, "filename", None)

        if not content_type.startswith(self.config.allowed_type_prefix):
            raise UnsupportedMediaTypeError(
                f"Unsupported content type: {content_type or 'unknown'}",
                content_type=content_type or None,
            )

        payload = await self._read(upload, filename)

        if not payload:
            raise EmptyInputError(
                "Photo is empty",
                details={"filename": filename},
            )

        if len(payload) > self.config.max_photo_bytes:
            raise PhotoTooLargeError(
                f"Photo is {len(payload)} bytes, limit is {self.config.max_photo_bytes}",
                size=len(payload),
                limit=self.config.max_photo_bytes,
            )

        photo = Photo(
            payload=payload,
            content_type=content_type,
            display_handle=self.registry.allocate(),
            filename=filename,
        )
        logger.info(
            "Photo ingested",
            filename=filename,
            content_type=content_type,
            size=photo.size,
        )
        return photo

    def release(self, photo: Photo) -> None:
        """
        Release a photo's display handle.

        Raises:
            HandleReleaseError: If it was already released
        """
        self.registry.release(photo.display_handle)

    @staticmethod
    async def _read(upload: PhotoUpload, filename: Optional[str]) -> bytes:
        try:
            return await read_upload_bytes(upload)
        except OSError as e:
            raise UnreadableFileError(
                f"Could not read photo: {e}",
                details={"filename": filename},
            ) from e
        except TypeError as e:
            raise UnreadableFileError(str(e), details={"filename": filename}) from e


async def read_upload_bytes(upload: PhotoUpload) -> bytes:
    """
    Read an upload's payload, awaiting read() when it is async.

    Raises:
        OSError: The read failed
        TypeError: read() returned something other than bytes
    """
    result = upload.read()
    if inspect.isawaitable(result):
        result = await result

    if isinstance(result, (bytearray, memoryview)):
        result = bytes(result)
    if not isinstance(result, bytes):
        raise TypeError(f"Upload read returned {type(result).__name__}, expected bytes")
    return result

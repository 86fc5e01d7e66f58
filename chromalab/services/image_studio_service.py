"""
Image Studio Service.

Inspiration image generation and client photo editing.
"""

from typing import Optional, Union

from chromalab.core.backend import GeneratedImage, GenerativeBackend
from chromalab.core.exceptions import (
    ImageEditError,
    ImageGenerationError,
    InvalidRequestError,
)
from chromalab.models.enums import AspectRatio
from chromalab.models.photo import Photo
from chromalab.utils.logger import get_logger

logger = get_logger(__name__)


class ImageStudioService:
    """
    Service for the image studio tools.

    Usage:
        studio = ImageStudioService(backend)
        image = await studio.generate_inspiration("copper balayage", "3:4")
        edited = await studio.edit_photo(photo, "make the ends pastel pink")
    """

    def __init__(self, backend: GenerativeBackend):
        self.backend = backend

    async def generate_inspiration(
        self,
        prompt: str,
        aspect_ratio: Union[AspectRatio, str] = AspectRatio.SQUARE,
    ) -> GeneratedImage:
        """
        Generate an inspiration image.

        Args:
            prompt: Description of the look
            aspect_ratio: AspectRatio or its value ("1:1", "3:4", ...)

        Raises:
            InvalidRequestError: Empty prompt or unsupported aspect ratio
            ImageGenerationError: Generation failed
        """
        prompt = (prompt or "").strip()
        if not prompt:
            raise InvalidRequestError("Please enter a prompt.")
        ratio = self._aspect_ratio(aspect_ratio)

        try:
            image = await self.backend.generate_image(prompt, ratio)
        except Exception as e:
            logger.error(
                "Inspiration image generation failed",
                error=str(e),
                error_type=type(e).__name__,
                aspect_ratio=ratio.value,
            )
            raise ImageGenerationError(f"Image generation failed: {e}") from e

        logger.info("Inspiration image generated", aspect_ratio=ratio.value, size=image.size)
        return image

    async def edit_photo(self, photo: Optional[Photo], prompt: str) -> GeneratedImage:
        """
        Edit the client photo with a text instruction.

        Raises:
            InvalidRequestError: No photo or empty prompt
            ImageEditError: Editing failed
        """
        if photo is None:
            raise InvalidRequestError("Please upload a client photo first.")
        prompt = (prompt or "").strip()
        if not prompt:
            raise InvalidRequestError("Please enter an edit prompt.")

        try:
            image = await self.backend.edit_image(photo.payload, photo.content_type, prompt)
        except Exception as e:
            logger.error(
                "Photo edit failed",
                error=str(e),
                error_type=type(e).__name__,
                filename=photo.filename,
            )
            raise ImageEditError(f"Image edit failed: {e}") from e

        logger.info("Client photo edited", filename=photo.filename, size=image.size)
        return image

    @staticmethod
    def _aspect_ratio(value: Union[AspectRatio, str]) -> AspectRatio:
        if isinstance(value, AspectRatio):
            return value
        try:
            return AspectRatio(value)
        except ValueError:
            supported = ", ".join(r.value for r in AspectRatio)
            raise InvalidRequestError(
                f"Unsupported aspect ratio {value!r}. Choose one of {supported}."
            ) from None

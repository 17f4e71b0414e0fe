"""
Photo Service

Resizes uploaded store photos and writes them to storage.
"""

import asyncio
import io
import logging
from typing import Optional

from PIL import Image, UnidentifiedImageError

from storefinder.core.config import settings
from storefinder.storage import get_storage, StorageBackend
from storefinder.utils.file_utils import (
    generate_photo_filename,
    PHOTO_DIMENSIONS_ERROR,
    PHOTO_TYPE_ERROR,
)

logger = logging.getLogger(__name__)


class PhotoValidationError(Exception):
    """Raised when uploaded bytes cannot be decoded as an image."""
    pass


def resize_image(content: bytes, width: int) -> bytes:
    """
    Resize an encoded image to `width` pixels, height kept proportional.

    The image is re-encoded in its original format. Smaller images are
    scaled up to the same width.

    Raises:
        PhotoValidationError: If the bytes are not a decodable image or
            decode to more pixels than Pillow allows
    """
    try:
        with Image.open(io.BytesIO(content)) as image:
            image_format = image.format
            height = max(1, round(image.height * width / image.width))
            resized = image.resize((width, height))
    except Image.DecompressionBombError as e:
        raise PhotoValidationError(PHOTO_DIMENSIONS_ERROR) from e
    except (UnidentifiedImageError, OSError) as e:
        raise PhotoValidationError(PHOTO_TYPE_ERROR) from e

    buffer = io.BytesIO()
    resized.save(buffer, format=image_format)
    return buffer.getvalue()


class PhotoService:
    """Service class for store photos."""

    def __init__(
        self,
        storage: Optional[StorageBackend] = None,
        width: Optional[int] = None
    ):
        self.storage = storage or get_storage()
        self.width = width or settings.PHOTO_WIDTH

    async def resize_and_store(self, content: bytes, content_type: str) -> str:
        """
        Resize the photo in memory and write it to storage.

        Args:
            content: Uploaded file bytes
            content_type: Declared MIME type, e.g. "image/png"

        Returns:
            The generated filename (no directory part)
        """
        filename = generate_photo_filename(content_type)

        # Pillow work is CPU-bound; keep it off the event loop
        resized = await asyncio.to_thread(resize_image, content, self.width)

        stored = await self.storage.save(resized, filename, content_type)
        logger.info(f"Stored photo {stored.path} ({len(content)} -> {stored.size} bytes)")

        return stored.path

"""
Photos on the local disk.

The upload directory is mounted at /uploads, so a photo saved as
"{uuid}.png" is served at /uploads/{uuid}.png. Only generated names are
ever written; a name that resolves outside the directory is refused.
"""

import logging
import aiofiles
from pathlib import Path
from datetime import datetime, timezone
from typing import Optional

from storefinder.storage.base import (
    StorageBackend,
    StoredFile,
    StorageError,
)

logger = logging.getLogger(__name__)


class LocalStorage(StorageBackend):
    """Upload directory backend with async writes."""

    def __init__(self, base_path: str):
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)

        logger.info(f"Photos stored in {self.base_path.absolute()}")

    def _get_full_path(self, relative_path: str) -> Path:
        """
        Absolute path for a photo name.

        Raises:
            StorageError: If the name escapes the upload directory
        """
        resolved = (self.base_path / relative_path).resolve()

        if not resolved.is_relative_to(self.base_path.resolve()):
            logger.warning(f"Refused photo path outside uploads: {relative_path}")
            raise StorageError(f"Invalid path: {relative_path}")

        return resolved

    async def save(
        self,
        file_content: bytes,
        destination_path: str,
        content_type: Optional[str] = None
    ) -> StoredFile:
        full_path = self._get_full_path(destination_path)

        try:
            async with aiofiles.open(full_path, 'wb') as f:
                await f.write(file_content)
        except OSError as e:
            logger.error(f"Failed to write photo {destination_path}: {e}")
            raise StorageError(f"Failed to save file: {e}") from e

        return StoredFile(
            path=destination_path,
            size=len(file_content),
            content_type=content_type or "application/octet-stream",
            stored_at=datetime.now(timezone.utc),
        )

"""
Photo storage interface.

Services only see StorageBackend; LocalStorage is the one implementation.
"""
from abc import ABC, abstractmethod
from typing import Optional
from dataclasses import dataclass
from datetime import datetime


@dataclass
class StoredFile:
    """What a backend reports after writing a photo."""
    path: str
    size: int
    content_type: str
    stored_at: datetime


class StorageError(Exception):
    """A photo could not be written or the name was unsafe."""
    pass


class StorageBackend(ABC):
    """Writes photos under generated filenames."""

    @abstractmethod
    async def save(
        self,
        file_content: bytes,
        destination_path: str,
        content_type: Optional[str] = None
    ) -> StoredFile:
        """
        Write `file_content` under `destination_path`.

        Raises:
            StorageError: If the file cannot be saved
        """

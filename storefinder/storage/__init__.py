"""
Photo storage.

`get_storage()` returns the upload directory backend, created once per
process.
"""

from storefinder.storage.base import (
    StorageBackend,
    StoredFile,
    StorageError,
)
from storefinder.storage.local import LocalStorage
from storefinder.core.config import settings

_storage_instance: StorageBackend | None = None


def get_storage() -> StorageBackend:
    """The storage backend for UPLOAD_DIR."""
    global _storage_instance

    if _storage_instance is None:
        _storage_instance = LocalStorage(base_path=settings.UPLOAD_DIR)

    return _storage_instance


__all__ = [
    "get_storage",
    "StorageBackend",
    "StoredFile",
    "StorageError",
    "LocalStorage",
]

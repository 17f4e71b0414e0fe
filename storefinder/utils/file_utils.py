"""
File Utilities

Helper functions for photo upload validation and naming.
Always assume user input is malicious!
"""

import uuid
import logging
from typing import Optional, Tuple

from storefinder.core.config import settings

logger = logging.getLogger(__name__)

PHOTO_TYPE_ERROR = "That filetype isn't allowed!"
PHOTO_DIMENSIONS_ERROR = "That photo is too big to process!"


# ============================================================
# PHOTO VALIDATION
# ============================================================

def check_photo_type(content_type: Optional[str]) -> Tuple[bool, Optional[str]]:
    """
    Accept only files whose declared MIME type is an image.

    Returns:
        Tuple of (is_valid, error_message)

    Example:
        check_photo_type("image/png")   # (True, None)
        check_photo_type("text/plain")  # (False, "That filetype isn't allowed!")
    """
    if content_type and content_type.lower().startswith("image/"):
        return True, None

    logger.info(f"Rejected upload with content type {content_type!r}")
    return False, PHOTO_TYPE_ERROR


def check_photo_size(file_size: int) -> Tuple[bool, Optional[str]]:
    """
    Validate photo size against configured maximum.

    Args:
        file_size: Size in bytes

    Returns:
        Tuple of (is_valid, error_message)
    """
    max_size = settings.MAX_FILE_SIZE_BYTES

    if file_size <= 0:
        return False, "File is empty"

    if file_size > max_size:
        size_mb = file_size / (1024 * 1024)
        max_mb = settings.MAX_FILE_SIZE_MB
        return False, f"File size ({size_mb:.1f} MB) exceeds maximum ({max_mb} MB)"

    return True, None


# ============================================================
# FILENAME HANDLING
# ============================================================

def get_extension_from_mime(content_type: str) -> str:
    """
    Extension taken from the MIME subtype.

    Example:
        get_extension_from_mime("image/png")   # "png"
        get_extension_from_mime("image/jpeg")  # "jpeg"
    """
    return content_type.split("/")[1].lower()


def generate_photo_filename(content_type: str) -> str:
    """
    Generate a globally unique photo filename: random UUID + extension.

    Only this name (never a path) is stored on the store record.
    """
    return f"{uuid.uuid4()}.{get_extension_from_mime(content_type)}"

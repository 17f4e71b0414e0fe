import io
from pathlib import Path

import pytest
from PIL import Image

from storefinder.core.config import settings
from storefinder.storage import get_storage
from storefinder.storage.base import StorageError
from storefinder.storage.local import LocalStorage
from storefinder.services.photo_service import PhotoService, PhotoValidationError, resize_image
from storefinder.utils.file_utils import (
    PHOTO_DIMENSIONS_ERROR,
    PHOTO_TYPE_ERROR,
    check_photo_type,
    check_photo_size,
    generate_photo_filename,
)


class TestPhotoType:

    def test_text_rejected(self):
        assert check_photo_type("text/plain") == (False, PHOTO_TYPE_ERROR)

    def test_missing_type_rejected(self):
        assert check_photo_type(None) == (False, PHOTO_TYPE_ERROR)

    def test_png_accepted(self):
        assert check_photo_type("image/png") == (True, None)

    def test_empty_file_rejected(self):
        ok, error = check_photo_size(0)
        assert not ok
        assert error == "File is empty"


class TestPhotoFilename:

    def test_extension_from_subtype(self):
        assert generate_photo_filename("image/png").endswith(".png")
        assert generate_photo_filename("image/jpeg").endswith(".jpeg")

    def test_unique(self):
        assert generate_photo_filename("image/png") != generate_photo_filename("image/png")


class TestResize:

    def test_width_800_height_proportional(self, png_bytes):
        resized = resize_image(png_bytes(1600, 400), 800)

        with Image.open(io.BytesIO(resized)) as image:
            assert image.size == (800, 200)
            assert image.format == "PNG"

    def test_small_images_scaled_up(self, png_bytes):
        resized = resize_image(png_bytes(400, 300), 800)

        with Image.open(io.BytesIO(resized)) as image:
            assert image.size == (800, 600)

    def test_garbage_rejected(self):
        with pytest.raises(PhotoValidationError):
            resize_image(b"definitely not an image", 800)

    def test_decompression_bomb_rejected(self, png_bytes, monkeypatch):
        # Pillow refuses images over twice this many pixels
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)

        with pytest.raises(PhotoValidationError) as exc_info:
            resize_image(png_bytes(1600, 400), 800)

        assert str(exc_info.value) == PHOTO_DIMENSIONS_ERROR


@pytest.mark.asyncio
class TestPhotoService:

    async def test_resize_and_store(self, tmp_path, png_bytes):
        storage = LocalStorage(base_path=str(tmp_path))
        service = PhotoService(storage=storage, width=800)

        filename = await service.resize_and_store(png_bytes(), "image/png")

        assert filename.endswith(".png")
        assert "/" not in filename
        assert (tmp_path / filename).is_file()
        with Image.open(tmp_path / filename) as image:
            assert image.width == 800


@pytest.mark.asyncio
class TestLocalStorage:

    async def test_save_reports_stored_file(self, tmp_path):
        storage = LocalStorage(base_path=str(tmp_path))

        stored = await storage.save(b"abc", "photo.png", "image/png")

        assert stored.path == "photo.png"
        assert stored.size == 3
        assert stored.content_type == "image/png"
        assert (tmp_path / "photo.png").read_bytes() == b"abc"

    async def test_path_outside_uploads_refused(self, tmp_path):
        storage = LocalStorage(base_path=str(tmp_path / "uploads"))

        with pytest.raises(StorageError):
            await storage.save(b"abc", "../escape.png")

        assert not (tmp_path / "escape.png").exists()

    async def test_get_storage_uses_upload_dir(self):
        storage = get_storage()

        assert isinstance(storage, LocalStorage)
        assert storage.base_path == Path(settings.UPLOAD_DIR)
        assert get_storage() is storage

import io
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.responses import RedirectResponse
from starlette.datastructures import FormData, Headers, UploadFile

from storefinder.utils.file_utils import PHOTO_TYPE_ERROR
from storefinder.web.pipeline import PipelineError, Respond, run_steps
from storefinder.web.context import FormValidationError
from storefinder.web.stores import (
    CREATE_STORE_STEPS,
    StoreSubmission,
    accept_upload,
    resize_upload,
)


def make_upload(content: bytes, filename: str, content_type: str) -> UploadFile:
    return UploadFile(
        file=io.BytesIO(content),
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )


def make_submission(form: FormData, photo_service=None) -> StoreSubmission:
    ctx = MagicMock()
    ctx.back.return_value = RedirectResponse("/add", status_code=303)
    return StoreSubmission(
        ctx=ctx,
        form=form,
        store_service=AsyncMock(),
        photo_service=photo_service or AsyncMock(),
    )


async def finish(sub):
    return Respond(RedirectResponse("/done", status_code=303))


@pytest.mark.asyncio
class TestRunSteps:

    async def test_first_response_wins(self):
        calls = []

        async def first(state):
            calls.append("first")
            return None

        async def second(state):
            calls.append("second")
            return Respond(RedirectResponse("/second", status_code=303))

        async def third(state):
            calls.append("third")
            return Respond(RedirectResponse("/third", status_code=303))

        response = await run_steps(object(), [first, second, third])

        assert calls == ["first", "second"]
        assert response.headers["location"] == "/second"

    async def test_no_response_is_an_error(self):
        async def passthrough(state):
            return None

        with pytest.raises(PipelineError):
            await run_steps(object(), [passthrough])


@pytest.mark.asyncio
class TestUploadSteps:

    async def test_text_file_rejected_before_resize(self):
        upload = make_upload(b"hello", "notes.txt", "text/plain")
        sub = make_submission(FormData([("name", "Shop"), ("photo", upload)]))

        response = await run_steps(sub, [accept_upload, resize_upload, finish])

        assert response.headers["location"] == "/add"
        sub.ctx.flash.assert_called_once_with("error", PHOTO_TYPE_ERROR)
        sub.photo_service.resize_and_store.assert_not_awaited()

    async def test_png_resized_and_named(self, png_bytes):
        upload = make_upload(png_bytes(), "shop.png", "image/png")
        photo_service = AsyncMock()
        photo_service.resize_and_store.return_value = "0b9c1c52-3f1e-4c43-9d2a-6f1c7d1c0f4e.png"
        sub = make_submission(FormData([("photo", upload)]), photo_service)

        response = await run_steps(sub, [accept_upload, resize_upload, finish])

        assert response.headers["location"] == "/done"
        assert sub.photo.endswith(".png")
        content, content_type = photo_service.resize_and_store.await_args.args
        assert content == png_bytes()
        assert content_type == "image/png"

    async def test_no_file_skips_both_steps(self):
        empty = make_upload(b"", "", "application/octet-stream")
        sub = make_submission(FormData([("name", "Shop"), ("photo", empty)]))

        response = await run_steps(sub, [accept_upload, resize_upload, finish])

        assert response.headers["location"] == "/done"
        assert sub.photo is None
        sub.photo_service.resize_and_store.assert_not_awaited()

    async def test_two_files_rejected(self, png_bytes):
        first = make_upload(png_bytes(), "a.png", "image/png")
        second = make_upload(png_bytes(), "b.png", "image/png")
        sub = make_submission(FormData([("photo", first), ("photo", second)]))

        response = await run_steps(sub, [accept_upload, resize_upload, finish])

        assert response.headers["location"] == "/add"
        sub.photo_service.resize_and_store.assert_not_awaited()


@pytest.mark.asyncio
class TestStoreSteps:

    async def test_invalid_fields_stop_before_photo_is_written(self, png_bytes):
        upload = make_upload(png_bytes(), "shop.png", "image/png")
        sub = make_submission(FormData([("name", ""), ("address", "1 Main St"), ("photo", upload)]))

        with pytest.raises(FormValidationError):
            await run_steps(sub, CREATE_STORE_STEPS)

        sub.photo_service.resize_and_store.assert_not_awaited()
        sub.store_service.create_store.assert_not_awaited()

    async def test_valid_fields_get_the_resized_photo(self, png_bytes):
        upload = make_upload(png_bytes(), "shop.png", "image/png")
        photo_service = AsyncMock()
        photo_service.resize_and_store.return_value = "0b9c1c52-3f1e-4c43-9d2a-6f1c7d1c0f4e.png"
        sub = make_submission(
            FormData([
                ("name", "Coffee Corner"),
                ("address", "1 Main St"),
                ("lng", "-79.8"),
                ("lat", "43.2"),
                ("photo", upload),
            ]),
            photo_service,
        )
        store = MagicMock(slug="coffee-corner")
        sub.store_service.create_store.return_value = store
        sub.ctx.redirect.return_value = RedirectResponse("/store/coffee-corner", status_code=303)

        response = await run_steps(sub, CREATE_STORE_STEPS)

        assert response.headers["location"] == "/store/coffee-corner"
        form, _ = sub.store_service.create_store.await_args.args
        assert form.photo == "0b9c1c52-3f1e-4c43-9d2a-6f1c7d1c0f4e.png"

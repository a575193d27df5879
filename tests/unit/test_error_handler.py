import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from app.services.async_error_handler import (
    AsyncErrorHandler,
    FormValidationError,
    PostNotFoundError,
    PostPermissionError,
    StoreError,
    StoreUnavailableError,
    translate_store_errors,
)


@pytest.mark.parametrize(
    "error, status_code, code",
    [
        (FormValidationError("Title is required", field="title"), 422, "validation_error"),
        (PostNotFoundError("missing"), 404, "post_not_found"),
        (PostPermissionError("nope"), 403, "permission_denied"),
        (StoreUnavailableError("down"), 503, "store_unavailable"),
        (StoreError("odd"), 500, "store_error"),
        (RuntimeError("boom"), 500, "internal_error"),
    ],
)
def test_classify_error(error, status_code, code):
    info = AsyncErrorHandler.classify_error(error)
    assert info["status_code"] == status_code
    assert info["code"] == code


def test_sqlalchemy_errors_translate():
    operational = OperationalError("SELECT 1", {}, Exception("connection reset"))
    integrity = IntegrityError("INSERT", {}, Exception("duplicate key"))

    assert isinstance(AsyncErrorHandler.translate(operational), StoreUnavailableError)
    translated = AsyncErrorHandler.translate(integrity)
    assert type(translated) is StoreError
    assert translated.original_error is integrity


def test_store_errors_pass_through_translate():
    error = PostNotFoundError("gone")
    assert AsyncErrorHandler.translate(error) is error


@pytest.mark.asyncio
async def test_decorator_translates_and_passes_store_errors():
    @translate_store_errors("failing read")
    async def failing_read():
        raise OperationalError("SELECT", {}, Exception("timeout"))

    @translate_store_errors("denied write")
    async def denied_write():
        raise PostPermissionError("No post was updated")

    with pytest.raises(StoreUnavailableError) as exc_info:
        await failing_read()
    assert isinstance(exc_info.value.__cause__, OperationalError)

    with pytest.raises(PostPermissionError):
        await denied_write()

"""FastAPI dependencies wiring the upload pipeline into endpoints.

Each factory returns a dependency that accepts, validates and yields the
upload context to the endpoint, and removes the staged files once the
endpoint is done:

    @router.post("/search")
    async def search(uploads: UploadContext = Depends(upload_single_file("photo"))):
        ...
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Mapping, Optional

from fastapi import Depends, Request

from ..config import UploadSettings
from .acceptor import UploadAcceptor
from .cleanup import cleanup_uploaded_files
from .schemas import UploadContext
from .translator import translate_upload_error
from .validator import validate_file_groups, validate_multiple_files, validate_single_file

logger = logging.getLogger(__name__)


def get_upload_settings(request: Request) -> UploadSettings:
    """Upload settings injected into the app by ``create_app``."""
    return request.app.state.settings.upload


@asynccontextmanager
async def staged_upload(request: Request, acceptor: UploadAcceptor) -> AsyncIterator[UploadContext]:
    """Stage the request's files for the duration of the block.

    Staged files are removed exactly once on every exit path: by the error
    translator when anything raises, in ``finally`` otherwise.
    """
    cleaned = False
    try:
        context = await acceptor.accept(request)
        request.state.uploads = context
        request.state.form = acceptor.form
        yield context
    except Exception as exc:
        cleaned = True
        translated = await translate_upload_error(exc, acceptor.context())
        if translated is exc:
            raise
        raise translated from exc
    finally:
        if not cleaned:
            await cleanup_uploaded_files(acceptor.context())


def upload_single_file(field: str):
    """Dependency accepting exactly one image in *field*."""

    async def dependency(
        request: Request,
        settings: UploadSettings = Depends(get_upload_settings),
    ) -> AsyncIterator[UploadContext]:
        async with staged_upload(request, UploadAcceptor.single(settings, field)) as context:
            validate_single_file(context)
            yield context

    return dependency


def upload_multiple_files(field: str, min_files: int, max_files: Optional[int] = None):
    """Dependency accepting ``min_files``..``max_files`` images in *field*.

    ``max_files`` defaults to the configured ``max_file_count``.
    """

    async def dependency(
        request: Request,
        settings: UploadSettings = Depends(get_upload_settings),
    ) -> AsyncIterator[UploadContext]:
        acceptor = UploadAcceptor.array(settings, field, max_files)
        async with staged_upload(request, acceptor) as context:
            validate_multiple_files(context, min_files)
            yield context

    return dependency


def upload_file_fields(max_files: Mapping[str, int], min_files: Optional[Mapping[str, int]] = None):
    """Dependency accepting images grouped by several fields.

    Args:
        max_files: Accepted fields and the maximum file count of each.
        min_files: Optional minimum file count per field.
    """

    async def dependency(
        request: Request,
        settings: UploadSettings = Depends(get_upload_settings),
    ) -> AsyncIterator[UploadContext]:
        acceptor = UploadAcceptor.fields(settings, max_files)
        async with staged_upload(request, acceptor) as context:
            validate_file_groups(context, min_files or {})
            yield context

    return dependency

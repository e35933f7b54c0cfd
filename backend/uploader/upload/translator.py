"""Error translation for the upload pipeline.

Every error raised while a request holds staged files goes through
``translate_upload_error``: staged files are removed first, then multipart
transport errors become 400 ErrorResponses. Other errors are handed back
unchanged for the caller to re-raise.
"""
import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from .cleanup import cleanup_uploaded_files
from .errors import MultipartUploadError, UploadError
from .schemas import ErrorResponse, UploadContext

logger = logging.getLogger(__name__)

# Multipart codes that keep their identity in the public error code
LIMIT_CODES = frozenset({
    "LIMIT_PART_COUNT",
    "LIMIT_FILE_SIZE",
    "LIMIT_FILE_COUNT",
    "LIMIT_FIELD_KEY",
    "LIMIT_FIELD_VALUE",
    "LIMIT_FIELD_COUNT",
    "LIMIT_UNEXPECTED_FILE",
})


def to_error_response(error: MultipartUploadError) -> ErrorResponse:
    """Map a multipart error to the public ErrorResponse."""
    code = f"UPLOAD_{error.code}" if error.code in LIMIT_CODES else "BAD_REQUEST"
    return ErrorResponse(status=400, code=code, message=error.message)


async def translate_upload_error(exc: BaseException, context: UploadContext) -> BaseException:
    """Clean up *context*, then translate *exc*.

    Returns:
        An UploadError for multipart errors, otherwise *exc* itself.
    """
    await cleanup_uploaded_files(context)

    if isinstance(exc, MultipartUploadError):
        response = to_error_response(exc)
        logger.info(f"Upload rejected: {response.code} ({exc.message}) field={exc.field!r}")
        return UploadError(response)
    return exc


async def upload_error_handler(request: Request, exc: UploadError) -> JSONResponse:
    """FastAPI exception handler rendering an UploadError."""
    return JSONResponse(status_code=exc.status, content=exc.response.model_dump())

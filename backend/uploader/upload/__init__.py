"""Upload staging module for the identigraf uploader.

This module accepts multipart image uploads, validates them, stages them in a
temporary folder and removes them once the request is done.

Pipeline per request:
- acceptor: streams declared file fields to disk under transport limits
- validator: presence, count, image MIME type, non-empty size
- translator: cleans up, then maps multipart errors to ErrorResponses
- cleanup: removes every staged file, whatever the outcome
"""

from .acceptor import UploadAcceptor
from .cleanup import cleanup_uploaded_files
from .dependencies import (
    get_upload_settings,
    staged_upload,
    upload_file_fields,
    upload_multiple_files,
    upload_single_file,
)
from .errors import MultipartUploadError, UploadError
from .schemas import (
    EmptyUpload,
    ErrorResponse,
    FieldGroupsUpload,
    SequenceUpload,
    SingleUpload,
    StagedFile,
    UploadContext,
    UploadReceipt,
    staged_files,
)
from .translator import translate_upload_error, upload_error_handler

__all__ = [
    "UploadAcceptor",
    "cleanup_uploaded_files",
    "get_upload_settings",
    "staged_upload",
    "upload_file_fields",
    "upload_multiple_files",
    "upload_single_file",
    "MultipartUploadError",
    "UploadError",
    "EmptyUpload",
    "ErrorResponse",
    "FieldGroupsUpload",
    "SequenceUpload",
    "SingleUpload",
    "StagedFile",
    "UploadContext",
    "UploadReceipt",
    "staged_files",
    "translate_upload_error",
    "upload_error_handler",
]

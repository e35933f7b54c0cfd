"""Semantic checks on a staged upload.

Runs after the acceptor has written every file part. Each check raises
UploadError with one of the fixed 400 responses; passing returns None.
Validation only reads metadata and never touches the staged files.
"""
from typing import Iterable, Mapping

from .errors import EMPTY_FILE, NO_FILES, TOO_FEW_FILES, UNSUPPORTED_FILE, UploadError
from .schemas import FieldGroupsUpload, SequenceUpload, SingleUpload, StagedFile, UploadContext


def _check_file(file: StagedFile) -> None:
    # Type is checked before size for the same file.
    if not file.mime_type.startswith("image/"):
        raise UploadError(UNSUPPORTED_FILE)
    if file.size_bytes == 0:
        raise UploadError(EMPTY_FILE)


def _check_files(files: Iterable[StagedFile]) -> None:
    for file in files:
        _check_file(file)


def validate_single_file(context: UploadContext) -> None:
    """Validate the context of a single-file endpoint.

    Raises:
        UploadError: NO_FILES, UNSUPPORTED_FILE or EMPTY_FILE.
    """
    if not isinstance(context, SingleUpload):
        raise UploadError(NO_FILES)
    _check_file(context.file)


def validate_multiple_files(context: UploadContext, min_files: int) -> None:
    """Validate the context of a multi-file endpoint.

    ``min_files`` is independent of the acceptor's maximum. Files are checked
    in the order received and the first failing file decides the error.

    Raises:
        UploadError: NO_FILES, TOO_FEW_FILES, UNSUPPORTED_FILE or EMPTY_FILE.
    """
    if not isinstance(context, SequenceUpload) or not context.files:
        raise UploadError(NO_FILES)
    if len(context.files) < min_files:
        raise UploadError(TOO_FEW_FILES)
    _check_files(context.files)


def validate_file_groups(context: UploadContext, min_files: Mapping[str, int]) -> None:
    """Validate the context of an endpoint accepting several named fields.

    Args:
        context: Context produced by ``UploadAcceptor.fields``.
        min_files: Minimum file count per field; fields not listed have no minimum.
    """
    if not isinstance(context, FieldGroupsUpload) or not any(context.groups.values()):
        raise UploadError(NO_FILES)
    for name, minimum in min_files.items():
        if len(context.groups.get(name, ())) < minimum:
            raise UploadError(TOO_FEW_FILES)
    for files in context.groups.values():
        _check_files(files)

"""Data models for upload staging.

This module defines the request-scoped upload data:
- StagedFile: one uploaded file part written to the temporary folder
- EmptyUpload / SingleUpload / SequenceUpload / FieldGroupsUpload: the
  upload context variants produced by the acceptor
- ErrorResponse: the JSON body returned for every upload failure
- UploadReceipt: response of the endpoints that accept uploads

Staged files use random hex filenames so concurrent requests never collide
in the shared temporary folder.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field


class StagedFile(BaseModel):
    """A file part persisted to the temporary folder.

    Created by the acceptor when the part is opened; ``size_bytes`` is the
    number of bytes actually written (for an aborted upload, the bytes written
    before the abort).
    """
    model_config = ConfigDict(frozen=True)

    field_name: str = Field(..., description="Form field the file was sent in")
    original_filename: str = Field("", description="Filename declared by the client")
    path: Path = Field(..., description="Location of the staged file on disk")
    mime_type: str = Field(..., description="MIME type declared by the client")
    size_bytes: int = Field(..., ge=0, description="Staged file size in bytes")


@dataclass(frozen=True)
class EmptyUpload:
    """No file was staged for the request."""


@dataclass(frozen=True)
class SingleUpload:
    """Exactly one file, from a single-file endpoint."""
    file: StagedFile


@dataclass(frozen=True)
class SequenceUpload:
    """Files from one field, in the order they were received."""
    files: Tuple[StagedFile, ...] = ()


@dataclass(frozen=True)
class FieldGroupsUpload:
    """Files grouped by the field they were sent in."""
    groups: Mapping[str, Tuple[StagedFile, ...]] = field(default_factory=dict)


UploadContext = Union[EmptyUpload, SingleUpload, SequenceUpload, FieldGroupsUpload]


def staged_files(context: UploadContext) -> Tuple[StagedFile, ...]:
    """Flatten any upload context into its staged files."""
    if isinstance(context, SingleUpload):
        return (context.file,)
    if isinstance(context, SequenceUpload):
        return context.files
    if isinstance(context, FieldGroupsUpload):
        return tuple(f for files in context.groups.values() for f in files)
    return ()


class ErrorResponse(BaseModel):
    """Error body returned to the client.

    ``success`` is always false; ``code`` is a symbolic identifier such as
    ``NO_FILES`` or ``UPLOAD_LIMIT_FILE_SIZE``.
    """
    model_config = ConfigDict(frozen=True)

    success: bool = Field(False, description="Always false for errors")
    status: int = Field(..., description="HTTP status code")
    code: str = Field(..., description="Symbolic error code")
    message: str = Field(..., description="Human-readable description")


class ReceivedFile(BaseModel):
    """Public view of a staged file (the on-disk path is not exposed)."""
    field_name: str
    original_filename: str
    mime_type: str
    size_bytes: int


class UploadReceipt(BaseModel):
    """Response after a successful upload hand-off."""
    success: bool = True
    files: List[ReceivedFile] = Field(default_factory=list)

    @classmethod
    def from_context(cls, context: UploadContext) -> "UploadReceipt":
        return cls(
            files=[
                ReceivedFile(
                    field_name=f.field_name,
                    original_filename=f.original_filename,
                    mime_type=f.mime_type,
                    size_bytes=f.size_bytes,
                )
                for f in staged_files(context)
            ]
        )

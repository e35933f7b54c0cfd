"""Streaming multipart acceptor.

Reads a multipart/form-data body chunk by chunk and writes every declared file
part straight into the configured temporary folder, enforcing the transport
limits from UploadSettings while the body is still arriving. Files are stored
as-is under a random hex name; nothing is decoded or transformed.

Limit violations raise MultipartUploadError. Whatever was written before the
failure stays reachable through ``context()`` so it can be cleaned up.
"""
import logging
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import aiofiles
import aiofiles.os
from python_multipart.exceptions import MultipartParseError
from python_multipart.multipart import MultipartParser, parse_options_header
from starlette.requests import Request

from ..config import UploadSettings
from .errors import MultipartUploadError
from .schemas import (
    EmptyUpload,
    FieldGroupsUpload,
    SequenceUpload,
    SingleUpload,
    StagedFile,
    UploadContext,
)

logger = logging.getLogger(__name__)

# MIME type recorded for file parts that do not declare one
DEFAULT_MIME_TYPE = "text/plain"


@dataclass
class _OpenFile:
    field_name: str
    original_filename: str
    mime_type: str
    path: Path
    handle: Any
    size: int = 0


class UploadAcceptor:
    """Accepts the file parts of one request.

    Use the ``single``, ``array`` or ``fields`` constructors; each instance is
    meant for exactly one request.
    """

    SINGLE = "single"
    ARRAY = "array"
    FIELDS = "fields"

    def __init__(
        self,
        settings: UploadSettings,
        accepted: Mapping[str, int],
        max_files: int,
        mode: str = FIELDS,
    ):
        self.settings = settings
        self.accepted = dict(accepted)
        self.max_files = max_files
        self.mode = mode
        self.form: Dict[str, List[str]] = {}

        self._files: List[StagedFile] = []
        self._current: Optional[_OpenFile] = None
        self._events: List[Tuple[str, bytes]] = []
        self._counts: Dict[str, int] = {}
        self._part_count = 0
        self._file_count = 0
        self._field_count = 0
        self._folder_ready = False

        self._headers: Dict[bytes, bytes] = {}
        self._header_field = bytearray()
        self._header_value = bytearray()
        self._in_part = False
        self._kind: Optional[str] = None
        self._field_name = ""
        self._field_value = bytearray()

    @classmethod
    def single(cls, settings: UploadSettings, field: str) -> "UploadAcceptor":
        return cls(settings, {field: 1}, max_files=1, mode=cls.SINGLE)

    @classmethod
    def array(cls, settings: UploadSettings, field: str, max_files: Optional[int] = None) -> "UploadAcceptor":
        limit = max_files or settings.max_file_count
        return cls(settings, {field: limit}, max_files=limit, mode=cls.ARRAY)

    @classmethod
    def fields(cls, settings: UploadSettings, accepted: Mapping[str, int]) -> "UploadAcceptor":
        return cls(settings, accepted, max_files=sum(accepted.values()), mode=cls.FIELDS)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def context(self) -> UploadContext:
        """Return the upload context for everything staged so far."""
        files = tuple(self._files)
        if self.mode == self.ARRAY:
            return SequenceUpload(files)
        if self.mode == self.FIELDS:
            groups: Dict[str, Tuple[StagedFile, ...]] = {}
            for name in self.accepted:
                group = tuple(f for f in files if f.field_name == name)
                if group:
                    groups[name] = group
            return FieldGroupsUpload(groups)
        if not files:
            return EmptyUpload()
        if len(files) == 1:
            return SingleUpload(files[0])
        return SequenceUpload(files)

    async def accept(self, request: Request) -> UploadContext:
        """Consume the request body and stage its file parts.

        Requests that are not multipart/form-data are left alone and produce
        an empty context.

        Raises:
            MultipartUploadError: On a transport limit violation or a
                malformed body.
        """
        content_type, params = parse_options_header(request.headers.get("content-type"))
        if content_type != b"multipart/form-data":
            logger.debug("Not a multipart request (%s), nothing to stage", content_type.decode("latin-1"))
            return self.context()

        boundary = params.get(b"boundary")
        if not boundary:
            raise MultipartUploadError("MALFORMED_BODY", message="Multipart: Boundary not found")

        parser = MultipartParser(boundary, self._callbacks())
        try:
            async for chunk in request.stream():
                parser.write(chunk)
                await self._drain()
            parser.finalize()
            await self._drain()
            if self._in_part:
                raise MultipartUploadError("MALFORMED_BODY", message="Unexpected end of form")
        except MultipartParseError as e:
            await self._abort()
            raise MultipartUploadError("MALFORMED_BODY", message=str(e)) from e
        except BaseException:
            await self._abort()
            raise

        logger.info(
            f"Staged {len(self._files)} file(s) from {request.url.path} "
            f"({sum(f.size_bytes for f in self._files)} bytes)"
        )
        return self.context()

    # ------------------------------------------------------------------
    # Parser callbacks (synchronous; work is deferred to _drain)
    # ------------------------------------------------------------------

    def _callbacks(self) -> Dict[str, Any]:
        def queue(kind: str):
            def on_event() -> None:
                self._events.append((kind, b""))
            return on_event

        def queue_data(kind: str):
            def on_data(data: bytes, start: int, end: int) -> None:
                self._events.append((kind, data[start:end]))
            return on_data

        return {
            "on_part_begin": queue("part_begin"),
            "on_part_data": queue_data("part_data"),
            "on_part_end": queue("part_end"),
            "on_header_field": queue_data("header_field"),
            "on_header_value": queue_data("header_value"),
            "on_header_end": queue("header_end"),
            "on_headers_finished": queue("headers_finished"),
        }

    async def _drain(self) -> None:
        events, self._events = self._events, []
        for kind, data in events:
            if kind == "part_begin":
                self._begin_part()
            elif kind == "header_field":
                self._header_field += data
            elif kind == "header_value":
                self._header_value += data
            elif kind == "header_end":
                self._headers[bytes(self._header_field).lower()] = bytes(self._header_value)
                self._header_field.clear()
                self._header_value.clear()
            elif kind == "headers_finished":
                await self._open_part()
            elif kind == "part_data":
                await self._part_data(data)
            elif kind == "part_end":
                await self._end_part()

    # ------------------------------------------------------------------
    # Part handling
    # ------------------------------------------------------------------

    def _begin_part(self) -> None:
        self._part_count += 1
        if self.settings.max_parts is not None and self._part_count > self.settings.max_parts:
            raise MultipartUploadError("LIMIT_PART_COUNT")
        self._in_part = True
        self._headers = {}
        self._header_field.clear()
        self._header_value.clear()

    async def _open_part(self) -> None:
        _, options = parse_options_header(self._headers.get(b"content-disposition"))
        raw_name = options.get(b"name")
        if raw_name is None:
            raise MultipartUploadError("MISSING_FIELD_NAME")
        name = raw_name.decode("utf-8", errors="replace")

        raw_filename = options.get(b"filename")
        if raw_filename is None:
            self._open_field(name)
        else:
            await self._open_file(name, raw_filename.decode("utf-8", errors="replace"))

    def _open_field(self, name: str) -> None:
        self._field_count += 1
        if self.settings.max_fields is not None and self._field_count > self.settings.max_fields:
            raise MultipartUploadError("LIMIT_FIELD_COUNT", field=name)
        if len(name.encode("utf-8")) > self.settings.max_field_name_size:
            raise MultipartUploadError("LIMIT_FIELD_KEY", field=name)
        self._kind = "field"
        self._field_name = name
        self._field_value = bytearray()

    async def _open_file(self, name: str, filename: str) -> None:
        self._file_count += 1
        if self._file_count > self.max_files:
            raise MultipartUploadError("LIMIT_FILE_COUNT", field=name)
        if not filename:
            # A file input left empty by the browser
            self._kind = "skip"
            return
        if name not in self.accepted or self._counts.get(name, 0) >= self.accepted[name]:
            raise MultipartUploadError("LIMIT_UNEXPECTED_FILE", field=name)
        self._counts[name] = self._counts.get(name, 0) + 1

        content_type, _ = parse_options_header(self._headers.get(b"content-type"))
        mime_type = content_type.decode("latin-1") or DEFAULT_MIME_TYPE

        folder = self.settings.temp_directory
        if not self._folder_ready:
            await aiofiles.os.makedirs(folder, exist_ok=True)
            self._folder_ready = True

        path = folder / uuid.uuid4().hex
        handle = await aiofiles.open(path, "wb")
        self._current = _OpenFile(
            field_name=name,
            original_filename=filename,
            mime_type=mime_type,
            path=path,
            handle=handle,
        )
        self._kind = "file"
        logger.debug(f"Staging {filename!r} from field {name!r} to {path}")

    async def _part_data(self, data: bytes) -> None:
        if self._kind == "file":
            current = self._current
            if current.size + len(data) > self.settings.max_file_size:
                raise MultipartUploadError("LIMIT_FILE_SIZE", field=current.field_name)
            await current.handle.write(data)
            current.size += len(data)
        elif self._kind == "field":
            self._field_value += data
            if len(self._field_value) > self.settings.max_field_size:
                raise MultipartUploadError("LIMIT_FIELD_VALUE", field=self._field_name)

    async def _end_part(self) -> None:
        if self._kind == "file":
            await self._close_current()
        elif self._kind == "field":
            value = self._field_value.decode("utf-8", errors="replace")
            self.form.setdefault(self._field_name, []).append(value)
        self._kind = None
        self._in_part = False

    async def _close_current(self) -> None:
        current, self._current = self._current, None
        if current is None:
            return
        # Registered before closing so a failed close still gets cleaned up.
        self._files.append(
            StagedFile(
                field_name=current.field_name,
                original_filename=current.original_filename,
                path=current.path,
                mime_type=current.mime_type,
                size_bytes=current.size,
            )
        )
        await current.handle.close()

    async def _abort(self) -> None:
        self._kind = None
        try:
            await self._close_current()
        except OSError as e:
            logger.warning(f"Failed to close partially staged file: {e}")

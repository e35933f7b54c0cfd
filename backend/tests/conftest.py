"""Shared test fixtures and helpers for backend tests."""
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient
from starlette.requests import Request

from uploader.config import AppSettings, MonitoringSettings, UploadSettings
from uploader.main import create_app

BOUNDARY = "----uploader-test-boundary"

# (field name or None, filename or None, content type or None, payload)
Part = Tuple[Optional[str], Optional[str], Optional[str], bytes]


def build_multipart(parts: Iterable[Part], boundary: str = BOUNDARY) -> Tuple[bytes, str]:
    """Encode *parts* as a multipart/form-data body.

    Returns:
        Tuple of (body, content-type header value).
    """
    body = bytearray()
    for name, filename, content_type, payload in parts:
        disposition = "form-data"
        if name is not None:
            disposition += f'; name="{name}"'
        if filename is not None:
            disposition += f'; filename="{filename}"'
        body += f"--{boundary}\r\n".encode()
        body += f"Content-Disposition: {disposition}\r\n".encode()
        if content_type is not None:
            body += f"Content-Type: {content_type}\r\n".encode()
        body += b"\r\n" + payload + b"\r\n"
    body += f"--{boundary}--\r\n".encode()
    return bytes(body), f"multipart/form-data; boundary={boundary}"


def make_request(body: bytes, content_type: Optional[str], chunk_size: int = 64) -> Request:
    """Build a Starlette request whose body arrives in *chunk_size* pieces."""
    chunks = [body[i:i + chunk_size] for i in range(0, len(body), chunk_size)] or [b""]
    messages = [
        {"type": "http.request", "body": chunk, "more_body": i < len(chunks) - 1}
        for i, chunk in enumerate(chunks)
    ]

    async def receive():
        return messages.pop(0)

    headers = []
    if content_type is not None:
        headers.append((b"content-type", content_type.encode()))
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/upload",
        "query_string": b"",
        "headers": headers,
    }
    return Request(scope, receive)


def staged_paths(folder: Path) -> List[Path]:
    """Files currently present in the upload folder."""
    if not folder.exists():
        return []
    return sorted(folder.iterdir())


@pytest.fixture
def upload_dir(tmp_path):
    """Upload folder; created lazily by the acceptor."""
    return tmp_path / "uploads"


@pytest.fixture
def upload_settings(upload_dir):
    return UploadSettings(temp_directory=upload_dir, max_file_size=4096, max_file_count=3)


@pytest.fixture
def settings(upload_settings):
    return AppSettings(upload=upload_settings, monitoring=MonitoringSettings(min_free_space=0))


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def api_client(app):
    """Provide a TestClient for an app built around the test settings."""
    return TestClient(app)

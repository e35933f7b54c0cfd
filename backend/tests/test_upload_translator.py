"""Tests for upload error translation."""
import pytest
from fastapi import HTTPException

from uploader.upload.errors import EMPTY_FILE, MultipartUploadError, UploadError
from uploader.upload.schemas import SequenceUpload, StagedFile
from uploader.upload.translator import to_error_response, translate_upload_error


@pytest.fixture
def staged_upload_files(tmp_path):
    files = []
    for name in ("a", "b"):
        path = tmp_path / name
        path.write_bytes(b"partial")
        files.append(StagedFile(field_name="photos", path=path, mime_type="image/png", size_bytes=7))
    return SequenceUpload(tuple(files))


class TestToErrorResponse:
    """Tests for mapping multipart errors to ErrorResponses."""

    @pytest.mark.parametrize("code", [
        "LIMIT_PART_COUNT",
        "LIMIT_FILE_SIZE",
        "LIMIT_FILE_COUNT",
        "LIMIT_FIELD_KEY",
        "LIMIT_FIELD_VALUE",
        "LIMIT_FIELD_COUNT",
        "LIMIT_UNEXPECTED_FILE",
    ])
    def test_limit_codes_prefixed(self, code):
        response = to_error_response(MultipartUploadError(code))
        assert response.status == 400
        assert response.code == f"UPLOAD_{code}"
        assert response.success is False

    @pytest.mark.parametrize("code", ["MISSING_FIELD_NAME", "MALFORMED_BODY", "SOMETHING_ELSE"])
    def test_other_codes_are_bad_request(self, code):
        assert to_error_response(MultipartUploadError(code)).code == "BAD_REQUEST"

    def test_message_passed_through(self):
        assert to_error_response(MultipartUploadError("LIMIT_FILE_SIZE")).message == "File too large"
        error = MultipartUploadError("MALFORMED_BODY", message="Unexpected end of form")
        assert to_error_response(error).message == "Unexpected end of form"


class TestTranslateUploadError:
    """Tests for translate_upload_error()."""

    @pytest.mark.asyncio
    async def test_limit_error_translated_after_cleanup(self, staged_upload_files):
        result = await translate_upload_error(MultipartUploadError("LIMIT_FILE_SIZE"), staged_upload_files)

        assert isinstance(result, UploadError)
        assert result.response.model_dump() == {
            "success": False,
            "status": 400,
            "code": "UPLOAD_LIMIT_FILE_SIZE",
            "message": "File too large",
        }
        assert not any(f.path.exists() for f in staged_upload_files.files)

    @pytest.mark.asyncio
    async def test_validation_error_passed_through(self, staged_upload_files):
        error = UploadError(EMPTY_FILE)
        assert await translate_upload_error(error, staged_upload_files) is error
        assert not any(f.path.exists() for f in staged_upload_files.files)

    @pytest.mark.asyncio
    async def test_unrelated_error_passed_through(self, staged_upload_files):
        error = HTTPException(status_code=418, detail="teapot")
        assert await translate_upload_error(error, staged_upload_files) is error

        error = RuntimeError("matching service down")
        assert await translate_upload_error(error, staged_upload_files) is error

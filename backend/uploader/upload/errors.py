"""Upload exceptions and the fixed error vocabulary.

MultipartUploadError is raised by the acceptor while the body is still being
read (transport limits, malformed parts). UploadError carries a ready-made
ErrorResponse and is what the exception handler renders.
"""
from .schemas import ErrorResponse


class MultipartUploadError(Exception):
    """Transport-level failure raised while parsing a multipart body.

    ``code`` uses the traditional multipart limit identifiers
    (``LIMIT_FILE_SIZE``, ``LIMIT_FILE_COUNT``, ...).
    """

    MESSAGES = {
        "LIMIT_PART_COUNT": "Too many parts",
        "LIMIT_FILE_SIZE": "File too large",
        "LIMIT_FILE_COUNT": "Too many files",
        "LIMIT_FIELD_KEY": "Field name too long",
        "LIMIT_FIELD_VALUE": "Field value too long",
        "LIMIT_FIELD_COUNT": "Too many fields",
        "LIMIT_UNEXPECTED_FILE": "Unexpected field",
        "MISSING_FIELD_NAME": "Field name missing",
    }

    def __init__(self, code: str, field: str = "", message: str = ""):
        self.code = code
        self.field = field
        self.message = message or self.MESSAGES.get(code, "Malformed multipart body")
        super().__init__(self.message)


class UploadError(Exception):
    """A rejected upload, rendered as its ErrorResponse."""

    def __init__(self, response: ErrorResponse):
        self.response = response
        super().__init__(response.message)

    @property
    def status(self) -> int:
        return self.response.status

    @property
    def code(self) -> str:
        return self.response.code


NO_FILES = ErrorResponse(
    status=400,
    code="NO_FILES",
    message="No files found in the request",
)

TOO_FEW_FILES = ErrorResponse(
    status=400,
    code="TOO_FEW_FILES",
    message="Too few files uploaded",
)

UNSUPPORTED_FILE = ErrorResponse(
    status=400,
    code="UNSUPPORTED_FILE",
    message="Unsupported file type",
)

EMPTY_FILE = ErrorResponse(
    status=400,
    code="EMPTY_FILE",
    message="Empty file uploaded",
)

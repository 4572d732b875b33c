from __future__ import annotations

from typing import Optional


class TermifyError(Exception):
    """Base for every error that terminates an analysis request.

    ``status_code`` is the HTTP status the API layer answers with; ``message``
    is shown to the user as-is.
    """

    status_code: int = 500
    default_message: str = "Unknown error occurred"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InputTooShort(TermifyError):
    status_code = 400
    default_message = "Document text must be at least 100 characters"


class InvalidRequest(TermifyError):
    status_code = 400
    default_message = "Invalid request"


class UnsupportedFormat(TermifyError):
    status_code = 400
    default_message = "Unsupported file format"


class FileTooLarge(TermifyError):
    status_code = 400
    default_message = "Please upload a file smaller than 50MB"


class CorruptDocument(TermifyError):
    default_message = "Failed to parse document. Please ensure the file is not corrupted."


class ServiceUnavailable(TermifyError):
    default_message = "AI service not configured"


class StorageError(TermifyError):
    default_message = "Failed to access stored document"


class SegmentationParseError(TermifyError):
    default_message = "Failed to process document structure"


class SegmentationServiceError(TermifyError):
    default_message = "Failed to segment document"

    def __init__(
        self,
        upstream_status: int,
        upstream_body: str = "",
        message: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.upstream_status = upstream_status
        self.upstream_body = upstream_body

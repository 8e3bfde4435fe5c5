"""Error taxonomy shared by services and the API layer.

Every error is locally recoverable: services raise one of these, workflow code
turns it into an overlay alert where a session is involved, and the API layer
renders it with ``talentdesk_error_handler``.
"""

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse


class TalentDeskError(Exception):
    status_code = 400
    alert_type = "error"
    title = "Error"

    def __init__(self, message: str, *, title: str | None = None, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        if title is not None:
            self.title = title
        self.details = details or {}
        # Set once the error has been shown on a session overlay.
        self.alerted = False

    def to_payload(self) -> dict[str, Any]:
        error = {"type": self.alert_type, "title": self.title, "message": self.message}
        if self.details:
            error["details"] = self.details
        return {"error": error}


class ValidationFailed(TalentDeskError):
    """Rejected before any backend call; nothing was mutated."""

    status_code = 422
    alert_type = "warning"
    title = "Validation Error"


class MissingInformation(ValidationFailed):
    title = "Missing Information"


class DuplicateCandidate(ValidationFailed):
    status_code = 409
    title = "Duplicate Candidate"


class NotFound(TalentDeskError):
    status_code = 404
    title = "Not Found"


class PermissionDenied(TalentDeskError):
    status_code = 403
    title = "Not Allowed"


class BackendError(TalentDeskError):
    status_code = 502


class BackendMutationError(BackendError):
    title = "Save Failed"


class BackendReadError(BackendError):
    title = "Load Failed"


class DocumentConversionError(TalentDeskError):
    """Preview failed; the caller can retry or fall back to downloading the file."""

    status_code = 422
    title = "Preview Unavailable"

    def __init__(self, message: str, *, download_url: str | None = None, retryable: bool = True):
        super().__init__(message, details={"download_url": download_url, "retryable": retryable})
        self.download_url = download_url
        self.retryable = retryable


class ResumeParseError(TalentDeskError):
    """The resume parsing service failed or returned data outside its schema."""

    status_code = 502
    title = "Resume Parsing Failed"


async def talentdesk_error_handler(_: Request, exc: TalentDeskError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())

"""Error taxonomy for the resume ingestion and bullet tailoring pipelines."""

from typing import Optional

from fastapi import status


class JobPilotError(Exception):
    """
    Base for errors that abort a request.

    Attributes:
        message: User-facing description
        status_code: HTTP status the API layer answers with
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class ValidationFailed(JobPilotError):
    """Required input missing or out of bounds (no file, no job description, file too large)."""

    status_code = status.HTTP_400_BAD_REQUEST


class ExtractionFailed(JobPilotError):
    """Text could not be obtained from the uploaded document."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.original_error = original_error
        super().__init__(message)


class NoExperiencesSelected(JobPilotError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "No experiences selected or available"):
        super().__init__(message)


class ModelServiceFailure(JobPilotError):
    """The text-generation service failed. Never retried."""

    status_code = status.HTTP_502_BAD_GATEWAY


class ModelQuotaExceeded(ModelServiceFailure):
    status_code = status.HTTP_402_PAYMENT_REQUIRED

    def __init__(self, message: str = "Text generation quota exceeded. Please check your API key."):
        super().__init__(message)


class ModelCredentialsInvalid(ModelServiceFailure):
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Invalid text generation API key. Please check your configuration."):
        super().__init__(message)


class ProfileConflict(JobPilotError):
    """Profile document changed between read and write."""

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, user_id: str, expected_version: int):
        self.user_id = user_id
        self.expected_version = expected_version
        super().__init__(
            f"Profile was modified concurrently (expected version {expected_version}). Reload and retry."
        )


class MalformedModelOutput(Exception):
    """
    Model returned text that is not JSON or does not fit the expected shape.

    Only used to describe recovered failures in logs; pipelines substitute
    defaults instead of raising it.
    """

    def __init__(self, message: str, raw_text: str = ""):
        self.raw_text = raw_text
        preview = raw_text[:200] + "..." if len(raw_text) > 200 else raw_text
        super().__init__(f"{message}: {preview!r}")

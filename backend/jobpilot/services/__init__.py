from .auth import (
    create_access_token,
    get_current_user_id,
)
from .exceptions import (
    JobPilotError,
    ValidationFailed,
    ExtractionFailed,
    NoExperiencesSelected,
    ModelServiceFailure,
    ModelQuotaExceeded,
    ModelCredentialsInvalid,
    ProfileConflict,
    MalformedModelOutput,
)
from .llm import (
    TextGenerationClient,
    get_llm_client,
)
from .resume_parser import parse_resume
from .tailor import tailor_experiences

__all__ = [
    # Auth
    "create_access_token",
    "get_current_user_id",
    # Errors
    "JobPilotError",
    "ValidationFailed",
    "ExtractionFailed",
    "NoExperiencesSelected",
    "ModelServiceFailure",
    "ModelQuotaExceeded",
    "ModelCredentialsInvalid",
    "ProfileConflict",
    "MalformedModelOutput",
    # Text generation
    "TextGenerationClient",
    "get_llm_client",
    # Pipelines
    "parse_resume",
    "tailor_experiences",
]

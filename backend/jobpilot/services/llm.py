"""
Text generation client backed by Gemini.

One client is built at application startup and handed to the pipelines
through a FastAPI dependency. Calls are single request/response exchanges;
failures are mapped onto the ModelServiceFailure hierarchy and never retried.
"""
import logging
from typing import Optional

from fastapi import Request
from google import genai
from google.genai import errors as genai_errors
from google.genai import types as genai_types

from ..config import Settings
from .exceptions import ModelCredentialsInvalid, ModelQuotaExceeded, ModelServiceFailure

logger = logging.getLogger(__name__)


def _is_credentials_error(error: genai_errors.APIError) -> bool:
    if error.code in (401, 403):
        return True
    text = f"{error.status or ''} {error.message or ''}".upper()
    return "API_KEY_INVALID" in text or "API KEY NOT VALID" in text


def map_service_error(error: Exception) -> ModelServiceFailure:
    """Translate an SDK exception into the service failure taxonomy."""
    if isinstance(error, genai_errors.APIError):
        if error.code == 429 or (error.status or "").upper() == "RESOURCE_EXHAUSTED":
            return ModelQuotaExceeded()
        if _is_credentials_error(error):
            return ModelCredentialsInvalid()
        return ModelServiceFailure(f"Text generation failed: {error.message or error.status}")
    return ModelServiceFailure(f"Text generation failed: {error}")


class TextGenerationClient:
    """
    Thin wrapper over ``genai.Client`` exposing the one call the pipelines need.

    Args:
        api_key: Gemini API key; an empty key makes every call fail with
            ModelCredentialsInvalid instead of failing at startup
        model: Model identifier sent with each request
    """

    def __init__(self, api_key: str, model: str):
        self.model = model
        self._client: Optional[genai.Client] = genai.Client(api_key=api_key) if api_key else None
        if self._client is None:
            logger.warning("GEMINI_API_KEY not set - resume parsing and tailoring disabled")

    @classmethod
    def from_settings(cls, settings: Settings) -> "TextGenerationClient":
        return cls(api_key=settings.gemini_api_key, model=settings.gemini_model)

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
        json_mode: bool = False,
    ) -> str:
        if self._client is None:
            raise ModelCredentialsInvalid("Text generation API not configured. Please set GEMINI_API_KEY.")

        config = genai_types.GenerateContentConfig(
            system_instruction=system_prompt,
            temperature=temperature,
            response_mime_type="application/json" if json_mode else None,
        )
        try:
            response = await self._client.aio.models.generate_content(
                model=self.model,
                contents=user_prompt,
                config=config,
            )
        except Exception as e:
            failure = map_service_error(e)
            logger.error(f"Text generation call to {self.model} failed: {e}")
            raise failure from e

        text = (response.text or "").strip()
        if not text and json_mode:
            return "{}"
        return text


def get_llm_client(request: Request) -> TextGenerationClient:
    """Dependency returning the process-wide client created in the app lifespan."""
    return request.app.state.llm_client

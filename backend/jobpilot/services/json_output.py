"""Fail-open parsing of JSON model output."""
import json
import logging
import re
from typing import Type, TypeVar

from pydantic import BaseModel, ValidationError

from .exceptions import MalformedModelOutput

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

CODE_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def strip_code_fences(text: str) -> str:
    """Remove a surrounding ```json ... ``` block if the model added one."""
    return CODE_FENCE_RE.sub("", text.strip()).strip()


def parse_or_default(raw_text: str, model: Type[M], context: str = "model output") -> M:
    """
    Parse raw model text into ``model``, returning ``model()`` on any failure.

    Never raises: undecodable JSON and schema mismatches are logged as
    MalformedModelOutput and replaced by the model's defaults.
    """
    text = strip_code_fences(raw_text or "")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        logger.warning(str(MalformedModelOutput(f"{context} is not valid JSON ({e.msg})", text)))
        return model()

    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.warning(str(MalformedModelOutput(f"{context} has unexpected shape ({e.error_count()} errors)", text)))
        return model()

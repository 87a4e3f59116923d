"""
Resume Parser Service using Gemini for structured extraction.

Pipeline: document bytes -> text -> truncated text -> JSON extraction call ->
fail-open parse -> field normalization (descriptions, string defaults, ids).
"""
import logging
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator

from ..schemas.profile import Education, RecordId, ResumeParseResponse, WorkExperience
from .bullets import normalize_description
from .identifiers import IdAllocator
from .json_output import parse_or_default
from .llm import TextGenerationClient
from .text_extraction import DEFAULT_TEXT_BUDGET, extract_text, truncate_text

logger = logging.getLogger(__name__)


# ============================================================================
# Raw Model Output
# ============================================================================

class ExtractedResume(BaseModel):
    """Model output before normalization. Wrong-typed fields fall back to empty."""
    summary: str = ""
    workExperience: List[Any] = Field(default_factory=list)
    education: List[Any] = Field(default_factory=list)
    skills: List[Any] = Field(default_factory=list)

    @field_validator("summary", mode="before")
    @classmethod
    def summary_must_be_string(cls, value):
        return value if isinstance(value, str) else ""

    @field_validator("workExperience", "education", "skills", mode="before")
    @classmethod
    def arrays_must_be_lists(cls, value):
        return value if isinstance(value, list) else []


# ============================================================================
# Resume Extraction Prompt
# ============================================================================

RESUME_EXTRACTION_PROMPT = (
    "You are an information extractor that converts resume text into structured JSON. "
    "Return ONLY JSON with keys: summary (string), workExperience (array), education (array), skills (array). "
    "Each workExperience item: {id, company, title, startDate, endDate, description}. "
    "Each education item: {id, institution, degree, field, graduationDate}. "
    "Skills should be an array of strings. Leave arrays empty if not found."
)


# ============================================================================
# Normalization
# ============================================================================

def _text(record: dict, key: str) -> str:
    value = record.get(key)
    if value is None or isinstance(value, (dict, list)):
        return ""
    return str(value).strip()


def _record_id(value) -> Optional[RecordId]:
    """Keep ints and non-blank strings; anything else gets a fresh id."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, (str, float)):
        return str(value).strip() or None
    return None


def _records(items: List[Any], kind: str) -> List[dict]:
    records = []
    for item in items:
        if isinstance(item, dict):
            records.append(item)
        else:
            logger.warning(f"Dropping non-object {kind} entry: {str(item)[:80]!r}")
    return records


def normalize_work_experience(items: List[Any]) -> List[WorkExperience]:
    return [
        WorkExperience(
            id=_record_id(record.get("id")),
            company=_text(record, "company"),
            title=_text(record, "title"),
            start_date=_text(record, "startDate"),
            end_date=_text(record, "endDate"),
            description=normalize_description(record.get("description")),
        )
        for record in _records(items, "workExperience")
    ]


def normalize_education(items: List[Any]) -> List[Education]:
    return [
        Education(
            id=_record_id(record.get("id")),
            institution=_text(record, "institution"),
            degree=_text(record, "degree"),
            field=_text(record, "field"),
            graduation_date=_text(record, "graduationDate"),
        )
        for record in _records(items, "education")
    ]


def coerce_skills(items: List[Any]) -> List[str]:
    """String-coerce skills and drop exact duplicates, keeping first occurrence."""
    skills = []
    seen = set()
    for item in items:
        if item is None or isinstance(item, (dict, list)):
            continue
        skill = str(item).strip()
        if skill and skill not in seen:
            seen.add(skill)
            skills.append(skill)
    return skills


def normalize_extracted_resume(extracted: ExtractedResume, allocator: IdAllocator) -> ResumeParseResponse:
    work_experience, education = allocator.assign_batch(
        normalize_work_experience(extracted.workExperience),
        normalize_education(extracted.education),
    )
    return ResumeParseResponse(
        summary=extracted.summary,
        work_experience=work_experience,
        education=education,
        skills=coerce_skills(extracted.skills),
    )


# ============================================================================
# Core Functions
# ============================================================================

async def extract_resume_fields(
    client: TextGenerationClient,
    resume_text: str,
    temperature: float = 0.0,
) -> ExtractedResume:
    """Run the JSON extraction call. Malformed output yields an empty ExtractedResume."""
    raw = await client.generate(
        system_prompt=RESUME_EXTRACTION_PROMPT,
        user_prompt=f"Resume text:\n{resume_text}",
        temperature=temperature,
        json_mode=True,
    )
    return parse_or_default(raw, ExtractedResume, context="resume extraction")


async def parse_resume(
    client: TextGenerationClient,
    data: bytes,
    content_type: Optional[str],
    allocator: IdAllocator,
    text_budget: int = DEFAULT_TEXT_BUDGET,
    temperature: float = 0.0,
) -> ResumeParseResponse:
    """
    Parse an uploaded resume into profile records.

    Args:
        client: Text generation client
        data: Raw uploaded bytes
        content_type: Declared MIME type, may be None
        allocator: Id source for records the model returned without ids
        text_budget: Maximum characters of resume text sent to the model

    Raises:
        ExtractionFailed: PDF text could not be extracted
        ModelServiceFailure: The generation call itself failed
    """
    resume_text = truncate_text(extract_text(data, content_type), text_budget)
    logger.info(f"Extracted {len(resume_text)} characters of resume text")

    extracted = await extract_resume_fields(client, resume_text, temperature=temperature)
    parsed = normalize_extracted_resume(extracted, allocator)
    logger.info(
        f"Parsed resume: {len(parsed.work_experience)} exp, "
        f"{len(parsed.education)} edu, {len(parsed.skills)} skills"
    )
    return parsed

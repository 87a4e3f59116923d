"""
Profile, resume ingestion and tailoring schemas.

Wire format is camelCase (``workExperience``, ``startDate``); Python code uses
snake_case attribute names.
"""
from typing import List, Optional, Union
from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel


RecordId = Union[int, str]


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


# ============================================================================
# Profile Records
# ============================================================================

class WorkExperience(CamelModel):
    id: Optional[RecordId] = None
    company: str = ""
    title: str = ""
    start_date: str = ""
    end_date: str = ""  # empty means current
    description: str = ""  # one bullet per line


class Education(CamelModel):
    id: Optional[RecordId] = None
    institution: str = ""
    degree: str = ""
    field: str = ""
    graduation_date: str = ""


# ============================================================================
# Profile Document
# ============================================================================

class ProfileResponse(CamelModel):
    """Full profile document for one user."""
    name: str = ""
    email: str = ""
    phone: str = ""
    location: str = ""
    personal_summary: str = ""
    work_experience: List[WorkExperience] = Field(default_factory=list)
    education: List[Education] = Field(default_factory=list)
    skills: List[str] = Field(default_factory=list)
    version: int = 1


class ProfileUpdate(CamelModel):
    """Partial update; only fields present in the request are applied."""
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    personal_summary: Optional[str] = None
    work_experience: Optional[List[WorkExperience]] = None
    education: Optional[List[Education]] = None
    skills: Optional[List[str]] = None
    version: Optional[int] = None


class SkillAdd(BaseModel):
    skill: str


# ============================================================================
# Resume Ingestion
# ============================================================================

class ResumeParseResponse(CamelModel):
    summary: str = ""
    work_experience: List[WorkExperience] = Field(default_factory=list)
    education: List[Education] = Field(default_factory=list)
    skills: List[str] = Field(default_factory=list)


# ============================================================================
# Bullet Tailoring
# ============================================================================

class TailorRequest(CamelModel):
    company: Optional[str] = None
    job_description: str = ""
    experience_ids: List[str] = Field(default_factory=list)

    @field_validator("experience_ids", mode="before")
    @classmethod
    def coerce_ids(cls, value):
        if value is None:
            return []
        if isinstance(value, (str, int)) and not isinstance(value, bool):
            return [str(value)]
        if isinstance(value, list):
            return [str(v) for v in value]
        return value


class TailorResult(BaseModel):
    id: str
    bullets: List[str]


class TailorResponse(BaseModel):
    results: List[TailorResult] = Field(default_factory=list)

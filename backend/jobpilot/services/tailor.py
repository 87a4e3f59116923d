"""
Bullet tailoring: rewrite work experience bullets toward a job description.

The model is asked to keep each experience's bullet count, but its answer is
not trusted: every returned bullet list is normalized and then reconciled to
the original count, so the caller always gets ``target`` bullets per
experience. Malformed output degrades to an empty result set rather than an
error.
"""
import logging
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, Field, field_validator

from ..schemas.profile import TailorResponse, TailorResult, WorkExperience
from .bullets import description_lines, normalize_bullets, reconcile_bullet_count, strip_bullet_marker, target_bullet_count
from .exceptions import NoExperiencesSelected, ValidationFailed
from .json_output import parse_or_default
from .llm import TextGenerationClient

logger = logging.getLogger(__name__)

TAILOR_SYSTEM_PROMPT = "You are a precise resume tailoring assistant."

TAILOR_PROMPT_TEMPLATE = """
You rewrite resume bullets to align with a target job description while keeping every fact true to the spirit of the original experience.
Company: {company}
Job Description (JD):
{job_description}

Candidate Experiences (keep order):
{experiences}

Rules per experience:
- For every bullet, weave in the most relevant JD keywords (skills/tech/responsibilities/metrics) that plausibly fit this experience.
- You may lightly extend or rephrase bullets to better match the JD, as long as the direction/topic of the original bullet stays the same.
- If a bullet already aligns, keep it or make a small tweak to add missing JD language. Across all experiences, make sure no JD keywords are missed.
- Keep SAME bullet count and roughly SAME length per bullet.
- Use concise action-verb bullets; keep existing impact/metrics or plausible refinements, but do not introduce contradictions with the role/scope described.
- OUTPUT JSON ONLY: {{ "results": [ {{ "id": "<experienceId>", "bullets": ["..."] }} ] }} in the same experience order (ids from input). Each "bullets" array must have exactly the same length as the provided bullet list for that experience, with each bullet as its own string element (no embedded newlines).
"""


class RawTailorOutput(BaseModel):
    results: List[Any] = Field(default_factory=list)

    @field_validator("results", mode="before")
    @classmethod
    def results_must_be_list(cls, value):
        return value if isinstance(value, list) else []


def select_experiences(
    experiences: Sequence[WorkExperience],
    experience_ids: Optional[Sequence[str]] = None,
) -> List[WorkExperience]:
    """Experiences whose id is in ``experience_ids``, or all of them when none are given."""
    if not experience_ids:
        return list(experiences)
    wanted = {str(i) for i in experience_ids}
    return [exp for exp in experiences if str(exp.id) in wanted]


def format_experience_block(index: int, experience: WorkExperience) -> str:
    return (
        f"Experience {index} (id: {experience.id}, keep bullet count {target_bullet_count(experience.description)}):\n"
        f"Title: {experience.title}\n"
        f"Company: {experience.company}\n"
        f"Dates: {experience.start_date} - {experience.end_date or 'Present'}\n"
        f"Bullets:\n{experience.description}"
    )


def build_tailor_prompt(
    job_description: str,
    experiences: Sequence[WorkExperience],
    company: Optional[str] = None,
) -> str:
    blocks = "\n\n".join(format_experience_block(i, exp) for i, exp in enumerate(experiences, start=1))
    return TAILOR_PROMPT_TEMPLATE.format(
        company=company or "N/A",
        job_description=job_description,
        experiences=blocks,
    )


def reconcile_results(raw_results: List[Any], experiences: Sequence[WorkExperience]) -> List[TailorResult]:
    """
    Match model entries to the input experiences and fix their bullet counts.

    Output follows input order. Entries for unknown ids are dropped, and
    experiences the model skipped are left out. An entry whose bullets are
    all unusable falls back to the original bullets.
    """
    entries: Dict[str, Any] = {}
    for entry in raw_results:
        if not isinstance(entry, dict):
            continue
        entry_id = str(entry.get("id", "")).strip()
        entries.setdefault(entry_id, entry)

    known_ids = {str(exp.id) for exp in experiences}
    unknown = [i for i in entries if i not in known_ids]
    if unknown:
        logger.warning(f"Dropping tailored results for unknown experience ids: {unknown}")

    results = []
    for exp in experiences:
        exp_id = str(exp.id)
        entry = entries.get(exp_id)
        if entry is None:
            logger.warning(f"Model returned no bullets for experience {exp_id}")
            continue

        bullets = normalize_bullets(entry.get("bullets"))
        if not bullets:
            bullets = [strip_bullet_marker(line) for line in description_lines(exp.description)]

        target = target_bullet_count(exp.description)
        if len(bullets) != target:
            logger.info(f"Reconciling experience {exp_id}: model gave {len(bullets)} bullets, need {target}")
        results.append(TailorResult(id=exp_id, bullets=reconcile_bullet_count(bullets, target)))
    return results


async def tailor_experiences(
    client: TextGenerationClient,
    job_description: str,
    experiences: Sequence[WorkExperience],
    company: Optional[str] = None,
    experience_ids: Optional[Sequence[str]] = None,
    temperature: float = 0.4,
) -> TailorResponse:
    """
    Rewrite the selected experiences' bullets for a job description.

    Raises:
        ValidationFailed: Job description is missing
        NoExperiencesSelected: Selection (or the whole profile) is empty
        ModelServiceFailure: The generation call itself failed
    """
    if not job_description or not job_description.strip():
        raise ValidationFailed("Job description is required")

    selected = select_experiences(experiences, experience_ids)
    if not selected:
        raise NoExperiencesSelected()

    raw = await client.generate(
        system_prompt=TAILOR_SYSTEM_PROMPT,
        user_prompt=build_tailor_prompt(job_description, selected, company),
        temperature=temperature,
        json_mode=True,
    )
    parsed = parse_or_default(raw, RawTailorOutput, context="bullet tailoring")
    return TailorResponse(results=reconcile_results(parsed.results, selected))

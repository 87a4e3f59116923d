"""
Profile persistence and merge rules.

Profiles are written with an optimistic version check: a save names the
version it read, and fails with ProfileConflict if another request wrote in
between. Updates are merged explicitly rather than replacing the document.
"""
import logging
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Profile
from ..schemas.profile import Education, ProfileResponse, ProfileUpdate, ResumeParseResponse, WorkExperience
from .exceptions import ProfileConflict, ValidationFailed
from .identifiers import IdAllocator, highest_numeric_id

logger = logging.getLogger(__name__)


# ============================================================================
# Pure Helpers
# ============================================================================

def dedupe_skills(skills: List[str]) -> List[str]:
    """Drop exact (case-sensitive) repeats, keeping first occurrence order."""
    seen = set()
    unique = []
    for skill in skills:
        if skill not in seen:
            seen.add(skill)
            unique.append(skill)
    return unique


def merge_profile(existing: ProfileResponse, changes: ProfileUpdate) -> ProfileResponse:
    """
    Apply a partial update to a profile document.

    Fields the update leaves unset (or sets to null) keep their current value.
    Provided arrays replace the stored arrays wholesale.
    """
    updates = {}
    for name in changes.model_fields_set:
        if name == "version":
            continue
        value = getattr(changes, name)
        if value is not None:
            updates[name] = value
    if "skills" in updates:
        updates["skills"] = dedupe_skills(updates["skills"])
    return existing.model_copy(update=updates)


def profile_to_document(profile: Profile) -> ProfileResponse:
    return ProfileResponse(
        name=profile.name or "",
        email=profile.email or "",
        phone=profile.phone or "",
        location=profile.location or "",
        personal_summary=profile.personal_summary or "",
        work_experience=[WorkExperience.model_validate(r) for r in profile.work_experience or []],
        education=[Education.model_validate(r) for r in profile.education or []],
        skills=list(profile.skills or []),
        version=profile.version,
    )


def document_to_values(document: ProfileResponse) -> dict:
    return {
        "name": document.name,
        "email": document.email,
        "phone": document.phone,
        "location": document.location,
        "personal_summary": document.personal_summary,
        "work_experience": [r.model_dump(by_alias=True) for r in document.work_experience],
        "education": [r.model_dump(by_alias=True) for r in document.education],
        "skills": list(document.skills),
    }


# ============================================================================
# Repository
# ============================================================================

class ProfileRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, user_id: str) -> Optional[Profile]:
        result = await self.db.execute(select(Profile).where(Profile.user_id == user_id))
        return result.scalar_one_or_none()

    async def get_or_create(self, user_id: str) -> Profile:
        """
        Load the user's profile, inserting an empty one if none exists.

        The insert is committed immediately so no write lock is held while
        the caller works. Losing an insert race to another request just
        loads the winner's row.
        """
        profile = await self.get(user_id)
        if profile is not None:
            return profile

        profile = Profile(
            user_id=user_id,
            work_experience=[],
            education=[],
            skills=[],
            version=1,
            id_sequence=0,
        )
        self.db.add(profile)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.info(f"Profile for user {user_id} was created concurrently, loading it")
            return await self.get(user_id)

        logger.info(f"Created empty profile for user {user_id}")
        return profile

    async def end_read(self) -> None:
        """Close the current transaction; loaded profiles stay usable."""
        await self.db.commit()

    async def save(
        self,
        profile: Profile,
        document: ProfileResponse,
        expected_version: int,
        last_issued_id: int = 0,
    ) -> Profile:
        """
        Replace the stored document if it is still at ``expected_version``.

        Raises:
            ProfileConflict: Another write happened since ``expected_version`` was read
        """
        id_sequence = max(
            profile.id_sequence or 0,
            last_issued_id or 0,
            highest_numeric_id(document.work_experience),
            highest_numeric_id(document.education),
        )
        stmt = (
            update(Profile)
            .where(Profile.user_id == profile.user_id, Profile.version == expected_version)
            .values(**document_to_values(document), id_sequence=id_sequence, version=expected_version + 1)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        if result.rowcount == 0:
            logger.warning(f"Version conflict saving profile for user {profile.user_id} (expected {expected_version})")
            raise ProfileConflict(profile.user_id, expected_version)

        await self.db.refresh(profile)
        return profile


# ============================================================================
# Profile Operations
# ============================================================================

async def update_profile(repo: ProfileRepository, user_id: str, changes: ProfileUpdate) -> ProfileResponse:
    """Merge a partial update, giving new records ids, and save it."""
    profile = await repo.get_or_create(user_id)
    expected_version = changes.version if changes.version is not None else profile.version

    merged = merge_profile(profile_to_document(profile), changes)
    allocator = IdAllocator(profile.id_sequence)
    work_experience, education = allocator.assign_batch(merged.work_experience, merged.education)
    merged = merged.model_copy(update={"work_experience": work_experience, "education": education})

    saved = await repo.save(profile, merged, expected_version, allocator.last_issued)
    return profile_to_document(saved)


async def add_skill(repo: ProfileRepository, user_id: str, skill: str) -> ProfileResponse:
    skill = (skill or "").strip()
    if not skill:
        raise ValidationFailed("Skill is required")

    profile = await repo.get_or_create(user_id)
    existing = profile_to_document(profile)
    if skill in existing.skills:
        return existing

    merged = merge_profile(existing, ProfileUpdate(skills=existing.skills + [skill]))
    saved = await repo.save(profile, merged, profile.version)
    return profile_to_document(saved)


async def apply_parsed_resume(
    repo: ProfileRepository,
    profile: Profile,
    parsed: ResumeParseResponse,
    expected_version: int,
    last_issued_id: int = 0,
) -> ProfileResponse:
    """
    Overwrite experience, education and skills with a parsed resume.

    The summary only replaces the stored one when the resume produced one.
    """
    changes = {
        "work_experience": parsed.work_experience,
        "education": parsed.education,
        "skills": parsed.skills,
    }
    if parsed.summary:
        changes["personal_summary"] = parsed.summary

    merged = merge_profile(profile_to_document(profile), ProfileUpdate(**changes))
    saved = await repo.save(profile, merged, expected_version, last_issued_id)
    return profile_to_document(saved)

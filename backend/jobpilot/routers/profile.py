"""
Profile Router - profile document, skills, and resume upload/parsing
"""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, File, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import get_settings
from ..database import get_db
from ..schemas.profile import ProfileResponse, ProfileUpdate, ResumeParseResponse, SkillAdd
from ..services.auth import get_current_user_id
from ..services.exceptions import ValidationFailed
from ..services.identifiers import IdAllocator
from ..services.llm import TextGenerationClient, get_llm_client
from ..services.profile_store import (
    ProfileRepository, add_skill, apply_parsed_resume, profile_to_document, update_profile
)
from ..services.resume_parser import parse_resume

router = APIRouter(prefix="/api/profile", tags=["Profile"])
settings = get_settings()
logger = logging.getLogger(__name__)


def get_profile_repository(db: AsyncSession = Depends(get_db)) -> ProfileRepository:
    return ProfileRepository(db)


@router.get("", response_model=ProfileResponse)
async def get_my_profile(
    repo: ProfileRepository = Depends(get_profile_repository),
    user_id: str = Depends(get_current_user_id),
):
    """Get the caller's profile, creating an empty one on first access."""
    profile = await repo.get_or_create(user_id)
    return profile_to_document(profile)


@router.put("", response_model=ProfileResponse)
async def update_my_profile(
    changes: ProfileUpdate,
    repo: ProfileRepository = Depends(get_profile_repository),
    user_id: str = Depends(get_current_user_id),
):
    """
    Merge a partial profile update.

    Send ``version`` from a previous read to make the write conditional on
    nobody else having written since.
    """
    return await update_profile(repo, user_id, changes)


@router.post("/skills", response_model=ProfileResponse)
async def add_my_skill(
    data: SkillAdd,
    repo: ProfileRepository = Depends(get_profile_repository),
    user_id: str = Depends(get_current_user_id),
):
    return await add_skill(repo, user_id, data.skill)


@router.post("/resume", response_model=ResumeParseResponse)
async def upload_resume(
    file: Optional[UploadFile] = File(None),
    repo: ProfileRepository = Depends(get_profile_repository),
    llm_client: TextGenerationClient = Depends(get_llm_client),
    user_id: str = Depends(get_current_user_id),
):
    """
    Parse an uploaded resume and overwrite the profile's experience,
    education and skills with the result.

    FLOW:
    1. Validate file (present, non-empty, within size limit)
    2. Read profile version and id sequence, then release the transaction
    3. Extract text -> model extraction -> normalize
    4. Save with a version check; a concurrent write yields 409
    """
    # ===== STEP 1: VALIDATE FILE =====
    if file is None:
        raise ValidationFailed("File is required")

    data = await file.read()
    if not data:
        raise ValidationFailed("File is empty")
    if len(data) > settings.max_resume_bytes:
        raise ValidationFailed(
            f"File too large (max {settings.max_resume_bytes // (1024 * 1024)}MB)",
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
        )

    # ===== STEP 2: SNAPSHOT PROFILE =====
    profile = await repo.get_or_create(user_id)
    expected_version = profile.version
    allocator = IdAllocator(profile.id_sequence)
    await repo.end_read()

    # ===== STEP 3: PARSE =====
    parsed = await parse_resume(
        llm_client,
        data,
        file.content_type,
        allocator,
        text_budget=settings.resume_text_budget,
        temperature=settings.extraction_temperature,
    )

    # ===== STEP 4: SAVE =====
    await apply_parsed_resume(repo, profile, parsed, expected_version, allocator.last_issued)
    logger.info(f"Profile saved for user {user_id} from resume {file.filename!r}")
    return parsed

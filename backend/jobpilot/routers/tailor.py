"""
Tailor Router - rewrite experience bullets for a job description
"""
from fastapi import APIRouter, Depends

from ..config import get_settings
from .profile import get_profile_repository
from ..schemas.profile import TailorRequest, TailorResponse
from ..services.auth import get_current_user_id
from ..services.llm import TextGenerationClient, get_llm_client
from ..services.profile_store import ProfileRepository, profile_to_document
from ..services.tailor import tailor_experiences

router = APIRouter(prefix="/api/tailor", tags=["Tailor"])
settings = get_settings()


@router.post("", response_model=TailorResponse)
async def tailor(
    data: TailorRequest,
    repo: ProfileRepository = Depends(get_profile_repository),
    llm_client: TextGenerationClient = Depends(get_llm_client),
    user_id: str = Depends(get_current_user_id),
):
    """
    Tailor the caller's experiences (all, or those in ``experienceIds``).

    Nothing is written back to the profile. Each result has exactly as many
    bullets as the original experience description.
    """
    profile = await repo.get(user_id)
    experiences = profile_to_document(profile).work_experience if profile else []

    return await tailor_experiences(
        llm_client,
        job_description=data.job_description,
        experiences=experiences,
        company=data.company,
        experience_ids=data.experience_ids,
        temperature=settings.tailor_temperature,
    )

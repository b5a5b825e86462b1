"""Profile endpoints: registration, PIN lookup, and caller summary."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlmodel.ext.asyncio.session import AsyncSession

from memoir.api.deps import get_openai_service, get_profile_id
from memoir.db.session import get_session
from memoir.models import Profile
from memoir.schemas import ProfileCreateRequest, ProfileLookupRequest, ProfileResource, ProfileSummary
from memoir.services.answers import AnswerService
from memoir.services.openai_client import OpenAIService
from memoir.services.profiles import ProfileService

router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.post("", response_model=ProfileResource, status_code=status.HTTP_201_CREATED)
async def register_profile(
    payload: ProfileCreateRequest,
    session: AsyncSession = Depends(get_session),
) -> ProfileResource:
    profile = await ProfileService().register(
        session,
        name=payload.name,
        pin=payload.pin,
        birth_year=payload.birth_year,
    )
    return _to_profile_resource(profile)


@router.post("/lookup", response_model=ProfileResource)
async def lookup_profile(
    payload: ProfileLookupRequest,
    session: AsyncSession = Depends(get_session),
) -> ProfileResource:
    profile = await ProfileService().lookup(session, name=payload.name, pin=payload.pin)
    return _to_profile_resource(profile)


@router.get("/me", response_model=ProfileSummary)
async def current_profile(
    profile_id: int = Depends(get_profile_id),
    session: AsyncSession = Depends(get_session),
    openai_service: OpenAIService = Depends(get_openai_service),
) -> ProfileSummary:
    profile = await ProfileService().resolve(session, profile_id)
    total = await AnswerService(openai_service=openai_service).count(session, profile_id=profile_id)
    return ProfileSummary(**_to_profile_resource(profile).model_dump(), answer_count=total)


def _to_profile_resource(profile: Profile) -> ProfileResource:
    return ProfileResource(
        id=profile.id,
        name=profile.name,
        birth_year=profile.birth_year,
        has_pin=bool(profile.pin),
        created_at=profile.created_at,
    )

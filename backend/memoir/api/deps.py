"""Request-scoped dependencies shared by the routers.

Functions:
    get_openai_service(request): Return the provider adapter built at startup.
    get_profile_id(...): Resolve the caller's profile from the `X-Profile-Id` header.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header, Request
from sqlmodel.ext.asyncio.session import AsyncSession

from memoir.core.errors import InvalidInput, UnknownProfile
from memoir.db.session import get_session
from memoir.services.openai_client import OpenAIService
from memoir.services.profiles import ProfileService

PROFILE_HEADER = "X-Profile-Id"


def get_openai_service(request: Request) -> OpenAIService:
    service = getattr(request.app.state, "openai_service", None)
    if service is None:
        service = OpenAIService()
        request.app.state.openai_service = service
    return service


async def get_profile_id(
    x_profile_id: Optional[str] = Header(default=None, alias=PROFILE_HEADER),
    session: AsyncSession = Depends(get_session),
) -> int:
    if x_profile_id is None or not x_profile_id.strip():
        raise UnknownProfile(f"{PROFILE_HEADER} header is required")
    try:
        profile_id = int(x_profile_id.strip())
    except ValueError as exc:
        raise InvalidInput(f"{PROFILE_HEADER} must be a numeric profile id") from exc
    profile = await ProfileService().resolve(session, profile_id)
    return profile.id

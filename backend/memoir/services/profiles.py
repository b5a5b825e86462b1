"""Profile registration, resolution, and PIN lookup.

Classes:
    ProfileService: Resolves caller identities and manages the profile table.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import select

from memoir.core.config import Settings, get_settings
from memoir.core.errors import Forbidden, InvalidInput, NotFound, UnknownProfile
from memoir.models import Profile

_LOGGER = logging.getLogger(__name__)


class ProfileService:
    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()

    async def resolve(self, session, profile_id: int) -> Profile:
        profile = await session.get(Profile, profile_id)
        if profile is None:
            raise UnknownProfile(f"Profile {profile_id} does not exist")
        return profile

    async def register(
        self,
        session,
        *,
        name: str,
        pin: Optional[str] = None,
        birth_year: Optional[int] = None,
    ) -> Profile:
        name = (name or "").strip()
        if not name:
            raise InvalidInput("name is required")
        if pin is not None and not pin.isdigit():
            raise InvalidInput("pin must contain digits only")

        existing = await session.exec(select(Profile).where(Profile.name == name))
        if existing.first() is not None:
            raise InvalidInput(f"Profile name '{name}' is already taken")

        profile = Profile(name=name, pin=pin, birth_year=birth_year)
        session.add(profile)
        try:
            await session.commit()
        except IntegrityError as exc:
            await session.rollback()
            raise InvalidInput(f"Profile name '{name}' is already taken") from exc
        await session.refresh(profile)
        _LOGGER.info("Registered profile %s", profile.id, extra={"profile_id": profile.id})
        return profile

    async def lookup(self, session, *, name: str, pin: Optional[str] = None) -> Profile:
        result = await session.exec(select(Profile).where(Profile.name == name.strip()))
        profile = result.first()
        if profile is None:
            raise NotFound(f"No profile named '{name}'")
        if profile.pin and profile.pin != (pin or ""):
            raise Forbidden("PIN does not match")
        return profile

    async def ensure_default(self, session) -> Profile:
        result = await session.exec(select(Profile).order_by(Profile.id).limit(1))
        profile = result.first()
        if profile is not None:
            return profile
        profile = Profile(name=self._settings.default_profile_name)
        session.add(profile)
        await session.commit()
        await session.refresh(profile)
        _LOGGER.info("Seeded default profile %s", profile.id)
        return profile

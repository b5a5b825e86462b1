"""Pydantic schemas for profile registration and lookup."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator


def _normalise_pin(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    pin = value.strip()
    if not pin:
        return None
    if not pin.isdigit():
        raise ValueError("pin must contain digits only")
    return pin


class ProfileCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    pin: Optional[str] = Field(default=None, max_length=12)
    birth_year: Optional[int] = Field(default=None, ge=1850, le=2100)

    @field_validator("name")
    @classmethod
    def trim_name(cls, value: str) -> str:
        text = value.strip()
        if not text:
            raise ValueError("must not be blank")
        return text

    @field_validator("pin")
    @classmethod
    def check_pin(cls, value: Optional[str]) -> Optional[str]:
        return _normalise_pin(value)


class ProfileLookupRequest(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    pin: Optional[str] = Field(default=None, max_length=12)

    @field_validator("name")
    @classmethod
    def trim_name(cls, value: str) -> str:
        return value.strip()

    @field_validator("pin")
    @classmethod
    def check_pin(cls, value: Optional[str]) -> Optional[str]:
        return _normalise_pin(value)


class ProfileResource(BaseModel):
    id: int
    name: str
    birth_year: Optional[int] = None
    has_pin: bool
    created_at: datetime


class ProfileSummary(ProfileResource):
    answer_count: int

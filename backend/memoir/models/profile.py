"""Profile ORM model.

Classes:
    Profile: Identity scope owning every recorded answer.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import Column, Text
from sqlmodel import Field, SQLModel

from memoir.utils.clock import utc_now


class Profile(SQLModel, table=True):
    __tablename__ = "profiles"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(default="Me", sa_column=Column(Text, nullable=False, unique=True))
    birth_year: Optional[int] = None
    pin: Optional[str] = Field(default=None, sa_column=Column(Text))
    created_at: datetime = Field(default_factory=utc_now)

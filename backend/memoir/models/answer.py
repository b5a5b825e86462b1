"""Recorded answer ORM model.

Classes:
    Answer: One question/answer pair recorded by a profile.

Functions:
    set_updated_at(_, __, target): SQLAlchemy event hook that maintains the `updated_at` timestamp.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import Column, Text, event
from sqlmodel import Field, SQLModel

from memoir.utils.clock import utc_now


class Answer(SQLModel, table=True):
    __tablename__ = "answers"

    id: Optional[int] = Field(default=None, primary_key=True)
    profile_id: int = Field(foreign_key="profiles.id", index=True)
    question: str = Field(sa_column=Column(Text, nullable=False))
    answer_text: str = Field(sa_column=Column(Text, nullable=False))
    created_at: datetime = Field(default_factory=utc_now, index=True)
    updated_at: datetime = Field(default_factory=utc_now)


@event.listens_for(Answer, "before_update", propagate=True)
def set_updated_at(_, __, target):
    target.updated_at = utc_now()

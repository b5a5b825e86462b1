"""Answer embedding persistence model.

Classes:
    AnswerEmbedding: Stores the vector derived from an answer plus the text snapshot it was computed from.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import Column, ForeignKey, Integer, LargeBinary, Text
from sqlmodel import Field, SQLModel

from memoir.utils.clock import utc_now


class AnswerEmbedding(SQLModel, table=True):
    __tablename__ = "answer_embeddings"

    answer_id: int = Field(
        sa_column=Column(
            Integer,
            ForeignKey("answers.id", ondelete="CASCADE"),
            primary_key=True,
        )
    )
    content: str = Field(sa_column=Column(Text, nullable=False))
    vector: bytes = Field(sa_column=Column(LargeBinary, nullable=False))
    dim: int
    model: Optional[str] = Field(default=None, sa_column=Column(Text))
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

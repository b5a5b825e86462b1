"""Pydantic schemas for recording, editing, listing, and exporting answers.

Classes:
    AnswerSaveRequest, AnswerUpdateRequest: Inbound payloads for writes.
    EmbeddingStatus, AnswerSavedResponse, AnswerUpdatedResponse: Write results with the embedding outcome reported separately.
    AnswerResource, AnswerListResponse, AnswerCountResponse: Read payloads.
    ExportFormat, ExportRow: Export configuration and row shape.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator


class AnswerSaveRequest(BaseModel):
    question: str = Field(min_length=1, max_length=2000)
    text: str = Field(min_length=1, max_length=20000)

    @field_validator("question", "text")
    @classmethod
    def require_content(cls, value: str) -> str:
        text = value.strip()
        if not text:
            raise ValueError("must not be blank")
        return text


class AnswerUpdateRequest(BaseModel):
    text: str = Field(min_length=1, max_length=20000)

    @field_validator("text")
    @classmethod
    def require_content(cls, value: str) -> str:
        text = value.strip()
        if not text:
            raise ValueError("must not be blank")
        return text


class EmbeddingStatus(BaseModel):
    status: Literal["indexed", "skipped", "failed"]
    detail: Optional[str] = None


class AnswerSavedResponse(BaseModel):
    id: int
    created_at: datetime
    embedding: EmbeddingStatus


class AnswerUpdatedResponse(BaseModel):
    ok: bool = True
    id: int
    updated_at: datetime
    embedding: EmbeddingStatus


class AnswerDeletedResponse(BaseModel):
    ok: bool = True
    id: int


class AnswerResource(BaseModel):
    id: int
    profile_id: int
    question: str
    text: str
    created_at: datetime
    updated_at: Optional[datetime] = None


class AnswerListResponse(BaseModel):
    profile_id: int
    count: int
    answers: list[AnswerResource]


class AnswerCountResponse(BaseModel):
    profile_id: int
    count: int


class ExportFormat(str, Enum):
    JSON = "json"
    CSV = "csv"


class ExportRow(BaseModel):
    id: int
    question: str
    answer_text: str
    created_at: str
    updated_at: Optional[str] = None

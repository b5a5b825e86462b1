"""Pydantic schemas for the chat endpoint.

Classes:
    ToneSettings: Formality, detail, and humor sliders steering the reply style.
    ChatRequest: Inbound question plus tone.
    Citation, ChatResponse: Composed reply with the excerpts it was grounded on.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator


class ToneSettings(BaseModel):
    formality: float = Field(default=0.5, ge=0.0, le=1.0)
    detail: float = Field(default=0.5, ge=0.0, le=1.0)
    humor: float = Field(default=0.5, ge=0.0, le=1.0)


class ChatRequest(BaseModel):
    message: str = Field(min_length=1, max_length=4000)
    tone: ToneSettings = Field(default_factory=ToneSettings)

    @field_validator("message")
    @classmethod
    def trim_message(cls, value: str) -> str:
        text = value.strip()
        if not text:
            raise ValueError("must not be blank")
        return text


class Citation(BaseModel):
    rank: int
    answer_id: int
    question: str
    score: Optional[float] = None


class ChatResponse(BaseModel):
    answer: str
    mode: Literal["grounded", "fallback"]
    citations: list[Citation] = Field(default_factory=list)

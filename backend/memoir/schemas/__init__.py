"""Convenience exports for API schemas.

Re-exports the pydantic models used across the backend so consumers can import from one module.
"""

from .answer import (
    AnswerCountResponse,
    AnswerDeletedResponse,
    AnswerListResponse,
    AnswerResource,
    AnswerSavedResponse,
    AnswerSaveRequest,
    AnswerUpdatedResponse,
    AnswerUpdateRequest,
    EmbeddingStatus,
    ExportFormat,
    ExportRow,
)
from .chat import ChatRequest, ChatResponse, Citation, ToneSettings
from .profile import ProfileCreateRequest, ProfileLookupRequest, ProfileResource, ProfileSummary
from .reindex import ReindexResponse

__all__ = [
    "AnswerSaveRequest",
    "AnswerSavedResponse",
    "AnswerUpdateRequest",
    "AnswerUpdatedResponse",
    "AnswerDeletedResponse",
    "AnswerResource",
    "AnswerListResponse",
    "AnswerCountResponse",
    "EmbeddingStatus",
    "ExportFormat",
    "ExportRow",
    "ChatRequest",
    "ChatResponse",
    "Citation",
    "ToneSettings",
    "ProfileCreateRequest",
    "ProfileLookupRequest",
    "ProfileResource",
    "ProfileSummary",
    "ReindexResponse",
]

"""Answer endpoints: save, edit, delete, list, count, and export.

Endpoints:
    save_answer(payload, ...): Persist an answer and report its embedding status.
    list_answers(limit, ...): Most recent answers first.
    count_answers(...): Number of answers recorded by the caller.
    update_answer(answer_id, payload, ...): Replace the answer text (owner only).
    delete_answer(answer_id, ...): Remove an answer and its embedding (owner only).
    export_answers(format, ...): Oldest-first dump as JSON or CSV.

Helpers:
    _to_answer_resource(answer): Convert an Answer ORM instance into its response schema.
    _render_export(...): Serialise export rows for the requested format.
"""

from __future__ import annotations

import csv
import io
import json
from datetime import datetime
from typing import Optional, Sequence

from fastapi import APIRouter, Depends, Query, Response
from sqlmodel.ext.asyncio.session import AsyncSession

from memoir.api.deps import get_openai_service, get_profile_id
from memoir.db.session import get_session
from memoir.models import Answer
from memoir.schemas import (
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
from memoir.services.answers import AnswerService
from memoir.services.openai_client import OpenAIService

router = APIRouter(tags=["answers"])

_EXPORT_FIELDS = ["id", "question", "answer_text", "created_at", "updated_at"]


@router.post("/save-answer", response_model=AnswerSavedResponse)
async def save_answer(
    payload: AnswerSaveRequest,
    profile_id: int = Depends(get_profile_id),
    session: AsyncSession = Depends(get_session),
    openai_service: OpenAIService = Depends(get_openai_service),
) -> AnswerSavedResponse:
    service = AnswerService(openai_service=openai_service)
    saved = await service.save(session, profile_id=profile_id, question=payload.question, text=payload.text)
    return AnswerSavedResponse(
        id=saved.answer.id,
        created_at=saved.answer.created_at,
        embedding=EmbeddingStatus(status=saved.embedding.status, detail=saved.embedding.detail),
    )


@router.get("/answers", response_model=AnswerListResponse)
async def list_answers(
    limit: Optional[int] = Query(default=None, ge=1),
    profile_id: int = Depends(get_profile_id),
    session: AsyncSession = Depends(get_session),
    openai_service: OpenAIService = Depends(get_openai_service),
) -> AnswerListResponse:
    service = AnswerService(openai_service=openai_service)
    answers = await service.list_recent(session, profile_id=profile_id, limit=limit)
    return AnswerListResponse(
        profile_id=profile_id,
        count=len(answers),
        answers=[_to_answer_resource(answer) for answer in answers],
    )


@router.get("/answers/count", response_model=AnswerCountResponse)
async def count_answers(
    profile_id: int = Depends(get_profile_id),
    session: AsyncSession = Depends(get_session),
    openai_service: OpenAIService = Depends(get_openai_service),
) -> AnswerCountResponse:
    service = AnswerService(openai_service=openai_service)
    total = await service.count(session, profile_id=profile_id)
    return AnswerCountResponse(profile_id=profile_id, count=total)


@router.put("/answers/{answer_id}", response_model=AnswerUpdatedResponse)
async def update_answer(
    answer_id: int,
    payload: AnswerUpdateRequest,
    profile_id: int = Depends(get_profile_id),
    session: AsyncSession = Depends(get_session),
    openai_service: OpenAIService = Depends(get_openai_service),
) -> AnswerUpdatedResponse:
    service = AnswerService(openai_service=openai_service)
    saved = await service.update(session, profile_id=profile_id, answer_id=answer_id, text=payload.text)
    return AnswerUpdatedResponse(
        id=saved.answer.id,
        updated_at=saved.answer.updated_at,
        embedding=EmbeddingStatus(status=saved.embedding.status, detail=saved.embedding.detail),
    )


@router.delete("/answers/{answer_id}", response_model=AnswerDeletedResponse)
async def delete_answer(
    answer_id: int,
    profile_id: int = Depends(get_profile_id),
    session: AsyncSession = Depends(get_session),
    openai_service: OpenAIService = Depends(get_openai_service),
) -> AnswerDeletedResponse:
    service = AnswerService(openai_service=openai_service)
    await service.delete(session, profile_id=profile_id, answer_id=answer_id)
    return AnswerDeletedResponse(id=answer_id)


@router.get("/export")
async def export_answers(
    export_format: ExportFormat = Query(default=ExportFormat.JSON, alias="format"),
    profile_id: int = Depends(get_profile_id),
    session: AsyncSession = Depends(get_session),
    openai_service: OpenAIService = Depends(get_openai_service),
) -> Response:
    service = AnswerService(openai_service=openai_service)
    answers = await service.export(session, profile_id=profile_id)
    rows = [_to_export_row(answer) for answer in answers]
    content, media_type = _render_export(profile_id, rows, export_format)
    filename = f"profile_{profile_id}_answers.{export_format.value}"
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def _to_answer_resource(answer: Answer) -> AnswerResource:
    return AnswerResource(
        id=answer.id,
        profile_id=answer.profile_id,
        question=answer.question,
        text=answer.answer_text,
        created_at=answer.created_at,
        updated_at=answer.updated_at,
    )


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat(timespec="seconds")


def _to_export_row(answer: Answer) -> ExportRow:
    return ExportRow(
        id=answer.id,
        question=answer.question,
        answer_text=answer.answer_text,
        created_at=_isoformat(answer.created_at) or "",
        updated_at=_isoformat(answer.updated_at),
    )


def _render_export(
    profile_id: int,
    rows: Sequence[ExportRow],
    export_format: ExportFormat,
) -> tuple[bytes, str]:
    row_dicts = [row.model_dump() for row in rows]

    if export_format is ExportFormat.JSON:
        payload = {"profile_id": profile_id, "count": len(row_dicts), "answers": row_dicts}
        return json.dumps(payload, ensure_ascii=False).encode("utf-8"), "application/json"

    # csv.writer quotes fields containing the delimiter, quotes, or newlines and doubles embedded quotes
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=_EXPORT_FIELDS, extrasaction="ignore")
    writer.writeheader()
    for row in row_dicts:
        writer.writerow({key: ("" if value is None else value) for key, value in row.items()})
    return buffer.getvalue().encode("utf-8"), "text/csv"

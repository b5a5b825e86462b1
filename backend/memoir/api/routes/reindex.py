"""Embedding backfill endpoint."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel.ext.asyncio.session import AsyncSession

from memoir.api.deps import get_openai_service, get_profile_id
from memoir.db.session import get_session
from memoir.schemas import ReindexResponse
from memoir.services.openai_client import OpenAIService
from memoir.services.reindex import ReindexService

router = APIRouter(tags=["reindex"])


@router.post("/reindex", response_model=ReindexResponse)
async def reindex(
    limit: Optional[int] = Query(default=None, ge=1, le=1000),
    profile_id: int = Depends(get_profile_id),
    session: AsyncSession = Depends(get_session),
    openai_service: OpenAIService = Depends(get_openai_service),
) -> ReindexResponse:
    service = ReindexService(openai_service=openai_service)
    result = await service.reindex(session, profile_id=profile_id, batch_limit=limit)
    return ReindexResponse(indexed=result.indexed, failed=result.failed, has_more=result.has_more)

"""Chat endpoint answering questions from the caller's recorded answers."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from memoir.api.deps import get_openai_service, get_profile_id
from memoir.db.session import get_session
from memoir.schemas import ChatRequest, ChatResponse
from memoir.services.composer import ResponseComposer
from memoir.services.openai_client import OpenAIService

router = APIRouter(tags=["chat"])


@router.post("/chat", response_model=ChatResponse)
async def chat(
    payload: ChatRequest,
    profile_id: int = Depends(get_profile_id),
    session: AsyncSession = Depends(get_session),
    openai_service: OpenAIService = Depends(get_openai_service),
) -> ChatResponse:
    composer = ResponseComposer(openai_service=openai_service)
    reply = await composer.compose(session, profile_id=profile_id, message=payload.message, tone=payload.tone)
    return ChatResponse(answer=reply.answer, mode=reply.mode, citations=reply.citations)

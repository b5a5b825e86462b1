"""Answer store: persistence, ownership checks, and best-effort indexing of recorded answers.

Classes:
    SavedAnswer: Write result pairing the persisted answer with its embedding outcome.
    AnswerService: Saves, edits, deletes, lists, counts, and exports answers for a profile.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import func
from sqlmodel import select

from memoir.core.config import Settings, get_settings
from memoir.core.errors import Forbidden, InvalidInput, NotFound, UnknownProfile
from memoir.models import Answer, AnswerEmbedding, Profile
from memoir.services.indexing import EmbeddingOutcome, index_answer
from memoir.services.openai_client import OpenAIService
from memoir.utils.clock import utc_now

_LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class SavedAnswer:
    answer: Answer
    embedding: EmbeddingOutcome


class AnswerService:
    def __init__(
        self,
        openai_service: OpenAIService | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._openai = openai_service or OpenAIService(settings=self._settings)

    async def save(self, session, *, profile_id: int, question: str, text: str) -> SavedAnswer:
        question = (question or "").strip()
        text = (text or "").strip()
        if not question or not text:
            raise InvalidInput("question and text are required")

        if await session.get(Profile, profile_id) is None:
            raise UnknownProfile(f"Profile {profile_id} does not exist")

        now = utc_now()
        answer = Answer(
            profile_id=profile_id,
            question=question,
            answer_text=text,
            created_at=now,
            updated_at=now,
        )
        session.add(answer)
        await session.commit()
        await session.refresh(answer)
        _LOGGER.info("Saved answer %s", answer.id, extra={"profile_id": profile_id, "answer_id": answer.id})

        # the row is durable before the provider is contacted
        outcome = await index_answer(session, self._openai, answer)
        return SavedAnswer(answer=answer, embedding=outcome)

    async def update(self, session, *, profile_id: int, answer_id: int, text: str) -> SavedAnswer:
        text = (text or "").strip()
        if not text:
            raise InvalidInput("text is required")

        answer = await self._get_owned(session, profile_id=profile_id, answer_id=answer_id)
        answer.answer_text = text
        answer.updated_at = utc_now()
        session.add(answer)
        await session.commit()
        await session.refresh(answer)

        outcome = await index_answer(session, self._openai, answer)
        if not outcome.ok:
            # the previous vector, if any, now describes the old text
            _LOGGER.info(
                "Embedding for answer %s not regenerated (%s)",
                answer.id,
                outcome.status,
                extra={"profile_id": profile_id, "answer_id": answer.id},
            )
        return SavedAnswer(answer=answer, embedding=outcome)

    async def delete(self, session, *, profile_id: int, answer_id: int) -> None:
        answer = await self._get_owned(session, profile_id=profile_id, answer_id=answer_id)
        embedding = await session.get(AnswerEmbedding, answer.id)
        if embedding is not None:
            await session.delete(embedding)
            await session.flush()
        await session.delete(answer)
        await session.commit()
        _LOGGER.info("Deleted answer %s", answer_id, extra={"profile_id": profile_id, "answer_id": answer_id})

    async def list_recent(self, session, *, profile_id: int, limit: int | None = None) -> list[Answer]:
        limit = limit if limit is not None else self._settings.list_default_limit
        limit = max(1, min(limit, self._settings.list_max_limit))
        stmt = (
            select(Answer)
            .where(Answer.profile_id == profile_id)
            .order_by(Answer.created_at.desc(), Answer.id.desc())
            .limit(limit)
        )
        result = await session.exec(stmt)
        return list(result.all())

    async def count(self, session, *, profile_id: int) -> int:
        stmt = select(func.count()).select_from(Answer).where(Answer.profile_id == profile_id)
        result = await session.exec(stmt)
        return int(result.one())

    async def export(self, session, *, profile_id: int) -> list[Answer]:
        stmt = (
            select(Answer)
            .where(Answer.profile_id == profile_id)
            .order_by(Answer.created_at.asc(), Answer.id.asc())
        )
        result = await session.exec(stmt)
        return list(result.all())

    async def _get_owned(self, session, *, profile_id: int, answer_id: int) -> Answer:
        answer = await session.get(Answer, answer_id)
        if answer is None:
            raise NotFound(f"Answer {answer_id} not found")
        if answer.profile_id != profile_id:
            _LOGGER.warning(
                "Profile %s attempted to modify answer %s owned by another profile",
                profile_id,
                answer_id,
                extra={"profile_id": profile_id, "answer_id": answer_id},
            )
            raise Forbidden(f"Answer {answer_id} does not belong to profile {profile_id}")
        return answer

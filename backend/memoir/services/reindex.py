"""Backfill job that embeds answers recorded while the provider was unavailable.

Classes:
    ReindexResult: Counters reported back to the caller.
    ReindexService: Embeds a bounded batch of unindexed answers, tolerating per-record failures.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from memoir.core.config import Settings, get_settings
from memoir.core.errors import ProviderError, ProviderUnavailable
from memoir.models import Answer, AnswerEmbedding
from memoir.services.indexing import upsert_answer_embedding
from memoir.services.openai_client import OpenAIService

_LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class ReindexResult:
    indexed: int
    failed: int
    has_more: bool


class ReindexService:
    def __init__(
        self,
        openai_service: OpenAIService | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._openai = openai_service or OpenAIService(settings=self._settings)

    async def reindex(self, session, *, profile_id: int, batch_limit: int | None = None) -> ReindexResult:
        if not self._openai.is_configured:
            raise ProviderUnavailable("OpenAI client not configured. Set OPENAI_API_KEY.")

        batch_limit = batch_limit if batch_limit is not None else self._settings.reindex_batch_limit
        if batch_limit <= 0:
            return ReindexResult(indexed=0, failed=0, has_more=False)

        stmt = (
            select(Answer)
            .outerjoin(AnswerEmbedding, AnswerEmbedding.answer_id == Answer.id)
            .where(Answer.profile_id == profile_id)
            .where(AnswerEmbedding.answer_id.is_(None))
            .order_by(Answer.created_at.asc(), Answer.id.asc())
            .limit(batch_limit)
        )
        result = await session.exec(stmt)
        # plain values survive the rollback that follows a failed write
        pending = [(answer.id, answer.answer_text) for answer in result.all()]

        indexed = 0
        failed = 0
        for answer_id, answer_text in pending:
            try:
                embedding = await self._openai.embed(answer_text)
                await upsert_answer_embedding(
                    session,
                    answer_id=answer_id,
                    content=answer_text,
                    vector=embedding.values,
                    model=embedding.model,
                )
            except (ProviderUnavailable, ProviderError) as exc:
                failed += 1
                _LOGGER.warning(
                    "Reindex could not embed answer %s: %s",
                    answer_id,
                    exc,
                    extra={"profile_id": profile_id, "answer_id": answer_id},
                )
                continue
            except SQLAlchemyError as exc:
                failed += 1
                _LOGGER.warning(
                    "Reindex could not store embedding for answer %s: %s",
                    answer_id,
                    exc,
                    extra={"profile_id": profile_id, "answer_id": answer_id},
                )
                await session.rollback()
                continue
            indexed += 1

        has_more = len(pending) == batch_limit
        _LOGGER.info(
            "Reindex batch finished: %d indexed, %d failed, more=%s",
            indexed,
            failed,
            has_more,
            extra={"profile_id": profile_id, "indexed": indexed, "failed": failed},
        )
        return ReindexResult(indexed=indexed, failed=failed, has_more=has_more)

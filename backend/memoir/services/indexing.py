"""Embedding attachment for recorded answers.

Classes:
    EmbeddingOutcome: Reports whether a best-effort embedding attempt indexed, skipped, or failed.

Functions:
    upsert_answer_embedding(session, ...): Insert or replace the embedding row for an answer atomically.
    index_answer(session, openai_service, answer): Attempt to embed an answer; provider and storage failures are reported, not raised.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal, Optional, Sequence

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError

from memoir.core.errors import ProviderError, ProviderUnavailable
from memoir.models import Answer, AnswerEmbedding
from memoir.services.openai_client import OpenAIService
from memoir.services.similarity import encode_vector
from memoir.utils.clock import utc_now

_LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class EmbeddingOutcome:
    status: Literal["indexed", "skipped", "failed"]
    detail: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == "indexed"


async def upsert_answer_embedding(
    session,
    *,
    answer_id: int,
    content: str,
    vector: Sequence[float],
    model: Optional[str] = None,
) -> None:
    now = utc_now()
    values = dict(
        answer_id=answer_id,
        content=content,
        vector=encode_vector(vector),
        dim=len(vector),
        model=model,
        created_at=now,
        updated_at=now,
    )
    dialect = session.get_bind().dialect.name
    insert = pg_insert if dialect == "postgresql" else sqlite_insert
    stmt = insert(AnswerEmbedding).values(**values)
    stmt = stmt.on_conflict_do_update(
        index_elements=["answer_id"],
        set_={
            "content": stmt.excluded.content,
            "vector": stmt.excluded.vector,
            "dim": stmt.excluded.dim,
            "model": stmt.excluded.model,
            "updated_at": stmt.excluded.updated_at,
        },
    )
    await session.execute(stmt)
    await session.commit()


async def index_answer(session, openai_service: OpenAIService, answer: Answer) -> EmbeddingOutcome:
    """Embed *answer* and attach the vector; failures are logged and reported, not raised."""

    if not openai_service.is_configured:
        return EmbeddingOutcome(status="skipped", detail="embedding provider not configured")

    try:
        embedding = await openai_service.embed(answer.answer_text)
    except (ProviderUnavailable, ProviderError) as exc:
        _LOGGER.warning(
            "Embedding failed for answer %s: %s",
            answer.id,
            exc,
            extra={"answer_id": answer.id, "profile_id": answer.profile_id},
        )
        return EmbeddingOutcome(status="failed", detail=str(exc))

    try:
        await upsert_answer_embedding(
            session,
            answer_id=answer.id,
            content=answer.answer_text,
            vector=embedding.values,
            model=embedding.model,
        )
    except SQLAlchemyError as exc:
        _LOGGER.warning(
            "Storing embedding failed for answer %s: %s",
            answer.id,
            exc,
            extra={"answer_id": answer.id, "profile_id": answer.profile_id},
        )
        # the answer row is already committed; detach it so the rollback leaves its loaded fields readable
        session.expunge(answer)
        await session.rollback()
        return EmbeddingOutcome(status="failed", detail="embedding could not be stored")
    return EmbeddingOutcome(status="indexed")

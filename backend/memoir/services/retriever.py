"""Semantic retrieval over a profile's embedded answers.

Classes:
    RetrievedExcerpt: One ranked answer with its similarity score.
    Retriever: Scores recent embedded answers against a query vector and keeps the best matches.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from sqlmodel import select

from memoir.core.config import Settings, get_settings
from memoir.models import Answer, AnswerEmbedding
from memoir.services.similarity import cosine_similarity, decode_vector

_LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class RetrievedExcerpt:
    answer: Answer
    score: float
    rank: int = 0


class Retriever:
    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()

    async def retrieve(
        self,
        session,
        *,
        profile_id: int,
        query_vector: Sequence[float],
        pool_size: Optional[int] = None,
        top_k: Optional[int] = None,
        min_score: Optional[float] = None,
    ) -> list[RetrievedExcerpt]:
        pool_size = pool_size if pool_size is not None else self._settings.retrieval_pool_size
        top_k = top_k if top_k is not None else self._settings.retrieval_top_k
        min_score = min_score if min_score is not None else self._settings.retrieval_min_score
        if pool_size <= 0 or top_k <= 0:
            return []

        stmt = (
            select(Answer, AnswerEmbedding)
            .join(AnswerEmbedding, AnswerEmbedding.answer_id == Answer.id)
            .where(Answer.profile_id == profile_id)
            .order_by(Answer.created_at.desc(), Answer.id.desc())
            .limit(pool_size)
            .execution_options(populate_existing=True)
        )
        result = await session.exec(stmt)
        candidates = result.all()

        strict = self._settings.strict_vector_dimensions
        query_dim = len(query_vector)
        scored: list[RetrievedExcerpt] = []
        for answer, embedding in candidates:
            vector = decode_vector(embedding.vector, embedding.dim)
            if vector.shape[0] != query_dim and not strict:
                _LOGGER.warning(
                    "Answer %s embedding has %d dimensions, query has %d; comparing shared prefix",
                    answer.id,
                    vector.shape[0],
                    query_dim,
                    extra={"profile_id": profile_id, "answer_id": answer.id},
                )
            score = cosine_similarity(query_vector, vector, strict=strict)
            scored.append(RetrievedExcerpt(answer=answer, score=score))

        # sorted() is stable, so equal scores keep the most-recent-first fetch order
        ranked = sorted(scored, key=lambda item: item.score, reverse=True)[:top_k]
        kept = [item for item in ranked if item.score > min_score]
        for rank, item in enumerate(kept, start=1):
            item.rank = rank
        return kept

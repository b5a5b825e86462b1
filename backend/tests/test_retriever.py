"""Tests for ranking, thresholding, and scoping in the semantic retriever."""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone

import pytest

from memoir.core.errors import DimensionMismatch
from memoir.models import Answer
from memoir.services.indexing import upsert_answer_embedding
from memoir.services.retriever import Retriever

_QUERY = [1.0, 0.0, 0.0]


def _unit_with_similarity(score: float) -> list[float]:
    return [score, math.sqrt(1.0 - score * score), 0.0]


async def _seed(session, profile_id: int, items, *, start: datetime | None = None) -> list[Answer]:
    """Insert answers oldest first; ``items`` holds (question, vector-or-None) pairs."""

    start = start or datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
    answers = []
    for offset, (question, vector) in enumerate(items):
        answer = Answer(
            profile_id=profile_id,
            question=question,
            answer_text=f"answer to {question}",
            created_at=start + timedelta(minutes=offset),
            updated_at=start + timedelta(minutes=offset),
        )
        session.add(answer)
        await session.commit()
        await session.refresh(answer)
        if vector is not None:
            await upsert_answer_embedding(
                session,
                answer_id=answer.id,
                content=answer.answer_text,
                vector=vector,
            )
        answers.append(answer)
    return answers


@pytest.mark.asyncio
async def test_ranking_keeps_scores_above_threshold_in_order(session, profiles, settings):
    me, _ = profiles
    await _seed(
        session,
        me.id,
        [
            ("strong", _unit_with_similarity(0.9)),
            ("medium", _unit_with_similarity(0.5)),
            ("weak", _unit_with_similarity(0.05)),
        ],
    )

    results = await Retriever(settings).retrieve(
        session, profile_id=me.id, query_vector=_QUERY, top_k=5, min_score=0.1
    )

    assert [item.answer.question for item in results] == ["strong", "medium"]
    assert [item.score for item in results] == pytest.approx([0.9, 0.5], abs=1e-6)
    assert [item.rank for item in results] == [1, 2]


@pytest.mark.asyncio
async def test_retrieval_is_idempotent(session, profiles, settings):
    me, _ = profiles
    await _seed(
        session,
        me.id,
        [
            ("a", [0.3, 0.7, 0.1]),
            ("b", [0.9, 0.1, 0.4]),
            ("c", [0.2, 0.2, 0.9]),
        ],
    )
    retriever = Retriever(settings)

    first = await retriever.retrieve(session, profile_id=me.id, query_vector=_QUERY)
    second = await retriever.retrieve(session, profile_id=me.id, query_vector=_QUERY)

    assert [(item.answer.id, item.score) for item in first] == [(item.answer.id, item.score) for item in second]


@pytest.mark.asyncio
async def test_ties_prefer_most_recent(session, profiles, settings):
    me, _ = profiles
    older, newer = await _seed(session, me.id, [("older", [1.0, 1.0, 0.0]), ("newer", [1.0, 1.0, 0.0])])

    results = await Retriever(settings).retrieve(session, profile_id=me.id, query_vector=[1.0, 1.0, 0.0])

    assert [item.answer.id for item in results] == [newer.id, older.id]


@pytest.mark.asyncio
async def test_answers_without_embedding_and_other_profiles_are_invisible(session, profiles, settings):
    me, other = profiles
    await _seed(session, me.id, [("unindexed", None), ("indexed", [1.0, 0.0, 0.0])])
    await _seed(session, other.id, [("someone else", [1.0, 0.0, 0.0])])

    results = await Retriever(settings).retrieve(session, profile_id=me.id, query_vector=_QUERY)

    assert [item.answer.question for item in results] == ["indexed"]


@pytest.mark.asyncio
async def test_top_k_and_pool_size_bound_results(session, profiles, settings):
    me, _ = profiles
    await _seed(session, me.id, [(f"q{index}", [1.0, 0.1 * index, 0.0]) for index in range(6)])
    retriever = Retriever(settings)

    top_two = await retriever.retrieve(session, profile_id=me.id, query_vector=_QUERY, top_k=2)
    newest_only = await retriever.retrieve(session, profile_id=me.id, query_vector=_QUERY, pool_size=1)

    assert [item.answer.question for item in top_two] == ["q0", "q1"]
    assert [item.answer.question for item in newest_only] == ["q5"]


@pytest.mark.asyncio
async def test_no_match_returns_empty_list(session, profiles, settings):
    me, _ = profiles
    await _seed(session, me.id, [("orthogonal", [0.0, 1.0, 0.0])])

    assert await Retriever(settings).retrieve(session, profile_id=me.id, query_vector=_QUERY) == []


@pytest.mark.asyncio
async def test_strict_mode_rejects_mismatched_dimensions(session, profiles, settings):
    me, _ = profiles
    await _seed(session, me.id, [("three dims", [1.0, 0.0, 0.0])])
    strict = settings.model_copy(update={"strict_vector_dimensions": True})

    with pytest.raises(DimensionMismatch):
        await Retriever(strict).retrieve(session, profile_id=me.id, query_vector=[1.0, 0.0])

    lenient = await Retriever(settings).retrieve(session, profile_id=me.id, query_vector=[1.0, 0.0])
    assert [item.answer.question for item in lenient] == ["three dims"]

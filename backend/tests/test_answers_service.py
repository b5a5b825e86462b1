"""Tests for the answer store: writes, ownership, ordering, and best-effort indexing."""

from __future__ import annotations

from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError

from memoir.core.errors import Forbidden, InvalidInput, NotFound, UnknownProfile
from memoir.models import Answer, AnswerEmbedding, Profile
from memoir.services import indexing
from memoir.services.answers import AnswerService
from memoir.services.similarity import decode_vector
from memoir.utils.clock import utc_now


@pytest.mark.asyncio
async def test_save_then_list_is_scoped_to_profile(session, profiles, fake_openai, settings):
    me, other = profiles
    service = AnswerService(openai_service=fake_openai, settings=settings)

    saved = await service.save(session, profile_id=me.id, question="Favorite food?", text="Lasagna, always.")

    assert saved.answer.id is not None
    assert saved.answer.created_at is not None
    assert saved.embedding.status == "indexed"

    mine = await service.list_recent(session, profile_id=me.id, limit=10)
    theirs = await service.list_recent(session, profile_id=other.id, limit=10)
    assert [answer.id for answer in mine] == [saved.answer.id]
    assert theirs == []


@pytest.mark.asyncio
async def test_save_stores_embedding_snapshot(session, profiles, fake_openai, settings):
    me, _ = profiles
    fake_openai.vectors["Lasagna, always."] = [0.9, 0.1, 0.0]
    service = AnswerService(openai_service=fake_openai, settings=settings)

    saved = await service.save(session, profile_id=me.id, question="Favorite food?", text="Lasagna, always.")

    embedding = await session.get(AnswerEmbedding, saved.answer.id, populate_existing=True)
    assert embedding is not None
    assert embedding.content == "Lasagna, always."
    assert embedding.dim == 3
    assert decode_vector(embedding.vector, embedding.dim).tolist() == pytest.approx([0.9, 0.1, 0.0])


@pytest.mark.asyncio
async def test_save_rejects_unknown_profile(session, profiles, fake_openai, settings):
    service = AnswerService(openai_service=fake_openai, settings=settings)
    with pytest.raises(UnknownProfile):
        await service.save(session, profile_id=999, question="Favorite food?", text="Lasagna, always.")


@pytest.mark.asyncio
async def test_save_requires_question_and_text(session, profiles, fake_openai, settings):
    me, _ = profiles
    service = AnswerService(openai_service=fake_openai, settings=settings)
    with pytest.raises(InvalidInput):
        await service.save(session, profile_id=me.id, question="  ", text="Lasagna, always.")


@pytest.mark.asyncio
async def test_save_succeeds_when_embedding_fails(session, profiles, fake_openai, settings):
    me, _ = profiles
    fake_openai.fail_on.add("poison")
    service = AnswerService(openai_service=fake_openai, settings=settings)

    saved = await service.save(session, profile_id=me.id, question="Q?", text="poison pill")

    assert saved.embedding.status == "failed"
    assert saved.embedding.detail
    assert await session.get(Answer, saved.answer.id) is not None
    assert await session.get(AnswerEmbedding, saved.answer.id) is None


@pytest.mark.asyncio
async def test_save_skips_embedding_without_provider(session, profiles, fake_openai, settings):
    me, _ = profiles
    fake_openai.configured = False
    service = AnswerService(openai_service=fake_openai, settings=settings)

    saved = await service.save(session, profile_id=me.id, question="Q?", text="Unindexed words")

    assert saved.embedding.status == "skipped"
    assert fake_openai.embed_calls == []


@pytest.mark.asyncio
async def test_update_replaces_text_and_regenerates_embedding(session, profiles, fake_openai, settings):
    me, _ = profiles
    service = AnswerService(openai_service=fake_openai, settings=settings)
    saved = await service.save(session, profile_id=me.id, question="Favorite food?", text="Pizza")
    first_updated_at = saved.answer.updated_at

    updated = await service.update(session, profile_id=me.id, answer_id=saved.answer.id, text="Lasagna, always.")

    assert updated.answer.answer_text == "Lasagna, always."
    assert updated.answer.updated_at >= first_updated_at
    assert updated.embedding.status == "indexed"
    embedding = await session.get(AnswerEmbedding, saved.answer.id, populate_existing=True)
    assert embedding.content == "Lasagna, always."


@pytest.mark.asyncio
async def test_update_by_other_profile_is_forbidden_and_changes_nothing(session, profiles, fake_openai, settings):
    me, other = profiles
    service = AnswerService(openai_service=fake_openai, settings=settings)
    saved = await service.save(session, profile_id=me.id, question="Favorite food?", text="Lasagna, always.")

    with pytest.raises(Forbidden):
        await service.update(session, profile_id=other.id, answer_id=saved.answer.id, text="Hacked")
    with pytest.raises(Forbidden):
        await service.delete(session, profile_id=other.id, answer_id=saved.answer.id)

    stored = await session.get(Answer, saved.answer.id, populate_existing=True)
    assert stored is not None
    assert stored.answer_text == "Lasagna, always."


@pytest.mark.asyncio
async def test_update_and_delete_missing_answer(session, profiles, fake_openai, settings):
    me, _ = profiles
    service = AnswerService(openai_service=fake_openai, settings=settings)
    with pytest.raises(NotFound):
        await service.update(session, profile_id=me.id, answer_id=4242, text="anything")
    with pytest.raises(NotFound):
        await service.delete(session, profile_id=me.id, answer_id=4242)


@pytest.mark.asyncio
async def test_delete_removes_answer_and_embedding(session, profiles, fake_openai, settings):
    me, _ = profiles
    service = AnswerService(openai_service=fake_openai, settings=settings)
    saved = await service.save(session, profile_id=me.id, question="Favorite food?", text="Lasagna, always.")
    answer_id = saved.answer.id

    await service.delete(session, profile_id=me.id, answer_id=answer_id)

    assert await session.get(Answer, answer_id) is None
    assert await session.get(AnswerEmbedding, answer_id) is None
    assert await service.count(session, profile_id=me.id) == 0


@pytest.mark.asyncio
async def test_list_is_newest_first_and_export_oldest_first(session, profiles, fake_openai, settings):
    me, other = profiles
    service = AnswerService(openai_service=fake_openai, settings=settings)
    ids = []
    for index in range(4):
        saved = await service.save(session, profile_id=me.id, question=f"Q{index}?", text=f"Answer {index}")
        ids.append(saved.answer.id)
    await service.save(session, profile_id=other.id, question="Elsewhere?", text="Not mine")

    recent = await service.list_recent(session, profile_id=me.id, limit=3)
    exported = await service.export(session, profile_id=me.id)

    assert [answer.id for answer in recent] == list(reversed(ids))[:3]
    assert [answer.id for answer in exported] == ids
    assert await service.count(session, profile_id=me.id) == 4
    assert await service.count(session, profile_id=other.id) == 1


def test_new_records_carry_aware_utc_timestamps():
    profile = Profile(name="Nana")
    answer = Answer(profile_id=1, question="Q?", answer_text="A.")

    for value in (profile.created_at, answer.created_at, answer.updated_at, utc_now()):
        assert value.tzinfo is not None
        assert value.utcoffset() == timedelta(0)


@pytest.mark.asyncio
async def test_storage_failure_while_indexing_keeps_saved_answer(session, profiles, fake_openai, settings, monkeypatch):
    me, _ = profiles
    profile_id = me.id

    async def locked_upsert(*args, **kwargs):
        raise OperationalError("INSERT INTO answer_embeddings", {}, Exception("database is locked"))

    monkeypatch.setattr(indexing, "upsert_answer_embedding", locked_upsert)
    service = AnswerService(openai_service=fake_openai, settings=settings)

    saved = await service.save(session, profile_id=profile_id, question="Favorite food?", text="Lasagna, always.")

    assert saved.embedding.status == "failed"
    assert saved.answer.id is not None
    assert saved.answer.answer_text == "Lasagna, always."
    stored = await session.get(Answer, saved.answer.id)
    assert stored is not None
    assert await session.get(AnswerEmbedding, saved.answer.id) is None
    assert await service.count(session, profile_id=profile_id) == 1

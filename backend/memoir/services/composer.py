"""Grounded reply composition with a lexical fallback.

The composer first tries the grounded path: embed the question, retrieve the
closest recorded answers, and ask the chat model to answer in the speaker's
voice from those excerpts only. When the provider is not configured, retrieval
comes back empty, or anything on that path raises, it switches to a lexical
search over the most recent answers. Both paths end the reply with the
configured disclosure sentence.

Classes:
    ComposedReply: Reply text, the path that produced it, and its citations.
    ResponseComposer: Runs the grounded path and falls back when needed.

Functions:
    build_system_prompt(tone, disclosure): Instructions handed to the chat model.
    format_excerpts(excerpts): Render ranked excerpts as indexed context blocks.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Literal, Sequence

from sqlalchemy import Text, func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from memoir.core.config import Settings, get_settings
from memoir.core.errors import StorageError
from memoir.models import Answer
from memoir.schemas import Citation, ToneSettings
from memoir.services.openai_client import OpenAIService
from memoir.services.retriever import RetrievedExcerpt, Retriever
from memoir.utils.text import first_search_term

_LOGGER = logging.getLogger(__name__)

UNSURE_REPLY = "I'm not sure I captured this in my recordings, so I'd rather not guess."


@dataclass(slots=True)
class ComposedReply:
    answer: str
    mode: Literal["grounded", "fallback"]
    citations: list[Citation] = field(default_factory=list)


def _describe_slider(value: float, low: str, mid: str, high: str) -> str:
    if value < 0.34:
        return low
    if value > 0.66:
        return high
    return mid


def build_system_prompt(tone: ToneSettings, disclosure: str) -> str:
    formality = _describe_slider(
        tone.formality,
        "casual and conversational",
        "natural, neither stiff nor sloppy",
        "formal and carefully worded",
    )
    detail = _describe_slider(
        tone.detail,
        "brief and to the point",
        "moderately detailed",
        "rich with the stories and specifics found in the excerpts",
    )
    humor = _describe_slider(
        tone.humor,
        "earnest, without jokes",
        "warm with a light touch of humor",
        "playful and humorous where it fits",
    )
    return "\n".join(
        [
            "You are speaking as the person who recorded the excerpts below, in the first person.",
            "Answer ONLY from the supplied excerpts. Never invent facts, names, dates, or events.",
            "If the excerpts do not contain enough to answer, say plainly that you are not sure or do not remember.",
            f"Tone: formality {tone.formality:.2f} ({formality}); "
            f"detail {tone.detail:.2f} ({detail}); "
            f"humor {tone.humor:.2f} ({humor}). Tone changes style only, never the facts.",
            f'End every reply with this sentence, verbatim, on its own line: "{disclosure}"',
        ]
    )


def format_excerpts(excerpts: Sequence[RetrievedExcerpt]) -> str:
    blocks = []
    for item in excerpts:
        blocks.append(
            f"[{item.rank}] (score {item.score:.3f})\n"
            f"Q: {item.answer.question}\n"
            f"A: {item.answer.answer_text}"
        )
    return "\n\n".join(blocks)


def _substring_match(session, term: str):
    """Case-insensitive containment of *term* in the question or the answer text."""

    if session.get_bind().dialect.name == "sqlite":
        # casefold() is registered on every connection by memoir.db.session
        needle = term.casefold()
        return or_(
            func.casefold(Answer.answer_text, type_=Text).contains(needle, autoescape=True),
            func.casefold(Answer.question, type_=Text).contains(needle, autoescape=True),
        )
    return or_(
        Answer.answer_text.icontains(term, autoescape=True),
        Answer.question.icontains(term, autoescape=True),
    )


class ResponseComposer:
    def __init__(
        self,
        openai_service: OpenAIService | None = None,
        retriever: Retriever | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._openai = openai_service or OpenAIService(settings=self._settings)
        self._retriever = retriever or Retriever(self._settings)

    @property
    def disclosure(self) -> str:
        return self._settings.disclosure_text

    async def compose(
        self,
        session,
        *,
        profile_id: int,
        message: str,
        tone: ToneSettings | None = None,
    ) -> ComposedReply:
        tone = tone or ToneSettings()
        if self._openai.is_configured:
            try:
                reply = await self._compose_grounded(session, profile_id=profile_id, message=message, tone=tone)
            except Exception as exc:
                _LOGGER.warning(
                    "Grounded reply failed for profile %s; using lexical fallback",
                    profile_id,
                    exc_info=True,
                    extra={"profile_id": profile_id},
                )
                if isinstance(exc, SQLAlchemyError):
                    await session.rollback()
                reply = None
            if reply is not None:
                return reply
        return await self._compose_fallback(session, profile_id=profile_id, message=message)

    async def _compose_grounded(
        self,
        session,
        *,
        profile_id: int,
        message: str,
        tone: ToneSettings,
    ) -> ComposedReply | None:
        query = await self._openai.embed(message)
        excerpts = await self._retriever.retrieve(session, profile_id=profile_id, query_vector=query.values)
        if not excerpts:
            _LOGGER.info("No excerpts cleared the threshold", extra={"profile_id": profile_id})
            return None

        user_prompt = (
            f"Question: {message}\n\n"
            f"Excerpts from my recorded answers:\n{format_excerpts(excerpts)}"
        )
        text = await self._openai.complete(
            system_prompt=build_system_prompt(tone, self.disclosure),
            user_prompt=user_prompt,
            temperature=self._settings.chat_temperature,
            max_tokens=self._settings.chat_max_tokens,
        )
        text = (text or "").strip()
        if not text:
            text = UNSURE_REPLY

        citations = [
            Citation(
                rank=item.rank,
                answer_id=item.answer.id,
                question=item.answer.question,
                score=round(item.score, 4),
            )
            for item in excerpts
        ]
        _LOGGER.info(
            "Composed grounded reply from %d excerpts",
            len(excerpts),
            extra={"profile_id": profile_id, "mode": "grounded"},
        )
        return ComposedReply(answer=self._with_disclosure(text), mode="grounded", citations=citations)

    async def _compose_fallback(self, session, *, profile_id: int, message: str) -> ComposedReply:
        term = first_search_term(message)
        try:
            stmt = (
                select(Answer)
                .where(Answer.profile_id == profile_id)
                .where(_substring_match(session, term))
                .order_by(Answer.created_at.desc(), Answer.id.desc())
                .limit(self._settings.fallback_match_limit)
            )
            result = await session.exec(stmt)
            matches = list(result.all())
        except SQLAlchemyError as exc:
            _LOGGER.error("Lexical fallback query failed", exc_info=True, extra={"profile_id": profile_id})
            raise StorageError("db_error") from exc

        if matches:
            snippets = "\n".join(f"• Q: {row.question}\n  A: {row.answer_text}" for row in matches)
            body = f'You asked: "{message}".\nHere are bits I found from your saved words:\n{snippets}'
        else:
            body = f'You asked: "{message}". I don\'t see anything related yet. Add more answers!'

        citations = [
            Citation(rank=rank, answer_id=row.id, question=row.question)
            for rank, row in enumerate(matches, start=1)
        ]
        return ComposedReply(
            answer=f"{body}\n\n{self.disclosure}",
            mode="fallback",
            citations=citations,
        )

    def _with_disclosure(self, text: str) -> str:
        disclosure = self.disclosure
        stripped = text.rstrip()
        if stripped.endswith(disclosure):
            return stripped
        # the model sometimes wraps the sentence in quotes
        quoted = f'"{disclosure}"'
        if stripped.endswith(quoted):
            stripped = stripped[: -len(quoted)].rstrip()
        return f"{stripped}\n\n{disclosure}"

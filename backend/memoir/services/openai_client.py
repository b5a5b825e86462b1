"""Async OpenAI client wrapper used for embeddings and grounded chat completions.

Classes:
    EmbeddingVector: Vector returned for one input text plus the model that produced it.
    OpenAIService: Embeds text and requests chat completions with retry semantics.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from openai import APIConnectionError, AsyncOpenAI, InternalServerError, RateLimitError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from memoir.core.config import Settings, get_settings
from memoir.core.errors import ProviderError, ProviderUnavailable
from memoir.utils.text import prepare_embedding_input

_LOGGER = logging.getLogger(__name__)

_NOT_CONFIGURED = "OpenAI client not configured. Set OPENAI_API_KEY."


@dataclass(slots=True)
class EmbeddingVector:
    values: list[float]
    model: str

    @property
    def dim(self) -> int:
        return len(self.values)


class OpenAIService:
    def __init__(
        self,
        client: Optional[AsyncOpenAI] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        settings = settings or get_settings()
        api_key = settings.openai_api_key.get_secret_value() if settings.openai_api_key else None
        if client is not None:
            self._client = client
        elif api_key:
            self._client = AsyncOpenAI(api_key=api_key, timeout=settings.openai_timeout_seconds, max_retries=0)
        else:
            self._client = None
        self._settings = settings

    @property
    def is_configured(self) -> bool:
        return self._client is not None

    async def embed(self, text: str, *, model: Optional[str] = None) -> EmbeddingVector:
        if self._client is None:
            raise ProviderUnavailable(_NOT_CONFIGURED)

        document = prepare_embedding_input(text, self._settings.embedding_max_chars)
        if not document:
            raise ProviderError("Cannot embed empty text")
        if len(document) < len(text.strip()):
            _LOGGER.debug("Embedding input clipped to %d characters", len(document))

        chosen_model = model or self._settings.openai_embedding_model
        payload: dict[str, Any] = dict(model=chosen_model, input=document)
        if self._settings.embedding_dimensions:
            payload["dimensions"] = self._settings.embedding_dimensions

        try:
            response = await _retry_embeddings(self._client, payload)
        except Exception as exc:
            raise ProviderError(f"Embedding request failed: {exc}") from exc

        data = getattr(response, "data", None) or []
        if not data:
            raise ProviderError("Embedding response contained no vectors")
        values = [float(value) for value in (getattr(data[0], "embedding", None) or [])]
        if not values:
            raise ProviderError("Embedding response contained an empty vector")

        expected = self._settings.embedding_dimensions
        if expected and len(values) != expected:
            raise ProviderError(f"Embedding has {len(values)} dimensions, expected {expected}")

        return EmbeddingVector(values=values, model=getattr(response, "model", None) or chosen_model)

    async def complete(
        self,
        *,
        system_prompt: str,
        user_prompt: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        model: Optional[str] = None,
    ) -> str:
        if self._client is None:
            raise ProviderUnavailable(_NOT_CONFIGURED)

        payload: dict[str, Any] = dict(
            model=model or self._settings.openai_chat_model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=temperature if temperature is not None else self._settings.chat_temperature,
            max_tokens=max_tokens or self._settings.chat_max_tokens,
            n=1,
        )

        try:
            response = await _retry_chat(self._client, payload)
        except Exception as exc:
            raise ProviderError(f"Chat completion failed: {exc}") from exc

        choices = getattr(response, "choices", None) or []
        if not choices:
            return ""
        content = getattr(choices[0].message, "content", "") or ""
        return content.strip()


# APITimeoutError subclasses APIConnectionError; auth and request errors are not retried
_TRANSIENT_ERRORS = (RateLimitError, APIConnectionError, InternalServerError)


@retry(
    wait=wait_exponential(multiplier=1, min=1, max=20),
    stop=stop_after_attempt(3),
    retry=retry_if_exception_type(_TRANSIENT_ERRORS),
    reraise=True,
)
async def _retry_chat(client: AsyncOpenAI, payload: dict[str, Any]):
    return await client.chat.completions.create(**payload)


@retry(
    wait=wait_exponential(multiplier=1, min=1, max=20),
    stop=stop_after_attempt(3),
    retry=retry_if_exception_type(_TRANSIENT_ERRORS),
    reraise=True,
)
async def _retry_embeddings(client: AsyncOpenAI, payload: dict[str, Any]):
    return await client.embeddings.create(**payload)

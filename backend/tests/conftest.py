import zlib
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from memoir.api.deps import get_openai_service
from memoir.core.config import DEFAULT_DISCLOSURE, Settings
from memoir.core.errors import ProviderError
from memoir.db.session import configure_sqlite_connection, get_session
from memoir.main import app
from memoir.models import Profile
from memoir.services.openai_client import EmbeddingVector

DISCLOSURE = DEFAULT_DISCLOSURE
_DIM = 8


class FakeOpenAIService:
    """Deterministic stand-in for the OpenAI adapter.

    Texts listed in ``vectors`` get that exact vector; anything else is hashed
    word by word into an 8-dimensional bag of words. Texts containing any entry
    of ``fail_on`` raise ``ProviderError``.
    """

    def __init__(self, *, configured: bool = True, reply: str | None = None) -> None:
        self.configured = configured
        self.reply = reply if reply is not None else f"Lasagna, always. My mother's recipe.\n\n{DISCLOSURE}"
        self.vectors: dict[str, list[float]] = {}
        self.fail_on: set[str] = set()
        self.complete_error: Exception | None = None
        self.embed_calls: list[str] = []
        self.complete_calls: list[dict] = []

    @property
    def is_configured(self) -> bool:
        return self.configured

    async def embed(self, text: str, **_: object) -> EmbeddingVector:
        self.embed_calls.append(text)
        if any(marker in text for marker in self.fail_on):
            raise ProviderError("forced embedding failure")
        if text in self.vectors:
            return EmbeddingVector(values=list(self.vectors[text]), model="fake-embedding")
        vector = [0.0] * _DIM
        for word in text.lower().split():
            token = word.strip(".,!?'\"")
            if token:
                vector[zlib.crc32(token.encode("utf-8")) % _DIM] += 1.0
        return EmbeddingVector(values=vector, model="fake-embedding")

    async def complete(self, **kwargs: object) -> str:
        self.complete_calls.append(dict(kwargs))
        if self.complete_error is not None:
            raise self.complete_error
        return self.reply


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        _env_file=None,
        openai_api_key=None,
        disclosure_text=DISCLOSURE,
    )


@pytest.fixture()
def fake_openai() -> FakeOpenAIService:
    return FakeOpenAIService()


@pytest_asyncio.fixture()
async def session() -> AsyncGenerator[AsyncSession, None]:
    engine: AsyncEngine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    configure_sqlite_connection(engine)
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    async_session = AsyncSession(engine, expire_on_commit=False)
    try:
        yield async_session
    finally:
        await async_session.close()
        await engine.dispose()


@pytest_asyncio.fixture()
async def profiles(session: AsyncSession) -> tuple[Profile, Profile]:
    first = Profile(name="Me")
    second = Profile(name="Grandpa", pin="1234")
    session.add_all([first, second])
    await session.commit()
    await session.refresh(first)
    await session.refresh(second)
    return first, second


@pytest_asyncio.fixture()
async def client(session: AsyncSession, fake_openai: FakeOpenAIService) -> AsyncGenerator[AsyncClient, None]:
    async def _override_session():
        yield session

    app.dependency_overrides[get_session] = _override_session
    app.dependency_overrides[get_openai_service] = lambda: fake_openai
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as test_client:
        yield test_client
    app.dependency_overrides.clear()

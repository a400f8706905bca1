import asyncio
import os
import tempfile

import pytest
import pytest_asyncio

# Point the app's module-level engine at a throwaway file before anything imports it
_tmpdir = tempfile.mkdtemp(prefix="chat_relay_tests_")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_tmpdir}/app.db")
os.environ.setdefault("METRICS_ENABLED", "false")

from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

import chat_relay.models.database as database_module
from chat_relay.api import deps
from chat_relay.main import app
from chat_relay.models.database import build_engine, init_db
from chat_relay.services.connection.registry import ConnectionRegistry
from chat_relay.services.core.repositories import PreferenceStore, MessageLog

from tests.helpers import FakeLanguageService, FakeTranscriptionService


def _make_engine(tmp_path):
    # NullPool: every checkout opens a fresh aiosqlite connection on the current loop
    return build_engine(f"sqlite+aiosqlite:///{tmp_path}/relay.db", poolclass=NullPool)


# Rebind the app engine (used by the lifespan) to a NullPool engine so no pooled
# connection outlives the event loop of the TestClient that opened it
database_module.engine = build_engine(os.environ["DATABASE_URL"], poolclass=NullPool)
database_module.AsyncSessionLocal = async_sessionmaker(
    database_module.engine, class_=AsyncSession, expire_on_commit=False
)


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    """Async session factory bound to a fresh SQLite database."""
    engine = _make_engine(tmp_path)
    await init_db(engine)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def preferences(session_factory):
    return PreferenceStore(session_factory, default_language="English")


@pytest.fixture
def message_log(session_factory):
    return MessageLog(session_factory)


@pytest.fixture
def registry():
    return ConnectionRegistry()


@pytest.fixture
def language():
    return FakeLanguageService(
        detections={"Bonjour": "French", "Hello": "English", "Hola": "Spanish"},
        translations={"Bonjour": "Hello", "Hola": "Hello"},
    )


@pytest.fixture
def transcription():
    return FakeTranscriptionService(transcript="Bonjour")


@pytest.fixture
def api_session_factory(tmp_path):
    """Session factory for API tests (tables created outside the TestClient loop)."""
    engine = _make_engine(tmp_path)
    asyncio.run(init_db(engine))
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    asyncio.run(engine.dispose())


@pytest.fixture
def client(api_session_factory, registry, language, transcription):
    """TestClient with fake leaf services, a private registry and a private database."""
    app.dependency_overrides[deps.get_session_factory] = lambda: api_session_factory
    app.dependency_overrides[deps.get_connection_registry] = lambda: registry
    app.dependency_overrides[deps.get_language] = lambda: language
    app.dependency_overrides[deps.get_transcription] = lambda: transcription
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()

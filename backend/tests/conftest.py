import asyncio
import os
from collections.abc import Generator

import pytest

# Tests run against throwaway SQLite engines; keep the app engine off Postgres and Sentry quiet.
os.environ["SENTRY_DSN"] = ""
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("CREATE_SCHEMA_ON_STARTUP", "false")

from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from streampromo.core import metrics
from streampromo.core.codes import CodeGenerator
from streampromo.core.dependencies import get_code_generator, get_store
from streampromo.main import app
from streampromo.services.store import EntityStore


@pytest.fixture(scope="module")
def anyio_backend() -> str:
    return "asyncio"


def make_store(url: str = "sqlite+aiosqlite:///:memory:", **engine_kwargs) -> tuple[EntityStore, object]:
    engine = create_async_engine(url, future=True, **engine_kwargs)
    SessionLocal = async_sessionmaker(engine, expire_on_commit=False, autoflush=False)
    store = EntityStore(SessionLocal, timeout=5.0)
    asyncio.run(store.create_schema())
    return store, engine


@pytest.fixture
def store() -> Generator[EntityStore, None, None]:
    store, engine = make_store()
    yield store
    asyncio.run(engine.dispose())


@pytest.fixture
def codes() -> CodeGenerator:
    return CodeGenerator(seed=20240501)


@pytest.fixture(autouse=True)
def _reset_metrics() -> Generator[None, None, None]:
    metrics.reset()
    yield
    metrics.reset()


@pytest.fixture
def client(store: EntityStore, codes: CodeGenerator) -> Generator[TestClient, None, None]:
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_code_generator] = lambda: codes
    test_client = TestClient(app)
    yield test_client
    test_client.close()
    app.dependency_overrides.clear()

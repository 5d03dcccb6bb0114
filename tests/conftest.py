"""Root test configuration: in-memory database, slug-aware sessions, artifact cleanup"""

from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlmodel import SQLModel, Session

from docslug.crud.database import init_db
from docslug.crud.unique import StoreResolver
from sample_models import registry


_PROJECT_ROOT = Path(__file__).parent.parent

_CLEANUP_FILES = ["docslug.db", "test.db"]


@pytest.fixture(scope="session", autouse=True)
def cleanup_artifacts():
    """Remove DB files created during the test session."""
    yield
    for name in _CLEANUP_FILES:
        p = _PROJECT_ROOT / name
        if p.exists():
            p.unlink()


@pytest.fixture(name="engine")
def engine_fixture():
    """In-memory SQLite engine with all tables created."""
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False})
    init_db(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="session")
def session_fixture(engine):
    """Fresh session per test with slug rebuilding installed on flush."""
    with Session(engine) as s:
        registry.install(s)
        yield s


@pytest.fixture(name="resolver_calls")
def resolver_calls_fixture(monkeypatch):
    """Record every resolve_unique call made from the flush hook."""
    calls = []

    class CountingResolver(StoreResolver):
        def resolve_unique(self, candidate, *args, **kwargs):
            calls.append(candidate)
            return super().resolve_unique(candidate, *args, **kwargs)

    monkeypatch.setattr(registry, "resolver_factory", CountingResolver)
    return calls

import os

# Keep the app's own engine off disk; tests bind their own engine below
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import create_engine  # noqa: E402

from tourney.database import get_tournament_service, init_db  # noqa: E402
from tourney.main import app  # noqa: E402
from tourney.record_store import RecordStore  # noqa: E402
from tourney.services.tournament_service import TournamentService  # noqa: E402

TEST_DATABASE_URL = "sqlite:///:memory:"

# ============================================================================
# Test Database Setup with StaticPool
# ============================================================================
# 1. sqlite:///:memory: with StaticPool so every Session shares one database
# 2. check_same_thread=False required for TestClient/threaded access
# 3. A fresh engine per test: no records leak between tests
# 4. App dependency overridden to use the test service (see client_fixture)


@pytest.fixture(name="engine")
def engine_fixture():
    test_engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture(name="file_engine")
def file_engine_fixture(tmp_path):
    """On-disk SQLite: one connection per thread, for concurrency tests"""
    disk_engine = create_engine(
        f"sqlite:///{tmp_path / 'tourney.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    init_db(disk_engine)
    yield disk_engine
    disk_engine.dispose()


@pytest.fixture(name="store")
def store_fixture(engine) -> RecordStore:
    return RecordStore(engine)


@pytest.fixture(name="service")
def service_fixture(store) -> TournamentService:
    return TournamentService(store)


@pytest.fixture(name="client")
def client_fixture(service: TournamentService):
    """Test client whose routes talk to the per-test service

    Override MUST be set BEFORE TestClient() and stay in place for the
    entire duration.
    """
    app.dependency_overrides[get_tournament_service] = lambda: service

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()

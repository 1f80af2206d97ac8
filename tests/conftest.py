"""Pytest configuration and shared fixtures for HabitFlow tests.

This module provides database fixtures, a simulated clock and store factories
for testing the habit log, its projections and the rollover watcher without
touching the real application database.
"""

from __future__ import annotations

import tempfile
from datetime import date, datetime
from pathlib import Path

import pytest
from sqlmodel import Session, SQLModel, create_engine

# Import all models to ensure they're registered with SQLModel metadata
from habitflow.models import AppSetting  # noqa: F401
from habitflow.clock import ManualClock
from habitflow.config import BaseConfig
from habitflow.context import create_app_context
from habitflow.infra.repositories import SQLModelSettingsRepository
from habitflow.services import persistence
from habitflow.services.log_store import LogStore

TODAY = date(2024, 6, 10)


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def db_engine():
    """Create an isolated SQLite database for each test.

    Yields:
        Engine: SQLModel engine connected to test database
    """
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    engine = create_engine(
        f"sqlite:///{db_path}", echo=False, connect_args={"check_same_thread": False}
    )
    SQLModel.metadata.create_all(engine)

    yield engine

    engine.dispose()
    db_path.unlink(missing_ok=True)


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Create a session factory for repositories that expect Callable[[], Session]."""

    def factory():
        return Session(db_engine, expire_on_commit=False)

    return factory


@pytest.fixture
def settings_repo(session_factory) -> SQLModelSettingsRepository:
    return SQLModelSettingsRepository(session_factory)


# =============================================================================
# Session Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def sync_writes():
    """Run persistence writes inline so tests observe them immediately."""

    persistence.set_async_execution(False)
    persistence.clear_jobs()
    yield
    persistence.wait_for_writes(timeout=5)
    persistence.set_async_execution(True)
    persistence.clear_jobs()


@pytest.fixture
def clock() -> ManualClock:
    """Clock frozen at 2024-06-10 09:00 local time."""

    return ManualClock(datetime(2024, 6, 10, 9, 0))


@pytest.fixture
def store(settings_repo) -> LogStore:
    """Empty store writing through to the test database."""

    return LogStore(repo=settings_repo)


@pytest.fixture
def test_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> BaseConfig:
    """Configuration rooted in a temporary data directory."""

    monkeypatch.delenv("HABITFLOW_DATABASE_URL", raising=False)
    monkeypatch.setenv("HABITFLOW_SEED_SAMPLE", "false")
    monkeypatch.setenv("HABITFLOW_ASYNC_PERSIST", "false")
    return BaseConfig(data_dir=tmp_path)


@pytest.fixture
def app_context(test_config, clock, settings_repo):
    """Application context on the manual clock, watcher not started."""

    ctx = create_app_context(test_config, clock=clock, settings_repo=settings_repo)
    yield ctx
    ctx.shutdown()


@pytest.fixture
def habit_factory(store):
    """Factory for creating habits in the shared store.

    Returns:
        Callable: Function that creates Habit instances
    """

    def _create_habit(name: str = "Test Habit", description: str = "Test habit description"):
        return store.add_habit(name, description)

    return _create_habit

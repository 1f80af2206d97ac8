"""Tests for the SQLModel key-value repository."""

from __future__ import annotations

from habitflow.infra.database import bootstrap_database
from habitflow.infra.repositories import SQLModelSettingsRepository


def test_settings_repository_crud(settings_repo):
    assert settings_repo.get("habits") is None
    assert settings_repo.get_value("habits") is None

    created = settings_repo.set("habits", "[]", "Serialized habit list")
    assert created.key == "habits"
    assert created.value == "[]"

    updated = settings_repo.set("habits", '[{"id": "1"}]')
    assert updated.value == '[{"id": "1"}]'
    assert updated.description is None
    assert settings_repo.get_value("habits") == '[{"id": "1"}]'

    settings_repo.delete("habits")
    assert settings_repo.get("habits") is None
    # Deleting again is a no-op
    settings_repo.delete("habits")


def test_settings_repository_stores_long_values(settings_repo):
    payload = "[" + ",".join('{"habitId": "abc", "date": "2024-06-10"}' for _ in range(500)) + "]"

    settings_repo.set("logs", payload)

    assert settings_repo.get_value("logs") == payload


def test_bootstrap_database(test_config):
    engine, session_factory = bootstrap_database(test_config)
    try:
        repo = SQLModelSettingsRepository(session_factory)
        repo.set("habits", "[]")
        assert repo.get_value("habits") == "[]"
    finally:
        engine.dispose()

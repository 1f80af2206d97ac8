"""Application configuration objects and helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    """Interpret environment variable values as booleans."""

    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    """Interpret environment variable values as positive integers."""

    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        parsed = int(value.strip())
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {value!r}") from exc
    if parsed <= 0:
        raise ValueError(f"{name} must be positive, got {parsed}")
    return parsed


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "HabitFlow"
    DB_FILENAME = "habitflow.db"

    # Heatmap layout thresholds
    GRID_WINDOW_DAYS = 364
    MONTH_LABEL_SPACING = 4
    EDGE_COLUMNS = 9

    # Sample data used when seeding is enabled
    SAMPLE_HISTORY_DAYS = 150
    SAMPLE_COMPLETION_RATE = 0.6

    def __init__(self, data_dir: str | Path | None = None) -> None:
        self.DATA_DIR = self._resolve_data_dir(data_dir)
        self.DEV_MODE = _env_bool("HABITFLOW_DEV_MODE", default=True)
        self.SEED_SAMPLE_DATA = _env_bool("HABITFLOW_SEED_SAMPLE", default=False)
        self.ASYNC_PERSIST = _env_bool("HABITFLOW_ASYNC_PERSIST", default=True)
        self.ROLLOVER_CHECK_SECONDS = _env_int("HABITFLOW_ROLLOVER_SECONDS", 60)
        self.DATABASE_URL = os.getenv("HABITFLOW_DATABASE_URL", self._build_sqlite_url())

    def _resolve_data_dir(self, data_dir: str | Path | None = None) -> Path:
        """Return the directory where the SQLite file and logs live."""

        data_root = data_dir or os.getenv("HABITFLOW_DATA_DIR", "instance")
        base_path = Path(data_root).expanduser()
        try:
            path = base_path.resolve()
            path.mkdir(parents=True, exist_ok=True)
            return path
        except PermissionError:
            # Protected install locations fall back to per-user storage.
            fallback_path = Path.home() / f".{self.APP_NAME.lower()}"
            fallback_path.mkdir(parents=True, exist_ok=True)
            return fallback_path.resolve()

    def _build_sqlite_url(self) -> str:
        """Construct the default SQLite URL inside the data directory."""

        db_path = self.DATA_DIR / self.DB_FILENAME
        return f"sqlite:///{db_path}"

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        # Snapshots are written from worker threads.
        connect_args: dict[str, Any] = {"check_same_thread": False}
        return {"connect_args": connect_args}


class DevConfig(BaseConfig):
    """Development configuration: verbose logging whatever the environment says."""

    def __init__(self, data_dir: str | Path | None = None) -> None:
        super().__init__(data_dir)
        self.DEV_MODE = True

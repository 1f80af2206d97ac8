"""SQLite bootstrap for the key-value settings table."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, ContextManager, Iterator, Tuple

from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from ..config import BaseConfig
from ..models.settings import AppSetting

SessionFactory = Callable[[], ContextManager[Session]]


def bootstrap_database(config: BaseConfig) -> Tuple[Engine, SessionFactory]:
    """Open ``config.DATABASE_URL``, create the ``app_setting`` table if needed.

    Returns ``(engine, session_factory)``. Each factory call yields a session
    that commits on success and rolls back on error.
    """

    engine = create_engine(config.DATABASE_URL, **config.sqlalchemy_engine_options())
    SQLModel.metadata.create_all(engine, tables=[AppSetting.__table__])

    @contextmanager
    def session_factory() -> Iterator[Session]:
        session = Session(engine, expire_on_commit=False)
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    return engine, session_factory

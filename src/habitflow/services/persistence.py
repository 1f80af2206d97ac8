"""Background write-through of habit log snapshots.

Each store mutation produces a numbered snapshot. Snapshots are written to
the key-value repository on a daemon thread (or inline when async execution
is off), and a snapshot older than the last one written is discarded.
Failures are recorded on the returned ``WriteJob`` and logged, never raised.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from threading import Lock, Thread
from typing import Deque, List, Optional

from ..domain.repositories.settings import SettingsRepository
from ..logging_config import get_logger

__all__ = [
    "HABITS_KEY",
    "LOGS_KEY",
    "StateWriter",
    "WriteJob",
    "clear_jobs",
    "recent_jobs",
    "set_async_execution",
    "submit",
    "wait_for_writes",
]

logger = get_logger(__name__)

HABITS_KEY = "habits"
LOGS_KEY = "logs"

_LOCK = Lock()
_RECENT: Deque["WriteJob"] = deque(maxlen=100)
_RUN_ASYNC = True


@dataclass
class WriteJob:
    """Outcome of one snapshot write."""

    revision: int
    status: str = "queued"
    error: Optional[str] = None
    finished_at: Optional[datetime] = None
    _thread: Optional[Thread] = field(default=None, repr=False, compare=False)


class StateWriter:
    """Write serialized snapshots to the repository, newest revision wins."""

    def __init__(self, repo: SettingsRepository):
        self.repo = repo
        self._lock = Lock()
        self._written = 0

    @property
    def written_revision(self) -> int:
        return self._written

    def write(self, *, revision: int, habits_json: str, logs_json: str) -> bool:
        """Store the snapshot unless a newer one already landed."""

        with self._lock:
            if revision <= self._written:
                logger.debug("Skipping stale snapshot", extra={"revision": revision})
                return False
            self.repo.set(HABITS_KEY, habits_json, "Serialized habit list")
            self.repo.set(LOGS_KEY, logs_json, "Serialized completion log")
            self._written = revision
        logger.debug("Persisted state", extra={"revision": revision})
        return True


def set_async_execution(enabled: bool) -> None:
    """Write on daemon threads (True) or inline in the caller (False)."""

    global _RUN_ASYNC
    _RUN_ASYNC = enabled


def clear_jobs() -> None:
    with _LOCK:
        _RECENT.clear()


def recent_jobs() -> List[WriteJob]:
    """Return tracked writes, oldest first."""

    with _LOCK:
        return list(_RECENT)


def submit(writer: StateWriter, *, revision: int, habits_json: str, logs_json: str) -> WriteJob:
    """Hand a snapshot to ``writer``; returns the tracked job."""

    job = WriteJob(revision=revision)
    with _LOCK:
        _RECENT.append(job)

    def runner() -> None:
        job.status = "running"
        try:
            written = writer.write(revision=revision, habits_json=habits_json, logs_json=logs_json)
        except Exception as exc:
            job.status = "failed"
            job.error = str(exc)
            logger.warning(
                "Persisting revision %s failed: %s", revision, exc, exc_info=True,
                extra={"revision": revision},
            )
        else:
            job.status = "written" if written else "skipped"
        finally:
            job.finished_at = datetime.now(timezone.utc)

    if _RUN_ASYNC:
        job._thread = Thread(target=runner, name=f"HabitFlowWrite-{revision}", daemon=True)
        job._thread.start()
    else:
        runner()
    return job


def wait_for_writes(timeout: Optional[float] = None) -> bool:
    """Block until every background write has finished.

    Returns ``False`` when ``timeout`` (seconds, per write) ran out first.
    """

    with _LOCK:
        threads = [job._thread for job in _RECENT if job._thread is not None]
    for thread in threads:
        thread.join(timeout)
    return not any(thread.is_alive() for thread in threads)

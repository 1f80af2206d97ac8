"""Key-value repository protocol used for session persistence."""

from __future__ import annotations

from typing import Optional, Protocol


class SettingsRepository(Protocol):
    """Repository storing independently serialized string values by key."""

    def get_value(self, key: str) -> Optional[str]:
        """Return the stored value for ``key`` or ``None`` when absent."""
        ...

    def set(self, key: str, value: str, description: str | None = None) -> object:
        """Insert or replace the value stored under ``key``."""
        ...

    def delete(self, key: str) -> None:
        """Remove ``key`` if present."""
        ...

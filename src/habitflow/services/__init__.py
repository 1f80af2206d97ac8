"""Service module exports."""

from . import (
    habits,
    heatmap,
    log_store,
    persistence,
    seed,
)

__all__ = [
    "habits",
    "heatmap",
    "log_store",
    "persistence",
    "seed",
]

"""Repositories implementation package."""

from .prefs_repository import PrefsRepository
from .snapshot_repository import SnapshotRepository

__all__ = ["PrefsRepository", "SnapshotRepository"]

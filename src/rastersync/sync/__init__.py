"""Level-by-level synchronization between tile stores."""

from .manager import LevelReport, SyncManager, SyncReport, run_sync

__all__ = ["LevelReport", "SyncManager", "SyncReport", "run_sync"]

"""Data models for git-review."""

from .change import ChangeEntry, ChangeStatus, FileStats
from .commit import CommitEntry
from .session import Session, ViewMode

__all__ = [
    "ChangeEntry",
    "ChangeStatus",
    "CommitEntry",
    "FileStats",
    "Session",
    "ViewMode",
]

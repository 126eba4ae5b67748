"""Change model for working-tree entries."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class ChangeStatus(str, Enum):
    """Kind of change; the value doubles as the one-shot status marker."""

    MODIFIED = "M"
    ADDED = "A"
    DELETED = "D"
    UNTRACKED = "?"
    RENAMED = "R"

    @property
    def order(self) -> int:
        return list(ChangeStatus).index(self)


class FileStats(BaseModel):
    """Per-file statistics at the time they were queried."""

    lines_added: int = Field(default=0, ge=0)
    lines_removed: int = Field(default=0, ge=0)
    size_bytes: int = Field(default=0, ge=0)
    modified_at: Optional[datetime] = None

    model_config = {"frozen": True}


class ChangeEntry(BaseModel):
    """Represents one modified file in the working tree."""

    path: str
    status: ChangeStatus
    old_path: Optional[str] = None  # Only for renames
    lines_added: int = Field(default=0, ge=0)
    lines_removed: int = Field(default=0, ge=0)
    size_bytes: int = Field(default=0, ge=0)
    modified_at: Optional[datetime] = None

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_rename(self) -> "ChangeEntry":
        if self.status is ChangeStatus.RENAMED and not self.old_path:
            raise ValueError("renamed entry requires old_path")
        if self.status is not ChangeStatus.RENAMED and self.old_path is not None:
            raise ValueError("old_path is only valid for renamed entries")
        return self

    @property
    def sort_key(self):
        return (self.path, self.status.order)

    @property
    def display_path(self) -> str:
        if self.status is ChangeStatus.RENAMED:
            return f"{self.old_path} -> {self.path}"
        return self.path

    @property
    def stats(self) -> FileStats:
        return FileStats(
            lines_added=self.lines_added,
            lines_removed=self.lines_removed,
            size_bytes=self.size_bytes,
            modified_at=self.modified_at,
        )

"""Commit model for history listings."""

from pydantic import BaseModel, Field


class CommitEntry(BaseModel):
    """Represents one commit in the current branch's history."""

    short_hash: str = Field(pattern=r"^[0-9a-f]{4,40}$")
    author: str
    relative_date: str
    subject: str

    model_config = {"frozen": True}

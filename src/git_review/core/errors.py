"""Error taxonomy for git-review.

Fatal errors (MissingDependency, NotARepository) are raised at startup only.
ExternalToolError and RenderUnavailable are recoverable: the dispatcher
reports them inline and keeps running. Each error carries the exit code the
CLI uses when it ends a one-shot invocation.
"""

from pathlib import Path
from typing import Optional, Sequence


class GitReviewError(Exception):
    """Base class for git-review errors."""

    exit_code = 1


class MissingDependency(GitReviewError):
    """A mandatory external executable is not on PATH."""

    exit_code = 3

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Required tool '{name}' was not found on PATH")


class NotARepository(GitReviewError):
    """The working directory is not inside a git working tree."""

    exit_code = 4

    def __init__(self, path: Path):
        self.path = Path(path)
        super().__init__(f"Not a git repository: {self.path}")


class ExternalToolError(GitReviewError):
    """An external command exited non-zero (or timed out)."""

    def __init__(
        self,
        exit_code: int,
        stderr: str = "",
        command: Optional[Sequence[str]] = None,
    ):
        self.tool_exit_code = exit_code
        self.stderr = (stderr or "").strip()
        self.command = list(command or [])
        name = self.command[0] if self.command else "command"
        detail = f": {self.stderr}" if self.stderr else ""
        super().__init__(f"{name} exited with status {exit_code}{detail}")


class RenderUnavailable(GitReviewError):
    """Neither the target nor a plain diff of it could be produced."""

    def __init__(self, target: str):
        self.target = target
        super().__init__(f"Cannot render a diff for '{target}'")

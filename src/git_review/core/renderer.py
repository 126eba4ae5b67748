"""Diff rendering through git, optionally colorized by delta."""

import itertools
import logging
import os
import shlex
from enum import Enum
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Union

from rich.console import Console
from rich.text import Text

from git_review.core.errors import ExternalToolError, RenderUnavailable
from git_review.core.inspector import Inspector
from git_review.core.probe import Capabilities
from git_review.core.runner import CommandRunner
from git_review.models.change import ChangeEntry, ChangeStatus
from git_review.models.commit import CommitEntry

logger = logging.getLogger(__name__)

Target = Union[None, str, ChangeEntry, CommitEntry]


class RenderMode(str, Enum):
    """Where the rendered diff goes."""

    PREVIEW = "preview"
    FULL_SCREEN = "full_screen"


def target_label(target: Target) -> str:
    if target is None:
        return "working tree"
    if isinstance(target, ChangeEntry):
        return target.display_path
    if isinstance(target, CommitEntry):
        return target.short_hash
    return str(target)


class Renderer:
    """Produces diff lines for a path, a change entry or a commit."""

    def __init__(
        self,
        root: Path,
        runner: CommandRunner,
        capabilities: Capabilities,
        preview_height: int = 40,
        delta_args: Sequence[str] = (),
        inspector: Optional[Inspector] = None,
    ):
        self.root = Path(root)
        self.runner = runner
        self.capabilities = capabilities
        self.preview_height = max(1, preview_height)
        self.delta_args = list(delta_args)
        self.inspector = inspector or Inspector(self.root, runner)

    def render(
        self,
        target: Target,
        mode: RenderMode,
        color: bool = True,
        height: Optional[int] = None,
    ) -> Iterator[str]:
        """Yield the diff for ``target`` line by line.

        Nothing runs until the first line is requested. PREVIEW output never
        exceeds ``height`` lines, ``preview_height`` by default.
        """
        lines = self._diff_lines(target, color)
        if mode is RenderMode.PREVIEW:
            lines = self._truncate(lines, max(1, height or self.preview_height))
        return lines

    def _diff_lines(self, target: Target, color: bool) -> Iterator[str]:
        text = self._plain_diff(target)
        if color and self.capabilities.colorize and text:
            text = self._colorize(text)
        yield from text.splitlines()

    def _plain_diff(self, target: Target) -> str:
        if target is None:
            return self._git_diff(["diff", "--no-color", self.inspector.diff_base()])
        if isinstance(target, CommitEntry):
            return self._show_commit(target.short_hash)
        if isinstance(target, ChangeEntry):
            return self._path_diff(target.path, target.old_path,
                                   target.status is ChangeStatus.UNTRACKED)

        if not (self.root / target).exists() and self.inspector.commit_exists(target):
            return self._show_commit(target)
        return self._path_diff(target, None, None)

    def _show_commit(self, ref: str) -> str:
        try:
            return self._git_diff(["show", "--no-color", "--format=fuller", ref])
        except ExternalToolError as e:
            raise RenderUnavailable(ref) from e

    def _path_diff(
        self, path: str, old_path: Optional[str], untracked: Optional[bool]
    ) -> str:
        exists = (self.root / path).exists()
        try:
            if untracked is None:
                untracked = exists and self.inspector.is_untracked(path)
            if untracked:
                return self.runner.run(
                    ["git", "diff", "--no-index", "--no-color", "--", os.devnull, path],
                    ok_codes=(0, 1),
                ).stdout
            paths = [old_path, path] if old_path else [path]
            text = self._git_diff(
                ["diff", "--no-color", "-M", self.inspector.diff_base(), "--", *paths]
            )
        except ExternalToolError as e:
            if not exists:
                raise RenderUnavailable(path) from e
            raise
        if not text and not exists and not self._is_known(path):
            raise RenderUnavailable(path)
        return text

    def _is_known(self, path: str) -> bool:
        """Whether git has ever tracked ``path`` at HEAD or in the index."""
        result = self.runner.run(
            ["git", "ls-files", "--error-unmatch", "--", path], ok_codes=(0, 1)
        )
        return result.returncode == 0

    def _git_diff(self, args: List[str]) -> str:
        return self.runner.run(["git", *args]).stdout

    def _colorize(self, text: str) -> str:
        cmd = [self.capabilities.delta, "--paging=never"]
        width = os.environ.get("FZF_PREVIEW_COLUMNS")
        if width:
            cmd.append(f"--width={width}")
        cmd.extend(self.delta_args)
        try:
            return self.runner.run(cmd, input=text).stdout
        except ExternalToolError as e:
            logger.warning("delta failed, showing plain diff: %s", e)
            return text

    @staticmethod
    def _truncate(lines: Iterator[str], height: int) -> Iterator[str]:
        head = list(itertools.islice(lines, height))
        rest = sum(1 for _ in lines)
        if not rest:
            yield from head
            return
        hidden = rest + 1
        yield from head[: height - 1]
        yield f"... ({hidden} more lines)"


def _git_config(runner: CommandRunner, key: str) -> Optional[str]:
    try:
        result = runner.run(["git", "config", "--get", key], ok_codes=(0, 1))
    except ExternalToolError:
        return None
    value = result.stdout.strip()
    return value or None


def resolve_pager(runner: CommandRunner, configured: Optional[str] = None) -> Optional[str]:
    """Pick the pager the way git does for diffs."""
    if configured:
        return configured
    pager = _git_config(runner, "pager.diff")
    if pager:
        return pager
    pager = os.environ.get("PAGER")
    if pager:
        return pager
    pager = _git_config(runner, "core.pager")
    if pager:
        return pager
    return "less -FRX"


class Pager:
    """Shows full-screen output through a pager, or straight to the console."""

    def __init__(
        self,
        runner: CommandRunner,
        command: Optional[str],
        console: Optional[Console] = None,
    ):
        self.runner = runner
        self.command = command
        self.console = console or Console()

    def show(self, lines: Iterator[str]) -> None:
        """Page ``lines``; returns when the user leaves the pager.

        Errors raised before the first line are propagated, as is a pager
        that cannot be started. Once the pager is up, its exit takes
        precedence and later render failures are only logged.
        """
        lines = iter(lines)
        try:
            first = next(lines)
        except StopIteration:
            self.console.print("[dim]No differences[/dim]")
            return

        stream = itertools.chain([first], lines)
        if not self.command or not self.console.is_terminal:
            for line in stream:
                self.console.print(Text.from_ansi(line))
            return

        try:
            self.runner.page(shlex.split(self.command), self._logged(stream))
        except KeyboardInterrupt:
            logger.debug("pager interrupted")

    @staticmethod
    def _logged(lines: Iterator[str]) -> Iterator[str]:
        try:
            yield from lines
        except (ExternalToolError, RenderUnavailable) as e:
            logger.warning("render failed while paging: %s", e)

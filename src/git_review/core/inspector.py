"""Repository inspection: changed files, commit history, per-file stats."""

import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from git_review.core.errors import ExternalToolError
from git_review.core.runner import CommandRunner, nul_fields
from git_review.models.change import ChangeEntry, ChangeStatus, FileStats
from git_review.models.commit import CommitEntry

logger = logging.getLogger(__name__)

# Object name of the empty tree, the diff base before the first commit
EMPTY_TREE = "4b825dc642cb6eb9a060e54bf8d69288fbee4904"

_FIELD_SEP = "\x1f"
_LOG_FORMAT = "%h%x1f%an%x1f%cr%x1f%s"


def parse_status(output: str) -> List[Tuple[ChangeStatus, str, Optional[str]]]:
    """Parse ``git status --porcelain=v1 -z`` into (status, path, old_path)."""
    fields = nul_fields(output)
    entries = []
    i = 0
    while i < len(fields):
        record = fields[i]
        i += 1
        if len(record) < 4:
            logger.warning("Skipping malformed status record %r", record)
            continue
        xy, path = record[:2], record[3:]
        old_path = None

        if xy == "??":
            status = ChangeStatus.UNTRACKED
        elif "R" in xy:
            status = ChangeStatus.RENAMED
            old_path = fields[i]
            i += 1
        elif "C" in xy:
            # Copies carry a source path we don't track
            status = ChangeStatus.ADDED
            i += 1
        elif "D" in xy and xy[0] != "A":
            status = ChangeStatus.DELETED
        elif "A" in xy:
            # Staged additions and intent-to-add (" A") files
            status = ChangeStatus.ADDED
        else:
            status = ChangeStatus.MODIFIED
        entries.append((status, path, old_path))
    return entries


def parse_numstat(output: str) -> Dict[str, Tuple[int, int]]:
    """Parse ``git diff --numstat -z`` into {path: (added, removed)}.

    Binary files report ``-`` and count as zero lines.
    """
    fields = nul_fields(output)
    stats = {}
    i = 0
    while i < len(fields):
        parts = fields[i].split("\t", 2)
        i += 1
        if len(parts) != 3:
            logger.warning("Skipping malformed numstat record %r", fields[i - 1])
            continue
        added, removed, path = parts
        if not path:
            # Rename: old and new paths follow as separate fields
            path = fields[i + 1]
            i += 2
        stats[path] = (_count(added), _count(removed))
    return stats


def parse_log(output: str) -> List[CommitEntry]:
    """Parse ``git log`` output produced with the unit-separated format."""
    commits = []
    for line in output.splitlines():
        if not line.strip():
            continue
        parts = line.split(_FIELD_SEP, 3)
        if len(parts) != 4:
            logger.warning("Skipping malformed log line %r", line)
            continue
        short_hash, author, relative_date, subject = parts
        commits.append(
            CommitEntry(
                short_hash=short_hash,
                author=author,
                relative_date=relative_date,
                subject=subject,
            )
        )
    return commits


def _count(value: str) -> int:
    return int(value) if value.isdigit() else 0


def count_lines(path: Path) -> int:
    """Number of lines in a text file; binary or unreadable files count 0."""
    try:
        data = path.read_bytes()
    except OSError:
        return 0
    if b"\0" in data:
        return 0
    lines = data.count(b"\n")
    if data and not data.endswith(b"\n"):
        lines += 1
    return lines


class Inspector:
    """Queries git for the working-tree state at call time."""

    def __init__(
        self,
        root: Path,
        runner: Optional[CommandRunner] = None,
        timeout: Optional[float] = None,
    ):
        self.root = Path(root)
        self.runner = runner or CommandRunner(self.root)
        self.timeout = timeout

    def _git(self, *args: str, ok_codes=(0,)):
        return self.runner.run(
            ["git", *args], ok_codes=ok_codes, timeout=self.timeout
        )

    def has_head(self) -> bool:
        """Whether the repository has at least one commit."""
        result = self._git("rev-parse", "--verify", "--quiet", "HEAD", ok_codes=(0, 1))
        return result.returncode == 0

    def diff_base(self) -> str:
        return "HEAD" if self.has_head() else EMPTY_TREE

    def list_changes(self) -> List[ChangeEntry]:
        """Changed files sorted by path, ties broken by status."""
        status_output = self._git(
            "status", "--porcelain=v1", "-z", "--untracked-files=all"
        ).stdout
        records = parse_status(status_output)
        if not records:
            return []

        numstat = parse_numstat(
            self._git("diff", "--numstat", "-z", "-M", self.diff_base()).stdout
        )

        entries = []
        for status, path, old_path in records:
            if status is ChangeStatus.UNTRACKED:
                added, removed = count_lines(self.root / path), 0
            else:
                added, removed = numstat.get(path, (0, 0))
            size, mtime = self._file_info(path)
            entries.append(
                ChangeEntry(
                    path=path,
                    old_path=old_path,
                    status=status,
                    lines_added=added,
                    lines_removed=removed,
                    size_bytes=size,
                    modified_at=mtime,
                )
            )

        entries.sort(key=lambda e: e.sort_key)
        logger.debug("%d changed files", len(entries))
        return entries

    def list_commits(self, limit: int) -> List[CommitEntry]:
        """Most recent ``limit`` commits of the current branch, newest first."""
        if limit <= 0:
            raise ValueError("limit must be a positive integer")
        if not self.has_head():
            return []
        output = self._git("log", "-n", str(limit), f"--format={_LOG_FORMAT}").stdout
        return parse_log(output)

    def stats_for(self, entry: ChangeEntry) -> FileStats:
        """Fresh statistics for one entry."""
        if entry.status is ChangeStatus.UNTRACKED:
            added, removed = count_lines(self.root / entry.path), 0
        else:
            paths = [entry.path]
            if entry.old_path:
                paths.insert(0, entry.old_path)
            output = self._git(
                "diff", "--numstat", "-z", "-M", self.diff_base(), "--", *paths
            ).stdout
            added, removed = parse_numstat(output).get(entry.path, (0, 0))

        size, mtime = self._file_info(entry.path)
        return FileStats(
            lines_added=added,
            lines_removed=removed,
            size_bytes=size,
            modified_at=mtime,
        )

    def commit_exists(self, ref: str) -> bool:
        try:
            result = self._git(
                "rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}", ok_codes=(0, 1)
            )
        except ExternalToolError:
            return False
        return result.returncode == 0

    def is_untracked(self, path: str) -> bool:
        output = self._git(
            "status", "--porcelain=v1", "-z", "--untracked-files=all", "--", path
        ).stdout
        return any(s is ChangeStatus.UNTRACKED for s, _, _ in parse_status(output))

    def _file_info(self, path: str) -> Tuple[int, Optional[datetime]]:
        try:
            st = (self.root / path).lstat()
        except OSError:
            return 0, None
        return st.st_size, datetime.fromtimestamp(st.st_mtime)

"""Command runner for the external tools git-review drives.

Every child process goes through a CommandRunner so components can be
tested with a fake that records calls and replays canned results.
"""

import contextlib
import logging
import subprocess
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from git_review.core.errors import ExternalToolError

logger = logging.getLogger(__name__)


class CommandRunner:
    """Runs external commands synchronously."""

    def __init__(self, cwd: Optional[Path] = None):
        self.cwd = Path(cwd) if cwd else None

    def run(
        self,
        args: Sequence[str],
        *,
        input: Optional[str] = None,
        ok_codes: Iterable[int] = (0,),
        timeout: Optional[float] = None,
    ) -> subprocess.CompletedProcess:
        """Run ``args`` capturing output; non-accepted exit codes raise."""
        logger.debug("run: %s", " ".join(args))
        try:
            result = subprocess.run(  # noqa: S603
                list(args),
                cwd=str(self.cwd) if self.cwd else None,
                input=input,
                capture_output=True,
                text=True,
                errors="replace",
                timeout=timeout,
                check=False,
            )
        except FileNotFoundError as e:
            raise ExternalToolError(127, str(e), args) from e
        except subprocess.TimeoutExpired as e:
            raise ExternalToolError(-1, f"timed out after {timeout}s", args) from e

        if result.returncode not in tuple(ok_codes):
            logger.debug("exit %s from %s: %s", result.returncode, args[0], result.stderr)
            raise ExternalToolError(result.returncode, result.stderr, args)
        return result

    def interactive(self, args: Sequence[str], input: str) -> subprocess.CompletedProcess:
        """Run a full-screen filter (fzf): feed stdin, capture stdout only.

        The terminal stays attached through stderr and /dev/tty, so the exit
        code is returned as-is for the caller to interpret.
        """
        logger.debug("interactive: %s", " ".join(args))
        try:
            return subprocess.run(  # noqa: S603
                list(args),
                cwd=str(self.cwd) if self.cwd else None,
                input=input,
                stdout=subprocess.PIPE,
                text=True,
                check=False,
            )
        except FileNotFoundError as e:
            raise ExternalToolError(127, str(e), args) from e

    def page(self, args: Sequence[str], lines: Iterable[str]) -> None:
        """Stream ``lines`` into a pager until it exits."""
        logger.debug("page: %s", " ".join(args))
        try:
            proc = subprocess.Popen(  # noqa: S603
                list(args),
                cwd=str(self.cwd) if self.cwd else None,
                stdin=subprocess.PIPE,
                text=True,
                errors="replace",
            )
        except OSError as e:
            raise ExternalToolError(127, str(e), args) from e
        try:
            for line in lines:
                proc.stdin.write(line + "\n")
        except BrokenPipeError:
            # Pager quit before reading everything
            pass
        finally:
            with contextlib.suppress(BrokenPipeError):
                proc.stdin.close()
            proc.wait()


def nul_fields(text: str) -> List[str]:
    """Split ``-z`` output into its NUL-separated fields."""
    fields = text.split("\0")
    if fields and fields[-1] == "":
        fields.pop()
    return fields

"""Selection presenter: fzf when available, a numbered list otherwise."""

import logging
from typing import Callable, List, Optional, Sequence, TypeVar

from rich.console import Console
from rich.markup import escape

from git_review.core.errors import ExternalToolError
from git_review.core.events import InputSource
from git_review.core.probe import Capabilities
from git_review.core.runner import CommandRunner

logger = logging.getLogger(__name__)

T = TypeVar("T")

# fzf exits 1 when nothing matched and 130 when the user aborted
_FZF_CANCEL_CODES = (1, 130)


class _Cancelled:
    """Sentinel returned when the user backs out of a selection."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "CANCELLED"

    def __bool__(self) -> bool:
        return False


CANCELLED = _Cancelled()


def _clean(text: str) -> str:
    return text.replace("\t", " ").replace("\n", " ")


class Presenter:
    """Serializes labels out to a matcher and maps the choice back."""

    def __init__(
        self,
        runner: CommandRunner,
        capabilities: Capabilities,
        input_source: InputSource,
        console: Optional[Console] = None,
        fzf_args: Sequence[str] = (),
    ):
        self.runner = runner
        self.capabilities = capabilities
        self.input_source = input_source
        self.console = console or Console()
        self.fzf_args = list(fzf_args)

    def present(
        self,
        items: Sequence[T],
        render_label: Callable[[T], str],
        render_key: Optional[Callable[[T], str]] = None,
        preview_command: Optional[str] = None,
        header: Optional[str] = None,
    ):
        """Return the chosen item, or CANCELLED."""
        if not items:
            return CANCELLED
        labels = [_clean(render_label(item)) for item in items]
        if self.capabilities.fuzzy:
            keys = [_clean(render_key(item)) if render_key else label
                    for item, label in zip(items, labels)]
            index = self._fuzzy(labels, keys, preview_command, header)
        else:
            index = self._numbered(labels, header)
        if index is None:
            return CANCELLED
        return items[index]

    def fzf_command(self, preview_command: Optional[str], header: Optional[str]) -> List[str]:
        cmd = [
            self.capabilities.fzf,
            "--delimiter=\t",
            "--with-nth=3..",
            "--no-multi",
            "--ansi",
        ]
        if header:
            cmd.append(f"--header={header}")
        if preview_command:
            cmd.extend(["--preview", preview_command, "--preview-window=right,60%"])
        cmd.extend(self.fzf_args)
        return cmd

    def _fuzzy(
        self,
        labels: List[str],
        keys: List[str],
        preview_command: Optional[str],
        header: Optional[str],
    ) -> Optional[int]:
        lines = "".join(
            f"{i}\t{key}\t{label}\n" for i, (key, label) in enumerate(zip(keys, labels))
        )
        result = self.runner.interactive(self.fzf_command(preview_command, header), lines)

        if result.returncode in _FZF_CANCEL_CODES:
            return None
        if result.returncode != 0:
            raise ExternalToolError(result.returncode, "fzf failed", ["fzf"])

        chosen = (result.stdout or "").strip("\n")
        if not chosen:
            return None
        index_field = chosen.split("\t", 1)[0]
        if not index_field.isdigit() or int(index_field) >= len(labels):
            logger.warning("Unexpected fzf output %r", chosen)
            return None
        return int(index_field)

    def _numbered(self, labels: List[str], header: Optional[str]) -> Optional[int]:
        if header:
            self.console.print(f"[bold]{escape(header)}[/bold]")
        for i, label in enumerate(labels, start=1):
            self.console.print(f"  [cyan]{i:>3}[/cyan]  {escape(label)}")

        while True:
            try:
                answer = self.input_source.next_event(
                    f"Select 1-{len(labels)} (empty or q to go back): "
                ).strip()
            except (EOFError, KeyboardInterrupt):
                return None

            if answer in ("", "q"):
                return None
            if answer.isdigit() and 1 <= int(answer) <= len(labels):
                return int(answer) - 1
            self.console.print(f"[yellow]Invalid choice: {escape(answer)}[/yellow]")

"""Command dispatcher: the interactive state machine and one-shot modes.

The loop pulls one input event at a time, so a whole session can be driven
from a scripted sequence:

    MENU_ROOT --f/c/s--> VIEW_FILES / VIEW_COMMITS / VIEW_STATS
    VIEW_* --selection--> PREVIEWING --b/o--> VIEW_*
    VIEW_* --cancel--> MENU_ROOT
    any --q / end of input--> EXITING
"""

import logging
from enum import Enum
from typing import Callable, Dict, Iterator, List, Optional

from rich.console import Console
from rich.markup import escape
from rich.text import Text

from git_review.core.errors import ExternalToolError, RenderUnavailable
from git_review.core.events import InputSource
from git_review.core.inspector import Inspector
from git_review.core.presenter import CANCELLED, Presenter
from git_review.core.renderer import Pager, Renderer, RenderMode, Target, target_label
from git_review.models.change import ChangeEntry
from git_review.models.commit import CommitEntry
from git_review.models.session import Session, ViewMode

logger = logging.getLogger(__name__)


class DispatcherState(str, Enum):
    """States of the interactive loop."""

    MENU_ROOT = "menu_root"
    VIEW_FILES = "view_files"
    VIEW_COMMITS = "view_commits"
    VIEW_STATS = "view_stats"
    PREVIEWING = "previewing"
    EXITING = "exiting"


VIEW_STATES: Dict[ViewMode, DispatcherState] = {
    ViewMode.FILES: DispatcherState.VIEW_FILES,
    ViewMode.COMMITS: DispatcherState.VIEW_COMMITS,
    ViewMode.STATS: DispatcherState.VIEW_STATS,
}

MENU_KEYS: Dict[str, ViewMode] = {
    "f": ViewMode.FILES,
    "c": ViewMode.COMMITS,
    "s": ViewMode.STATS,
}

QUIT_KEYS = ("q", "quit", "exit")

MENU_PROMPT = "(f)iles  (c)ommits  (s)tats  (q)uit > "
PREVIEW_PROMPT = "(n)ext  (p)rev  (o)pen  (b)ack  (q)uit > "


def human_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    value = size / 1024
    for unit in ("KB", "MB"):
        if value < 1024:
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GB"


def format_change_line(entry: ChangeEntry) -> str:
    """``<marker>  <path>`` as printed by list mode."""
    return f"{entry.status.value}  {entry.display_path}"


def format_stats_line(entry: ChangeEntry) -> str:
    modified = entry.modified_at.isoformat(timespec="seconds") if entry.modified_at else "-"
    return (
        f"{entry.display_path}\t+{entry.lines_added}\t-{entry.lines_removed}"
        f"\t{entry.size_bytes}\t{modified}"
    )


def format_commit_line(commit: CommitEntry) -> str:
    return f"{commit.short_hash}\t{commit.author}\t{commit.relative_date}\t{commit.subject}"


def _file_label(entry: ChangeEntry) -> str:
    return format_change_line(entry)


def _stats_label(entry: ChangeEntry) -> str:
    return (
        f"{entry.display_path}  +{entry.lines_added} -{entry.lines_removed}"
        f"  {human_size(entry.size_bytes)}"
    )


def _commit_label(commit: CommitEntry) -> str:
    return f"{commit.short_hash}  {commit.relative_date:<15} {commit.author}: {commit.subject}"


def _key(item) -> str:
    if isinstance(item, CommitEntry):
        return item.short_hash
    return item.path


_LABELS: Dict[ViewMode, Callable] = {
    ViewMode.FILES: _file_label,
    ViewMode.COMMITS: _commit_label,
    ViewMode.STATS: _stats_label,
}


class Dispatcher:
    """Runs the interactive review loop over an explicit Session."""

    def __init__(
        self,
        session: Session,
        inspector: Inspector,
        presenter: Presenter,
        renderer: Renderer,
        pager: Pager,
        input_source: InputSource,
        console: Optional[Console] = None,
        commit_limit: int = 20,
        preview_command_for: Optional[Callable[[ViewMode], Optional[str]]] = None,
    ):
        self.session = session
        self.inspector = inspector
        self.presenter = presenter
        self.renderer = renderer
        self.pager = pager
        self.input_source = input_source
        self.console = console or Console()
        self.commit_limit = commit_limit
        self.preview_command_for = preview_command_for

        self.state = DispatcherState.MENU_ROOT
        self.parent: Optional[DispatcherState] = None
        self.history: List[DispatcherState] = [self.state]
        self.last_preview: List[str] = []

    def run(self) -> DispatcherState:
        while self.state is not DispatcherState.EXITING:
            self.step()
        return self.state

    def step(self) -> DispatcherState:
        """Perform exactly one transition."""
        handlers = {
            DispatcherState.MENU_ROOT: self._menu_root,
            DispatcherState.VIEW_FILES: lambda: self._view(ViewMode.FILES),
            DispatcherState.VIEW_COMMITS: lambda: self._view(ViewMode.COMMITS),
            DispatcherState.VIEW_STATS: lambda: self._view(ViewMode.STATS),
            DispatcherState.PREVIEWING: self._previewing,
        }
        handler = handlers.get(self.state)
        if handler is None:
            return self.state

        try:
            new_state = handler()
        except (EOFError, KeyboardInterrupt):
            new_state = DispatcherState.EXITING

        if new_state is DispatcherState.EXITING:
            self.session.clear()
        self.state = new_state
        self.history.append(new_state)
        return new_state

    def _menu_root(self) -> DispatcherState:
        event = self.input_source.next_event(MENU_PROMPT).strip().lower()
        if event in QUIT_KEYS:
            return DispatcherState.EXITING
        mode = MENU_KEYS.get(event)
        if mode is None:
            self.console.print(f"[yellow]Unknown choice: {escape(event)}[/yellow]")
            return DispatcherState.MENU_ROOT
        return VIEW_STATES[mode]

    def _fetch(self, mode: ViewMode) -> list:
        if mode is ViewMode.COMMITS:
            return self.inspector.list_commits(self.commit_limit)
        return self.inspector.list_changes()

    def _view(self, mode: ViewMode) -> DispatcherState:
        snapshot = self.session.snapshot()
        try:
            items = self._fetch(mode)
            if not items:
                self.console.print("[dim]Nothing to show[/dim]")
                return DispatcherState.MENU_ROOT

            self.session.show(mode, items)
            preview = self.preview_command_for(mode) if self.preview_command_for else None
            choice = self.presenter.present(
                items,
                _LABELS[mode],
                render_key=_key,
                preview_command=preview,
                header=mode.value.title(),
            )
        except ExternalToolError as e:
            self._report(e)
            self.session.restore(snapshot)
            return DispatcherState.MENU_ROOT

        if choice is CANCELLED:
            self.session.restore(snapshot)
            return DispatcherState.MENU_ROOT

        self.session.select(next(i for i, item in enumerate(items) if item is choice))
        self.parent = VIEW_STATES[mode]
        return DispatcherState.PREVIEWING

    def _previewing(self) -> DispatcherState:
        self._render_preview(self.session.selected)

        event = self.input_source.next_event(PREVIEW_PROMPT).strip().lower()
        if event in QUIT_KEYS:
            return DispatcherState.EXITING
        if event in ("n", "j"):
            self.session.move(1)
            return DispatcherState.PREVIEWING
        if event in ("p", "k"):
            self.session.move(-1)
            return DispatcherState.PREVIEWING
        if event in ("o", ""):
            self._full_screen(self.session.selected)
            return self.parent
        if event == "b":
            return self.parent

        self.console.print(f"[yellow]Unknown choice: {escape(event)}[/yellow]")
        return DispatcherState.PREVIEWING

    def _render_preview(self, item: Target) -> None:
        self.last_preview = []
        self.console.rule(escape(target_label(item)))
        if self.session.mode is ViewMode.STATS and isinstance(item, ChangeEntry):
            try:
                stats = self.inspector.stats_for(item)
                self.console.print(
                    f"[green]+{stats.lines_added}[/green] [red]-{stats.lines_removed}[/red]"
                    f"  {human_size(stats.size_bytes)}"
                )
            except ExternalToolError as e:
                self._report(e)

        try:
            for line in self.renderer.render(item, RenderMode.PREVIEW):
                self.last_preview.append(line)
                self.console.print(Text.from_ansi(line))
        except (RenderUnavailable, ExternalToolError) as e:
            self._report(e)
            return
        if not self.last_preview:
            self.console.print("[dim]No differences[/dim]")

    def _full_screen(self, item: Target) -> None:
        try:
            self.pager.show(self.renderer.render(item, RenderMode.FULL_SCREEN))
        except (RenderUnavailable, ExternalToolError) as e:
            self._report(e)

    def _report(self, error: Exception) -> None:
        logger.debug("reported: %s", error)
        self.console.print(f"[red]Error: {escape(str(error))}[/red]")


def one_shot_list(inspector: Inspector) -> Iterator[str]:
    for entry in inspector.list_changes():
        yield format_change_line(entry)


def one_shot_stats(inspector: Inspector) -> Iterator[str]:
    for entry in inspector.list_changes():
        yield format_stats_line(entry)


def one_shot_commits(inspector: Inspector, limit: int) -> Iterator[str]:
    for commit in inspector.list_commits(limit):
        yield format_commit_line(commit)


def one_shot_diff(renderer: Renderer, target: Target, color: bool = False) -> Iterator[str]:
    return renderer.render(target, RenderMode.FULL_SCREEN, color=color)


def one_shot_preview(
    renderer: Renderer,
    target: Target,
    color: bool = False,
    inspector: Optional[Inspector] = None,
) -> Iterator[str]:
    """Bounded preview of ``target``.

    With an ``inspector`` and a change entry the first line carries fresh
    stats, and the diff gives up one line so the total stays in bounds.
    """
    height = renderer.preview_height
    if inspector is not None and isinstance(target, ChangeEntry):
        stats = inspector.stats_for(target)
        yield (
            f"+{stats.lines_added} -{stats.lines_removed}"
            f"  {human_size(stats.size_bytes)}"
        )
        height -= 1
        if height < 1:
            return
    yield from renderer.render(target, RenderMode.PREVIEW, color=color, height=height)

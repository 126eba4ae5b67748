"""Main CLI interface for git-review."""

import logging
import os
import shlex
import shutil
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from git_review import __version__
from git_review.config import ReviewConfig, load_config
from git_review.core.dispatcher import (
    Dispatcher,
    one_shot_commits,
    one_shot_diff,
    one_shot_list,
    one_shot_preview,
    one_shot_stats,
)
from git_review.core.errors import GitReviewError, MissingDependency
from git_review.core.events import ConsoleInput
from git_review.core.inspector import Inspector
from git_review.core.presenter import Presenter
from git_review.core.probe import (
    OPTIONAL_TOOLS,
    REQUIRED_TOOLS,
    find_repository,
    install_hint,
    os_family,
    probe,
)
from git_review.core.renderer import Pager, Renderer, Target, resolve_pager
from git_review.core.runner import CommandRunner
from git_review.logging_config import setup_logging
from git_review.models.session import Session, ViewMode

logger = logging.getLogger(__name__)

console = Console()
err_console = Console(stderr=True)

# Value of a bare --commits; an explicit N must be positive
DEFAULT_COMMIT_LIMIT = -1


def _fail(error: GitReviewError) -> None:
    """Print ``error`` on stderr and end the process with its exit code."""
    err_console.print(f"[red]Error: {escape(str(error))}[/red]")
    sys.exit(error.exit_code)


def preview_command(mode: ViewMode) -> str:
    """Command fzf runs for its preview pane; ``{2}`` is the item key."""
    python = shlex.quote(sys.executable)
    command = f"{python} -m git_review.cli.main --preview {{2}} --color"
    if mode is ViewMode.STATS:
        command += " --with-stats"
    return command


def _normalize_target(target: Optional[str], root: Path, inspector: Inspector) -> Optional[str]:
    """Make a cwd-relative path root-relative; leave commit names alone."""
    if target is None:
        return None
    candidate = Path(os.path.realpath(Path.cwd() / target))
    real_root = Path(os.path.realpath(root))
    if not candidate.exists() and inspector.commit_exists(target):
        return target
    try:
        return candidate.relative_to(real_root).as_posix()
    except ValueError:
        return target


def _resolve_target(target: Optional[str], root: Path, inspector: Inspector) -> Target:
    """Prefer the current change entry for a path, so renames keep both sides."""
    target = _normalize_target(target, root, inspector)
    if target is None:
        return None
    for entry in inspector.list_changes():
        if entry.path == target:
            return entry
    return target


def _doctor() -> None:
    """Report which tools are available and how to install missing ones."""
    family = os_family()
    table = Table(title=f"git-review environment ({family})")
    table.add_column("Tool")
    table.add_column("Required")
    table.add_column("Location")
    table.add_column("Install")

    missing_required = False
    for tool in REQUIRED_TOOLS + OPTIONAL_TOOLS:
        location = shutil.which(tool)
        required = tool in REQUIRED_TOOLS
        if required and not location:
            missing_required = True
        hint = "" if location else (install_hint(tool, family) or "see the tool's website")
        table.add_row(
            tool,
            "yes" if required else "no",
            location or "[red]missing[/red]",
            escape(hint),
        )
    console.print(table)

    if missing_required:
        sys.exit(MissingDependency.exit_code)


def _interactive(config: ReviewConfig, root: Path, runner: CommandRunner, inspector: Inspector,
                 renderer: Renderer, capabilities) -> None:
    input_source = ConsoleInput(console)
    presenter = Presenter(runner, capabilities, input_source, console, config.fzf_args)
    pager = Pager(runner, resolve_pager(runner, config.pager), console)
    dispatcher = Dispatcher(
        Session(),
        inspector,
        presenter,
        renderer,
        pager,
        input_source,
        console,
        commit_limit=config.commit_limit,
        preview_command_for=preview_command,
    )
    dispatcher.run()


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("target", required=False)
@click.option("--list", "-l", "list_mode", is_flag=True, help="Print changed files with status markers")
@click.option("--stats", "-s", "stats_mode", is_flag=True, help="Print per-file line and size statistics")
@click.option("--diff", "-d", "diff_mode", is_flag=True, help="Print the diff of TARGET (default: working tree)")
@click.option(
    "--commits",
    "-c",
    type=int,
    is_flag=False,
    flag_value=DEFAULT_COMMIT_LIMIT,
    default=None,
    help="Print recent commits, optionally limited to N",
)
@click.option("--doctor", is_flag=True, help="Show available tools and install hints")
@click.option("--color", is_flag=True, help="Allow ANSI colors in printed output")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.option("--preview", "preview_target", hidden=True, help="Render a bounded preview of a target")
@click.option("--with-stats", is_flag=True, hidden=True, help="Start the preview with file stats")
@click.version_option(__version__)
def main(
    target: Optional[str],
    list_mode: bool,
    stats_mode: bool,
    diff_mode: bool,
    commits: Optional[int],
    doctor: bool,
    color: bool,
    verbose: bool,
    preview_target: Optional[str],
    with_stats: bool,
):
    """git-review - review working-tree changes with git, fzf and delta.

    Without options an interactive menu starts. The mode options print
    once and exit:

    \b
      git-review --list             # status marker and path per file
      git-review --stats             # path, +added, -removed, bytes, mtime
      git-review --diff [TARGET]     # diff of a path, a commit or everything
      git-review --commits [N]       # recent commits, newest first
    """
    config = load_config()
    setup_logging("DEBUG" if verbose else config.log_level, config.log_file)

    modes = [
        name
        for name, enabled in (
            ("--list", list_mode),
            ("--stats", stats_mode),
            ("--diff", diff_mode),
            ("--commits", commits is not None),
            ("--doctor", doctor),
            ("--preview", preview_target is not None),
        )
        if enabled
    ]
    if len(modes) > 1:
        raise click.UsageError(f"{' and '.join(modes)} cannot be combined")
    if target is not None and not diff_mode:
        raise click.UsageError("TARGET is only accepted together with --diff")
    if commits is not None and commits != DEFAULT_COMMIT_LIMIT and commits <= 0:
        raise click.BadParameter("must be a positive number", param_hint="--commits")
    if with_stats and preview_target is None:
        raise click.UsageError("--with-stats is only accepted together with --preview")

    if doctor:
        _doctor()
        return

    try:
        capabilities = probe()
        root = find_repository(Path.cwd())
    except GitReviewError as e:
        _fail(e)

    logger.debug("repository root %s, capabilities %s", root, capabilities)
    runner = CommandRunner(root)
    inspector = Inspector(root, runner, timeout=config.git_timeout)
    renderer = Renderer(
        root,
        runner,
        capabilities,
        preview_height=config.preview_height,
        delta_args=config.delta_args,
        inspector=inspector,
    )

    try:
        if list_mode:
            lines = one_shot_list(inspector)
        elif stats_mode:
            lines = one_shot_stats(inspector)
        elif commits is not None:
            limit = config.commit_limit if commits == DEFAULT_COMMIT_LIMIT else commits
            lines = one_shot_commits(inspector, limit)
        elif diff_mode:
            lines = one_shot_diff(renderer, _resolve_target(target, root, inspector), color)
        elif preview_target is not None:
            lines = one_shot_preview(
                renderer,
                _resolve_target(preview_target, root, inspector),
                color,
                inspector if with_stats else None,
            )
        else:
            _interactive(config, root, runner, inspector, renderer, capabilities)
            return

        for line in lines:
            click.echo(line, color=color or None)
    except GitReviewError as e:
        _fail(e)


if __name__ == "__main__":
    main()

"""Environment probing: operating system, external tools, repository root."""

import logging
import platform
import shutil
from pathlib import Path
from typing import Callable, Dict, Optional

from pydantic import BaseModel

from git_review.core.errors import MissingDependency, NotARepository

logger = logging.getLogger(__name__)

REQUIRED_TOOLS = ("git",)
OPTIONAL_TOOLS = ("fzf", "delta")

# Package names per package manager, where they differ from the binary name
_PACKAGES: Dict[str, Dict[str, str]] = {
    "macos": {"git": "git", "fzf": "fzf", "delta": "git-delta"},
    "linux": {"git": "git", "fzf": "fzf", "delta": "git-delta"},
    "windows": {"git": "Git.Git", "fzf": "junegunn.fzf", "delta": "dandavison.delta"},
}


class Capabilities(BaseModel):
    """What the surrounding system can do for us."""

    os_family: str
    git: str
    fzf: Optional[str] = None
    delta: Optional[str] = None

    model_config = {"frozen": True}

    @property
    def fuzzy(self) -> bool:
        """Interactive fuzzy selection through fzf."""
        return self.fzf is not None

    @property
    def colorize(self) -> bool:
        """Colorized diffs through delta."""
        return self.delta is not None


def os_family(system: Callable[[], str] = platform.system) -> str:
    """Map ``platform.system()`` onto the families we give hints for."""
    name = system().lower()
    if name == "darwin":
        return "macos"
    if name in ("linux", "windows"):
        return name
    return "other"


def probe(
    which: Optional[Callable[[str], Optional[str]]] = None,
    system: Callable[[], str] = platform.system,
) -> Capabilities:
    """Check for required and optional executables.

    Raises MissingDependency when git is absent. fzf and delta are optional;
    when missing the matching capability is simply disabled.
    """
    which = which or shutil.which
    found = {tool: which(tool) for tool in REQUIRED_TOOLS + OPTIONAL_TOOLS}
    for tool in REQUIRED_TOOLS:
        if not found[tool]:
            raise MissingDependency(tool)

    for tool in OPTIONAL_TOOLS:
        if not found[tool]:
            logger.info("%s not found; falling back", tool)

    return Capabilities(
        os_family=os_family(system),
        git=found["git"],
        fzf=found["fzf"],
        delta=found["delta"],
    )


def find_repository(path: Path) -> Path:
    """Return the working-tree root containing ``path``.

    Only call after probe() succeeded: importing GitPython requires git.
    """
    import git

    try:
        repo = git.Repo(Path(path), search_parent_directories=True)
    except (git.InvalidGitRepositoryError, git.NoSuchPathError) as e:
        raise NotARepository(path) from e

    if repo.bare or repo.working_tree_dir is None:
        raise NotARepository(path)
    return Path(repo.working_tree_dir)


def install_hint(tool: str, family: str) -> Optional[str]:
    """Command a user would run to install ``tool``; advisory only."""
    package = _PACKAGES.get(family, {}).get(tool)
    if package is None:
        return None
    if family == "macos":
        return f"brew install {package}"
    if family == "linux":
        return f"sudo apt-get install {package}"
    return f"winget install {package}"

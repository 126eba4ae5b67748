"""Shared fixtures for git-review tests."""

import io
import logging
import subprocess
import tempfile
from pathlib import Path

import pytest
from git import Repo
from rich.console import Console

from git_review.core.errors import ExternalToolError
from git_review.core.probe import Capabilities

class FakeRunner:
    """Stands in for CommandRunner: canned results keyed by argument tuple.

    Unknown commands succeed with empty output.
    """

    def __init__(self):
        self.responses = {}
        self.calls = []
        self.interactive_calls = []
        self.interactive_result = (130, "")
        self.paged = []

    def add(self, args, stdout="", returncode=0, stderr=""):
        self.responses[tuple(args)] = (returncode, stdout, stderr)

    def run(self, args, *, input=None, ok_codes=(0,), timeout=None):
        self.calls.append((tuple(args), input))
        returncode, stdout, stderr = self.responses.get(tuple(args), (0, "", ""))
        if returncode not in tuple(ok_codes):
            raise ExternalToolError(returncode, stderr, args)
        return subprocess.CompletedProcess(list(args), returncode, stdout, stderr)

    def interactive(self, args, input):
        self.interactive_calls.append((list(args), input))
        returncode, stdout = self.interactive_result
        return subprocess.CompletedProcess(list(args), returncode, stdout, None)

    def page(self, args, lines):
        self.paged.append((list(args), list(lines)))

    def commands(self):
        return [args for args, _ in self.calls]

@pytest.fixture
def fake_runner():
    return FakeRunner()

@pytest.fixture
def plain_caps():
    """Only git available: numbered lists and plain diffs."""
    return Capabilities(os_family="linux", git="/usr/bin/git")

@pytest.fixture
def full_caps():
    return Capabilities(
        os_family="linux",
        git="/usr/bin/git",
        fzf="/usr/bin/fzf",
        delta="/usr/bin/delta",
    )

@pytest.fixture
def console():
    return Console(file=io.StringIO(), width=120, color_system=None)


def _configure(repo: Repo) -> None:
    with repo.config_writer() as config:
        config.set_value("user", "name", "Test User")
        config.set_value("user", "email", "test@example.com")

@pytest.fixture
def git_project():
    """A real repository with one commit holding a.txt, b.txt and keep.txt."""
    with tempfile.TemporaryDirectory() as temp_dir:
        project_path = Path(temp_dir)
        repo = Repo.init(project_path)
        _configure(repo)

        (project_path / "a.txt").write_text("alpha\n")
        (project_path / "b.txt").write_text("bravo\nbravo 2\n")
        (project_path / "keep.txt").write_text("unchanged\n")
        repo.index.add(["a.txt", "b.txt", "keep.txt"])
        repo.index.commit("Initial commit")

        yield project_path, repo

@pytest.fixture
def changed_project(git_project):
    """Two modified files and one staged new file."""
    project_path, repo = git_project
    (project_path / "a.txt").write_text("alpha\nalpha 2\n")
    (project_path / "b.txt").write_text("bravo\n")
    (project_path / "new.txt").write_text("fresh\nlines\nhere\n")
    repo.index.add(["new.txt"])
    return project_path, repo

@pytest.fixture
def empty_repo():
    """A repository without any commits."""
    with tempfile.TemporaryDirectory() as temp_dir:
        project_path = Path(temp_dir)
        repo = Repo.init(project_path)
        _configure(repo)
        yield project_path, repo

@pytest.fixture
def isolated_env(monkeypatch, tmp_path):
    """Keep user configuration and tool overrides out of the test."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    for var in (
        "GIT_REVIEW_CONFIG",
        "GIT_REVIEW_COMMIT_LIMIT",
        "GIT_REVIEW_PREVIEW_HEIGHT",
        "GIT_REVIEW_PAGER",
        "GIT_REVIEW_GIT_TIMEOUT",
        "GIT_REVIEW_LOG_LEVEL",
        "GIT_REVIEW_LOG_FILE",
    ):
        monkeypatch.delenv(var, raising=False)
    return tmp_path


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo handlers installed by the CLI so caplog sees every record."""
    yield
    package_logger = logging.getLogger("git_review")
    package_logger.handlers.clear()
    package_logger.propagate = True
    package_logger.setLevel(logging.NOTSET)

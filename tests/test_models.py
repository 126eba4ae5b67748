"""Tests for the git-review data models."""

from datetime import datetime

import pytest
from pydantic import ValidationError

from git_review.models import ChangeEntry, ChangeStatus, CommitEntry, Session, ViewMode


def test_change_entry_defaults():
    """A bare entry has zero counts and no timestamp."""
    entry = ChangeEntry(path="src/app.py", status=ChangeStatus.MODIFIED)

    assert entry.lines_added == 0
    assert entry.lines_removed == 0
    assert entry.size_bytes == 0
    assert entry.modified_at is None
    assert entry.display_path == "src/app.py"


@pytest.mark.parametrize("field", ["lines_added", "lines_removed", "size_bytes"])
def test_change_entry_rejects_negative_counts(field):
    """Counts and sizes are never negative."""
    with pytest.raises(ValidationError):
        ChangeEntry(path="a.txt", status=ChangeStatus.MODIFIED, **{field: -1})


def test_renamed_entry_requires_old_path():
    """A rename carries both paths."""
    with pytest.raises(ValidationError):
        ChangeEntry(path="new.txt", status=ChangeStatus.RENAMED)

    entry = ChangeEntry(path="new.txt", old_path="old.txt", status=ChangeStatus.RENAMED)
    assert entry.display_path == "old.txt -> new.txt"


def test_old_path_only_for_renames():
    with pytest.raises(ValidationError):
        ChangeEntry(path="a.txt", old_path="b.txt", status=ChangeStatus.MODIFIED)


def test_status_must_be_known():
    """Status values outside the enumeration are rejected."""
    with pytest.raises(ValidationError):
        ChangeEntry(path="a.txt", status="X")


def test_change_entry_is_immutable():
    entry = ChangeEntry(path="a.txt", status=ChangeStatus.ADDED, lines_added=3)

    with pytest.raises(ValidationError):
        entry.lines_added = 5


def test_stats_view_of_entry():
    stamp = datetime(2024, 5, 1, 12, 0, 0)
    entry = ChangeEntry(
        path="a.txt",
        status=ChangeStatus.MODIFIED,
        lines_added=2,
        lines_removed=1,
        size_bytes=40,
        modified_at=stamp,
    )

    stats = entry.stats
    assert (stats.lines_added, stats.lines_removed, stats.size_bytes) == (2, 1, 40)
    assert stats.modified_at == stamp


def test_sort_key_breaks_ties_on_status():
    deleted = ChangeEntry(path="a.txt", status=ChangeStatus.DELETED)
    untracked = ChangeEntry(path="a.txt", status=ChangeStatus.UNTRACKED)
    other = ChangeEntry(path="B.txt", status=ChangeStatus.MODIFIED)

    ordered = sorted([untracked, other, deleted], key=lambda e: e.sort_key)

    assert ordered == [other, deleted, untracked]


def test_commit_entry_requires_hex_hash():
    commit = CommitEntry(
        short_hash="abc1234", author="Ada", relative_date="2 days ago", subject="Fix"
    )
    assert commit.short_hash == "abc1234"

    with pytest.raises(ValidationError):
        CommitEntry(short_hash="not-hex", author="Ada", relative_date="now", subject="x")


class TestSession:
    """Selection always points into the current list or is None."""

    def test_new_session_is_empty(self):
        session = Session()

        assert session.mode is None
        assert session.items == []
        assert session.selection is None
        assert session.selected is None

    def test_show_selects_first_item(self):
        session = Session()
        session.show(ViewMode.FILES, ["a", "b"])

        assert session.mode is ViewMode.FILES
        assert session.selection == 0
        assert session.selected == "a"

    def test_show_empty_list_has_no_selection(self):
        session = Session()
        session.show(ViewMode.COMMITS, [])

        assert session.selection is None
        assert session.move(1) is None

    def test_select_rejects_out_of_range(self):
        session = Session()
        session.show(ViewMode.FILES, ["a", "b"])

        with pytest.raises(IndexError):
            session.select(2)
        with pytest.raises(IndexError):
            session.select(-1)
        assert session.selection == 0

    def test_move_is_clamped(self):
        session = Session()
        session.show(ViewMode.FILES, ["a", "b", "c"])

        assert session.move(5) == 2
        assert session.move(-10) == 0

    def test_snapshot_round_trip(self):
        session = Session()
        session.show(ViewMode.STATS, ["a", "b"])
        session.select(1)
        snapshot = session.snapshot()

        session.show(ViewMode.COMMITS, ["x"])
        session.restore(snapshot)

        assert session.mode is ViewMode.STATS
        assert session.items == ["a", "b"]
        assert session.selected == "b"

    def test_independent_sessions(self):
        """Sessions are plain objects, not shared state."""
        first, second = Session(), Session()
        first.show(ViewMode.FILES, ["a"])

        assert second.mode is None
        assert second.items == []

"""Session state for one interactive invocation."""

from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, PrivateAttr


class ViewMode(str, Enum):
    """Which list is on screen."""

    FILES = "files"
    COMMITS = "commits"
    STATS = "stats"


class Session(BaseModel):
    """Active view, current selection and the list fetched for that view.

    The selection is always a valid index into ``items`` or None when the
    list is empty. Nothing here is persisted.
    """

    mode: Optional[ViewMode] = None
    _items: List[Any] = PrivateAttr(default_factory=list)
    _selection: Optional[int] = PrivateAttr(default=None)

    @property
    def items(self) -> List[Any]:
        return list(self._items)

    @property
    def selection(self) -> Optional[int]:
        return self._selection

    @property
    def selected(self) -> Optional[Any]:
        if self._selection is None:
            return None
        return self._items[self._selection]

    def show(self, mode: ViewMode, items: List[Any]) -> None:
        """Make ``mode`` active with a freshly fetched list."""
        self.mode = mode
        self._items = list(items)
        self._selection = 0 if self._items else None

    def select(self, index: int) -> None:
        if not 0 <= index < len(self._items):
            raise IndexError(f"selection {index} out of range for {len(self._items)} items")
        self._selection = index

    def move(self, delta: int) -> Optional[int]:
        """Move the selection by ``delta``, clamped to the list bounds."""
        if self._selection is None:
            return None
        self._selection = max(0, min(len(self._items) - 1, self._selection + delta))
        return self._selection

    def snapshot(self) -> tuple:
        return (self.mode, tuple(self._items), self._selection)

    def restore(self, snapshot: tuple) -> None:
        self.mode, items, self._selection = snapshot
        self._items = list(items)

    def clear(self) -> None:
        self.mode = None
        self._items = []
        self._selection = None

"""Pull-based input sources for the interactive loop.

The dispatcher and the fallback presenter ask for one event at a time, so a
session can be replayed from a scripted sequence.
"""

from typing import Iterable, List, Optional

from rich.console import Console


class InputSource:
    """Reads one line of user input per call; raises EOFError when done."""

    def next_event(self, prompt: str = "") -> str:
        raise NotImplementedError


class ConsoleInput(InputSource):
    """Reads events from the terminal through a rich console."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def next_event(self, prompt: str = "") -> str:
        return self.console.input(prompt).strip()


class ScriptedInput(InputSource):
    """Replays a fixed sequence of events, then reports end of input."""

    def __init__(self, events: Iterable[str]):
        self._events = list(events)
        self.prompts: List[str] = []

    def next_event(self, prompt: str = "") -> str:
        self.prompts.append(prompt)
        if not self._events:
            raise EOFError("scripted input exhausted")
        return self._events.pop(0)

    @property
    def remaining(self) -> int:
        return len(self._events)

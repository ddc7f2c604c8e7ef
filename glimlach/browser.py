"""Browser-side collaborators.

The router and the translator never touch ``window.history`` or
``localStorage`` directly; they are handed objects satisfying the protocols
below. The in-memory implementations serve tests and server-side rendering.
"""

from typing import Dict, List, Optional, Protocol


class History(Protocol):
    """The part of the browser history API the router needs."""

    @property
    def current_path(self) -> str:
        ...

    def push(self, path: str) -> None:
        ...


class KeyValueStore(Protocol):
    """String key/value persistence, e.g. ``localStorage``."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...


class InMemoryHistory:
    """A history stack that supports ``back``, like the browser's.

    Examples:
        >>> history = InMemoryHistory()
        >>> history.push("/events")
        >>> history.current_path
        '/events'
        >>> history.back()
        >>> history.current_path
        '/'
    """

    def __init__(self, initial_path: str = "/"):
        self._entries: List[str] = [initial_path]
        self._index = 0

    @property
    def current_path(self) -> str:
        return self._entries[self._index]

    @property
    def length(self) -> int:
        return len(self._entries)

    def push(self, path: str) -> None:
        # Pushing after going back drops the forward entries
        del self._entries[self._index + 1:]
        self._entries.append(path)
        self._index += 1

    def back(self) -> None:
        if self._index > 0:
            self._index -= 1

    def forward(self) -> None:
        if self._index < len(self._entries) - 1:
            self._index += 1


class InMemoryStore:
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


__all__ = [
    "History",
    "KeyValueStore",
    "InMemoryHistory",
    "InMemoryStore",
]

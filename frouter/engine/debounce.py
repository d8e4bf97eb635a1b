"""Suppress repeat notifications for recently handled paths."""

import time
from pathlib import Path
from typing import Callable


DEFAULT_DEBOUNCE_SECONDS = 10.0


class DebounceSet:
    """Paths seen recently, each with the time it was last seen.

    Watch backends usually fire several notifications for one logical write
    (create, modify, metadata change). Within the window only the first is
    accepted, so a file rewritten twice in quick succession is routed once.

    Expired entries are evicted lazily by sweep(), which runs after every
    accept() rather than on a timer.
    """

    def __init__(
        self,
        window: float = DEFAULT_DEBOUNCE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.window = window
        self._clock = clock
        self._seen: dict[str, float] = {}

    def accept(self, path: Path | str) -> bool:
        """Record the path as seen now; True if it was not recently seen."""
        key = str(path)
        now = self._clock()
        seen_at = self._seen.get(key)
        accepted = seen_at is None or now - seen_at > self.window
        self._seen[key] = now
        self.sweep()
        return accepted

    def sweep(self) -> int:
        """Drop entries older than the window. Returns how many were dropped."""
        now = self._clock()
        expired = [key for key, seen_at in self._seen.items() if now - seen_at > self.window]
        for key in expired:
            del self._seen[key]
        return len(expired)

    def __contains__(self, path: Path | str) -> bool:
        return str(path) in self._seen

    def __len__(self) -> int:
        return len(self._seen)
